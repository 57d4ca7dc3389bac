import pytest

from automation.table_manager.models import ColumnSchema, PageSpec, Record, SortSpec
from automation.table_manager.view import (
    filter_records,
    page_count,
    paginate,
    sort_records,
    view,
)

SCHEMA = ColumnSchema.default()


def _rec(i, **data):
    return Record(id=i, data=data)


@pytest.fixture
def dataset():
    return [
        _rec(1, name="Cara", email="cara@x.com", age=30, role="Dev"),
        _rec(2, name="abe", email="abe@y.org", age=25, role="QA"),
        _rec(3, name="Bob", email="bob@x.com", age=30, role="Dev"),
        _rec(4, name="Dana", email="dana@y.org", age=41, role="Ops"),
        _rec(5, name="Eve", email="eve@x.com", age=25, role="Dev"),
    ]


def _ids(records):
    return [r.id for r in records]


def test_no_sort_key_keeps_insertion_order(dataset):
    assert _ids(sort_records(dataset, SortSpec())) == [1, 2, 3, 4, 5]


def test_numeric_sort_is_stable_both_directions(dataset):
    asc = sort_records(dataset, SortSpec(key="age", direction="asc"))
    desc = sort_records(dataset, SortSpec(key="age", direction="desc"))
    assert _ids(asc) == [2, 5, 1, 3, 4]
    assert _ids(desc) == [4, 1, 3, 2, 5]


def test_numeric_sort_compares_numbers_not_strings():
    data = [_rec(1, age=100), _rec(2, age=9), _rec(3, age=25)]
    assert _ids(sort_records(data, SortSpec(key="age"))) == [2, 3, 1]


def test_string_sort_is_lexicographic(dataset):
    # Uppercase sorts before lowercase.
    assert _ids(sort_records(dataset, SortSpec(key="name"))) == [3, 1, 4, 5, 2]


def test_without_duplicates_desc_is_reverse_of_asc(dataset):
    asc = sort_records(dataset, SortSpec(key="email"))
    desc = sort_records(dataset, SortSpec(key="email", direction="desc"))
    assert _ids(desc) == list(reversed(_ids(asc)))


def test_rows_missing_the_key_go_last_in_original_order():
    data = [_rec(1, team="b"), _rec(2), _rec(3, team="a"), _rec(4)]
    assert _ids(sort_records(data, SortSpec(key="team"))) == [3, 1, 2, 4]
    assert _ids(sort_records(data, SortSpec(key="team", direction="desc"))) == [1, 3, 2, 4]


def test_numbers_sort_before_strings():
    data = [_rec(1, age="n/a"), _rec(2, age=40), _rec(3, age=20)]
    assert _ids(sort_records(data, SortSpec(key="age"))) == [3, 2, 1]


def test_empty_search_matches_everything(dataset):
    result = view(dataset, SCHEMA, search="")
    assert result.total_count == len(dataset)


def test_search_is_case_insensitive_substring(dataset):
    assert _ids(filter_records(dataset, "X.COM")) == [1, 3, 5]
    assert _ids(filter_records(dataset, "ab")) == [2]


def test_search_matches_numbers_and_ids(dataset):
    assert _ids(filter_records(dataset, "41")) == [4]
    assert _ids(filter_records(dataset, "5")) == [2, 5]


def test_search_includes_hidden_fields(dataset):
    schema = ColumnSchema.default()
    schema.set_visibility("email", False)
    assert view(dataset, schema, search="y.org").total_count == 2


def test_every_filtered_row_contains_term(dataset):
    term = "dev"
    for rec in filter_records(dataset, term):
        assert any(term in v.lower() for v in rec.search_values())


def test_scenario_search_email_fragment():
    data = [_rec(1, name="A", email="a@x.com", age=30, role="Dev")]
    result = view(data, SCHEMA, search="a@x")
    assert result.total_count == 1
    assert _ids(result.rows) == [1]


def test_sort_applies_before_filter_and_page(dataset):
    result = view(
        dataset, SCHEMA, search="dev",
        sort=SortSpec(key="age", direction="desc"),
        page=PageSpec(index=0, size=2),
    )
    assert result.total_count == 3
    assert _ids(result.rows) == [1, 3]


def test_sort_on_unknown_column_is_ignored(dataset):
    result = view(dataset, SCHEMA, sort=SortSpec(key="salary"))
    assert _ids(result.rows) == [1, 2, 3, 4, 5]


@pytest.mark.parametrize("size", [1, 2, 3, 4, 5, 7])
def test_pages_concatenate_to_full_sequence(dataset, size):
    sort = SortSpec(key="name")
    full = view(dataset, SCHEMA, sort=sort, page=PageSpec(size=100)).rows
    pages = page_count(len(full), size)
    rebuilt = []
    for index in range(pages):
        rebuilt.extend(view(dataset, SCHEMA, sort=sort, page=PageSpec(index=index, size=size)).rows)
    assert _ids(rebuilt) == _ids(full)


def test_out_of_range_page_is_empty(dataset):
    result = view(dataset, SCHEMA, page=PageSpec(index=10, size=10))
    assert result.rows == []
    assert result.total_count == 5


def test_paginate_clamps_last_page(dataset):
    assert _ids(paginate(dataset, PageSpec(index=1, size=3))) == [4, 5]


@pytest.mark.parametrize("total, size, expected", [(0, 10, 1), (10, 10, 1), (11, 10, 2), (5, 2, 3)])
def test_page_count(total, size, expected):
    assert page_count(total, size) == expected


def test_view_does_not_mutate_dataset(dataset):
    before = list(dataset)
    view(dataset, SCHEMA, search="x", sort=SortSpec(key="age", direction="desc"))
    assert dataset == before

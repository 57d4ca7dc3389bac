import pydantic
import pytest

from automation.table_manager.models import (
    Column,
    ColumnSchema,
    PageSpec,
    Record,
    SortSpec,
    TableConfig,
    format_value,
)


def test_default_schema_order():
    schema = ColumnSchema.default()
    assert schema.keys() == ["name", "email", "age", "role"]
    assert [c.label for c in schema.list_visible()] == ["Name", "Email", "Age", "Role"]


def test_add_column_lowercases_key_and_keeps_label():
    schema = ColumnSchema.default()
    assert schema.add_column("Department") is True
    col = schema.columns[-1]
    assert (col.key, col.label, col.visible) == ("department", "Department", True)


@pytest.mark.parametrize("name", ["", "   ", "Name", "EMAIL", "id", "ID"])
def test_add_column_ignores_empty_duplicate_and_reserved(name):
    schema = ColumnSchema.default()
    assert schema.add_column(name) is False
    assert schema.keys() == ["name", "email", "age", "role"]


def test_set_visibility_and_list_visible():
    schema = ColumnSchema.default()
    assert schema.set_visibility("email", False) is True
    assert [c.key for c in schema.list_visible()] == ["name", "age", "role"]
    assert schema.set_visibility("nope", False) is False
    assert schema.set_visibility("email", True) is True
    assert [c.key for c in schema.list_visible()] == ["name", "email", "age", "role"]


def test_visible_order_follows_insertion_not_toggle_order():
    schema = ColumnSchema.default()
    schema.add_column("Team")
    schema.set_visibility("name", False)
    schema.set_visibility("name", True)
    assert [c.key for c in schema.list_visible()] == ["name", "email", "age", "role", "team"]


@pytest.mark.parametrize("key", ["", "Name", "id"])
def test_column_rejects_bad_keys(key):
    with pytest.raises(pydantic.ValidationError):
        Column(key=key, label="x")


def test_schema_rejects_duplicate_keys():
    with pytest.raises(pydantic.ValidationError):
        ColumnSchema(columns=[Column(key="a", label="A"), Column(key="a", label="B")])


def test_record_is_frozen_and_keeps_value_types():
    rec = Record(id=1, data={"name": "A", "age": 30, "score": 1.5, "zip": "0042"})
    assert rec.get("age") == 30 and isinstance(rec.get("age"), int)
    assert rec.get("zip") == "0042"
    assert rec.get("missing") is None
    with pytest.raises(pydantic.ValidationError):
        rec.id = 2


def test_search_values_include_id():
    rec = Record(id=7, data={"name": "A", "age": 30})
    assert rec.search_values() == ["7", "A", "30"]


@pytest.mark.parametrize(
    "value, expected",
    [(None, ""), (30, "30"), (30.0, "30"), (41.5, "41.5"), ("x", "x")],
)
def test_format_value(value, expected):
    assert format_value(value) == expected


def test_sort_toggle_cycle():
    spec = SortSpec()
    spec = spec.toggled("age")
    assert (spec.key, spec.direction) == ("age", "asc")
    spec = spec.toggled("age")
    assert (spec.key, spec.direction) == ("age", "desc")
    spec = spec.toggled("age")
    assert (spec.key, spec.direction) == ("age", "asc")
    spec = spec.toggled("age").toggled("name")
    assert (spec.key, spec.direction) == ("name", "asc")


def test_page_spec_bounds():
    assert PageSpec().size == 10
    assert PageSpec(index=2, size=5).start == 10
    with pytest.raises(pydantic.ValidationError):
        PageSpec(index=-1)
    with pytest.raises(pydantic.ValidationError):
        PageSpec(size=0)


def test_table_config_defaults():
    cfg = TableConfig()
    assert cfg.theme == "light"
    assert cfg.columns.keys() == ["name", "email", "age", "role"]

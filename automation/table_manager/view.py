"""Derived view of the dataset: sort, then filter, then paginate.

Everything here is a pure function of its arguments.  The table is
re-derived on every refresh rather than cached.
"""

from __future__ import annotations

import math
from typing import Sequence

from .models import CellValue, ColumnSchema, PageSpec, Record, SortSpec, ViewResult


def _order_key(value: CellValue) -> tuple[int, CellValue]:
    # Numbers compare numerically and sort before strings.
    if isinstance(value, (int, float)):
        return (0, value)
    return (1, value)


def sort_records(records: Sequence[Record], sort: SortSpec) -> list[Record]:
    """Stable sort on ``sort.key``; rows lacking the field go last."""
    if not sort.key:
        return list(records)
    key = sort.key
    present = [r for r in records if r.get(key) is not None]
    missing = [r for r in records if r.get(key) is None]
    # sorted() keeps ties in input order even with reverse=True.
    present = sorted(
        present,
        key=lambda r: _order_key(r.get(key)),  # type: ignore[arg-type]
        reverse=sort.direction == "desc",
    )
    return present + missing


def filter_records(records: Sequence[Record], search: str) -> list[Record]:
    """Keep rows where any value contains *search*, ignoring case."""
    needle = search.lower()
    if not needle:
        return list(records)
    return [
        r for r in records
        if any(needle in value.lower() for value in r.search_values())
    ]


def paginate(records: Sequence[Record], page: PageSpec) -> list[Record]:
    return list(records[page.start:page.start + page.size])


def page_count(total: int, size: int) -> int:
    """Number of pages needed for *total* rows; at least one."""
    return max(1, math.ceil(total / size))


def view(
    dataset: Sequence[Record],
    schema: ColumnSchema,
    search: str = "",
    sort: SortSpec | None = None,
    page: PageSpec | None = None,
) -> ViewResult:
    """Rows to display for the current search, sort and page.

    Sorting only applies to keys that are columns of *schema*.
    ``total_count`` counts every row that matched the search.
    """
    sort = sort or SortSpec()
    page = page or PageSpec()
    if sort.key and sort.key not in schema:
        sort = SortSpec()
    matched = filter_records(sort_records(dataset, sort), search)
    return ViewResult(rows=paginate(matched, page), total_count=len(matched))

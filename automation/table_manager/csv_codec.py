"""CSV import and export.

Both directions are pure text transforms.  Nothing here touches the row
store: the engine decides whether a parsed batch is applied.
"""

from __future__ import annotations

import csv
import io
import logging
from typing import Iterable, Sequence

from .errors import InvalidFormatError
from .models import (
    REQUIRED_FIELDS,
    CellValue,
    Column,
    ColumnSchema,
    ImportResult,
    Record,
    format_value,
)

logger = logging.getLogger(__name__)


def _resolve_headers(headers: Sequence[str], schema: ColumnSchema) -> list[str | None]:
    """Map each CSV header to a column key, or ``None`` to drop it.

    A header matches a required field or schema key by name, or a schema
    column by label, case-insensitively.  Exported files use labels.
    """
    by_label = {c.label.strip().lower(): c.key for c in schema.columns}
    resolved: list[str | None] = []
    for header in headers:
        name = header.strip().lower()
        if name in REQUIRED_FIELDS or name in schema:
            resolved.append(name)
        else:
            resolved.append(by_label.get(name))
    return resolved


def _parse_int(text: str) -> int | None:
    try:
        return int(text.strip())
    except ValueError:
        return None


def _to_candidate(cells: dict[str, str]) -> dict[str, CellValue] | None:
    """Build a row from raw cells, or ``None`` if it is not acceptable."""
    if any(not cells.get(f, "").strip() for f in REQUIRED_FIELDS):
        return None
    age = _parse_int(cells["age"])
    if age is None:
        return None
    row: dict[str, CellValue] = {k: v for k, v in cells.items() if v.strip()}
    row["age"] = age
    return row


def parse_csv(text: str, schema: ColumnSchema) -> ImportResult:
    """Parse *text* into candidate rows.

    A row is accepted when name, email, age and role are all present and
    age is an integer.  Columns outside *schema* are dropped.  Raises
    :class:`InvalidFormatError` only if the text is not valid CSV.
    """
    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")), strict=True)
    result = ImportResult()
    try:
        headers = next(reader, None)
        if headers is None:
            return result
        keys = _resolve_headers(headers, schema)
        for line in reader:
            if not any(cell.strip() for cell in line):
                continue
            cells: dict[str, str] = {}
            for key, cell in zip(keys, line):
                if key is not None:
                    cells[key] = cell
            row = _to_candidate(cells)
            if row is None:
                result.rejected += 1
                logger.debug("Rejected CSV line %d", reader.line_num)
            else:
                result.accepted.append(row)
    except csv.Error as exc:
        raise InvalidFormatError(f"Error parsing CSV: {exc}") from exc
    return result


def to_csv(dataset: Iterable[Record], visible_columns: Sequence[Column]) -> str:
    """Serialize every row of *dataset* using the labels of *visible_columns*."""
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow([c.label for c in visible_columns])
    for rec in dataset:
        writer.writerow([format_value(rec.get(c.key)) for c in visible_columns])
    return buf.getvalue()

"""The table engine: one explicitly owned object holding all table state.

The UI holds a reference to a :class:`TableEngine` and routes every user
action through it.  Schema changes are broadcast to listeners so the
caller can persist them.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Mapping

from . import csv_codec
from .editing import EditSession
from .errors import InvalidFormatError, NotFoundError
from .models import (
    SEED_ROWS,
    CellValue,
    ColumnSchema,
    ImportResult,
    PageSpec,
    Record,
    SortSpec,
    ViewResult,
)
from .store import RowStore
from .view import view

logger = logging.getLogger(__name__)

SchemaListener = Callable[[ColumnSchema], None]


class TableEngine:
    """Dataset, column schema and edit session for one table."""

    def __init__(
        self,
        rows: Iterable[Mapping[str, CellValue | None]] | None = None,
        schema: ColumnSchema | None = None,
        *,
        seed: bool = False,
    ) -> None:
        self.rows = RowStore(SEED_ROWS if seed and rows is None else rows)
        self.schema = schema.model_copy(deep=True) if schema else ColumnSchema.default()
        self.session = EditSession(self.rows)
        self.schema_listeners: list[SchemaListener] = []

    # ── column schema ────────────────────────────────────────

    def update_columns(self, schema: ColumnSchema | Mapping) -> ColumnSchema:
        """Replace the whole schema.

        Used both for live edits and for hydrating a persisted schema, so
        both go through the same validation.
        """
        new = ColumnSchema.model_validate(
            schema.model_dump() if isinstance(schema, ColumnSchema) else schema
        )
        self.schema = new
        logger.info("Columns updated: %s", ", ".join(new.keys()))
        for listener in list(self.schema_listeners):
            listener(new)
        return new

    def add_column(self, name: str) -> bool:
        candidate = self.schema.model_copy(deep=True)
        if not candidate.add_column(name):
            return False
        self.update_columns(candidate)
        return True

    def set_column_visibility(self, key: str, visible: bool) -> bool:
        candidate = self.schema.model_copy(deep=True)
        if not candidate.set_visibility(key, visible):
            return False
        self.update_columns(candidate)
        return True

    # ── rows ─────────────────────────────────────────────────

    def view(
        self,
        search: str = "",
        sort: SortSpec | None = None,
        page: PageSpec | None = None,
    ) -> ViewResult:
        return view(self.rows.snapshot(), self.schema, search, sort, page)

    def update_row(self, row_id: int, patch: Mapping[str, CellValue]) -> Record:
        return self.rows.update(row_id, patch)

    def delete_row(self, row_id: int) -> bool:
        return self.rows.delete(row_id)

    def begin_edit(self, row_id: int) -> None:
        record = self.rows.get(row_id)
        if record is None:
            raise NotFoundError(row_id)
        self.session.begin(record)

    # ── CSV ──────────────────────────────────────────────────

    def import_csv(self, text: str) -> tuple[list[Record], ImportResult]:
        """Parse *text* and append every accepted row in one batch.

        Raises :class:`InvalidFormatError`, leaving the store untouched,
        when no row is accepted.
        """
        result = csv_codec.parse_csv(text, self.schema)
        if not result.accepted:
            logger.warning("CSV import rejected: %d bad rows, none accepted", result.rejected)
            raise InvalidFormatError("Invalid CSV format")
        created = self.rows.add_batch(result.accepted)
        if result.rejected:
            logger.info("CSV import skipped %d invalid rows", result.rejected)
        return created, result

    def export_csv(self) -> str:
        return csv_codec.to_csv(self.rows.snapshot(), self.schema.list_visible())

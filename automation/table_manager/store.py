"""In-memory row store.

Owns the ordered list of records.  Ids come from a high-water mark so a
deleted id is never handed out again, even if it was the largest one.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional

from .errors import NotFoundError
from .models import CellValue, Record

logger = logging.getLogger(__name__)


class RowStore:
    """Ordered collection of :class:`Record` objects."""

    def __init__(self, rows: Optional[Iterable[Mapping[str, CellValue | None]]] = None) -> None:
        self._records: list[Record] = []
        self._last_id = 0
        if rows:
            self.add_batch(rows)

    def __len__(self) -> int:
        return len(self._records)

    def get(self, row_id: int) -> Record | None:
        for rec in self._records:
            if rec.id == row_id:
                return rec
        return None

    def snapshot(self) -> tuple[Record, ...]:
        """Current records in insertion order."""
        return tuple(self._records)

    def add_batch(self, rows: Iterable[Mapping[str, CellValue | None]]) -> list[Record]:
        """Append *rows* in order, assigning consecutive fresh ids.

        Unknown keys are kept; ``None`` values are dropped.
        """
        created = [
            Record(
                id=self._last_id + offset,
                data={k: v for k, v in row.items() if v is not None and k != "id"},
            )
            for offset, row in enumerate(rows, start=1)
        ]
        if not created:
            return []
        self._records.extend(created)
        self._last_id = created[-1].id
        logger.info("Added %d rows (ids %d-%d)", len(created), created[0].id, created[-1].id)
        return created

    def update(self, row_id: int, patch: Mapping[str, CellValue]) -> Record:
        """Merge *patch* into row *row_id* and return the new record.

        Types are not checked here; the edit session validates before
        calling.  Raises :class:`NotFoundError` for an unknown id.
        """
        for i, rec in enumerate(self._records):
            if rec.id == row_id:
                merged = {**rec.data, **{k: v for k, v in patch.items() if k != "id"}}
                updated = Record(id=row_id, data=merged)
                self._records[i] = updated
                logger.debug("Updated row %d: %s", row_id, sorted(patch))
                return updated
        raise NotFoundError(row_id)

    def delete(self, row_id: int) -> bool:
        """Remove row *row_id*.  Missing ids are ignored."""
        before = len(self._records)
        self._records = [r for r in self._records if r.id != row_id]
        removed = len(self._records) != before
        if removed:
            logger.info("Deleted row %d", row_id)
        return removed

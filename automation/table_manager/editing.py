"""Single-row edit session: draft the changes, then commit or cancel."""

from __future__ import annotations

import logging
import math

from .errors import SessionError, ValidationError
from .models import CellValue, Record
from .store import RowStore

logger = logging.getLogger(__name__)


def coerce_number(value: CellValue | None) -> int | float | None:
    """Parse *value* as a finite number; integral values become ``int``."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number: float = value
    else:
        try:
            number = float(value.strip())
        except ValueError:
            return None
    if not math.isfinite(number):
        return None
    if isinstance(number, float) and number.is_integer():
        return int(number)
    return number


class EditSession:
    """Tracks the one row being edited and its draft values.

    The stored row is not touched until :meth:`commit` succeeds.
    """

    def __init__(self, store: RowStore) -> None:
        self._store = store
        self._row_id: int | None = None
        self._draft: dict[str, CellValue] = {}

    @property
    def is_active(self) -> bool:
        return self._row_id is not None

    @property
    def row_id(self) -> int | None:
        return self._row_id

    @property
    def draft(self) -> dict[str, CellValue]:
        return dict(self._draft)

    def is_editing(self, row_id: int) -> bool:
        return self._row_id == row_id

    def begin(self, record: Record) -> None:
        """Start editing *record*, dropping any edit already in progress."""
        if self.is_active:
            logger.debug("Edit of row %s replaced by row %s", self._row_id, record.id)
            self.cancel()
        self._row_id = record.id
        self._draft = dict(record.data)

    def set_field(self, key: str, value: CellValue) -> None:
        if not self.is_active:
            raise SessionError("No row is being edited")
        self._draft[key] = value

    def commit(self) -> Record:
        """Write the draft back to the store and end the session.

        On :class:`ValidationError` or :class:`NotFoundError` the session
        stays open and the store is unchanged.
        """
        if self._row_id is None:
            raise SessionError("No row is being edited")
        age = coerce_number(self._draft.get("age"))
        if age is None:
            raise ValidationError("Age must be a number")
        patch = {**self._draft, "age": age}
        updated = self._store.update(self._row_id, patch)
        self._row_id = None
        self._draft = {}
        return updated

    def cancel(self) -> None:
        self._row_id = None
        self._draft = {}

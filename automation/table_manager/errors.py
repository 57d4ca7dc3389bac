"""Exceptions raised by the table engine.

Every error is recoverable: the operation that raised it leaves the
dataset and column schema exactly as they were.
"""

from __future__ import annotations


class TableError(Exception):
    """Base class for table engine errors."""


class ValidationError(TableError):
    """An edit draft failed validation (e.g. a non-numeric age)."""


class InvalidFormatError(TableError):
    """CSV import produced no usable rows, or the file could not be parsed."""


class NotFoundError(TableError):
    """No row with the requested id exists."""

    def __init__(self, row_id: int) -> None:
        super().__init__(f"Row {row_id} not found")
        self.row_id = row_id


class SessionError(TableError):
    """An edit operation was attempted while no row is being edited."""

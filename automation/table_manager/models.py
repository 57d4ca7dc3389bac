"""Pydantic models for the table manager.

Rows, the dynamic column schema, view parameters and the persisted
configuration file.
"""

from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

CellValue = Union[int, float, str]

# Fields every imported row must carry; ``age`` is the only numeric one.
REQUIRED_FIELDS: tuple[str, ...] = ("name", "email", "age", "role")
NUMERIC_FIELDS: frozenset[str] = frozenset({"age"})
RESERVED_KEYS: frozenset[str] = frozenset({"id"})

DEFAULT_PAGE_SIZE = 10

SEED_ROWS: list[dict[str, CellValue]] = [
    {"name": "John Doe", "email": "john@example.com", "age": 30, "role": "Developer"},
    {"name": "Jane Smith", "email": "jane@example.com", "age": 25, "role": "Designer"},
    {"name": "Bob Johnson", "email": "bob@example.com", "age": 40, "role": "Manager"},
]


def format_value(value: CellValue | None) -> str:
    """Canonical string form used for display, search and CSV export."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class Column(BaseModel):
    """A single column descriptor."""

    key: str
    label: str
    visible: bool = True

    @field_validator("key")
    @classmethod
    def _key_is_normalized(cls, v: str) -> str:
        if not v or v != v.lower():
            raise ValueError(f"column key must be a non-empty lowercase string, got {v!r}")
        if v in RESERVED_KEYS:
            raise ValueError(f"column key {v!r} is reserved")
        return v


class ColumnSchema(BaseModel):
    """Ordered set of columns.  Insertion order is display and export order."""

    columns: list[Column] = Field(default_factory=list)

    @field_validator("columns")
    @classmethod
    def _keys_are_unique(cls, v: list[Column]) -> list[Column]:
        seen: set[str] = set()
        for col in v:
            if col.key in seen:
                raise ValueError(f"duplicate column key {col.key!r}")
            seen.add(col.key)
        return v

    @classmethod
    def default(cls) -> ColumnSchema:
        return cls(columns=[
            Column(key="name", label="Name"),
            Column(key="email", label="Email"),
            Column(key="age", label="Age"),
            Column(key="role", label="Role"),
        ])

    # ── helpers ────────────────────────────────────────────────
    def __contains__(self, key: object) -> bool:
        return any(c.key == key for c in self.columns)

    def keys(self) -> list[str]:
        return [c.key for c in self.columns]

    def get(self, key: str) -> Column | None:
        for c in self.columns:
            if c.key == key:
                return c
        return None

    def add_column(self, name: str) -> bool:
        """Append a visible column named *name*.

        The key is the lowercased name.  Empty names, existing keys and
        reserved keys are ignored.  Returns whether a column was added.
        """
        label = name.strip()
        key = label.lower()
        if not key or key in RESERVED_KEYS or key in self:
            return False
        self.columns.append(Column(key=key, label=label))
        return True

    def set_visibility(self, key: str, visible: bool) -> bool:
        """Show or hide *key*.  Unknown keys are ignored."""
        col = self.get(key)
        if col is None:
            return False
        col.visible = visible
        return True

    def list_visible(self) -> list[Column]:
        return [c for c in self.columns if c.visible]


class Record(BaseModel):
    """One row.  ``id`` is assigned by the row store and never changes."""

    model_config = ConfigDict(frozen=True)

    id: int
    data: dict[str, CellValue] = Field(default_factory=dict)

    def get(self, key: str) -> CellValue | None:
        return self.data.get(key)

    def search_values(self) -> list[str]:
        """String form of every value in the row, id included."""
        return [format_value(self.id)] + [format_value(v) for v in self.data.values()]


class SortSpec(BaseModel):
    key: Optional[str] = None
    direction: Literal["asc", "desc"] = "asc"

    def toggled(self, key: str) -> SortSpec:
        """Sort order produced by clicking the header of *key*."""
        if self.key == key and self.direction == "asc":
            return SortSpec(key=key, direction="desc")
        return SortSpec(key=key, direction="asc")


class PageSpec(BaseModel):
    index: int = Field(default=0, ge=0)
    size: int = Field(default=DEFAULT_PAGE_SIZE, gt=0)

    @property
    def start(self) -> int:
        return self.index * self.size


class ViewResult(BaseModel):
    rows: list[Record] = Field(default_factory=list)
    total_count: int = 0


class ImportResult(BaseModel):
    """Outcome of parsing a CSV file, before anything touches the store."""

    accepted: list[dict[str, CellValue]] = Field(default_factory=list)
    rejected: int = 0


class TableConfig(BaseModel):
    """Root object persisted as JSON: column layout and theme mode."""

    columns: ColumnSchema = Field(default_factory=ColumnSchema.default)
    theme: Literal["light", "dark"] = "light"

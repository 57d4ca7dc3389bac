"""Table Manager — Textual TUI application.

Launch with:  python -m automation.table_manager
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import (
    Button,
    Checkbox,
    DataTable,
    Footer,
    Header,
    Input,
    Label,
)

from . import storage
from .engine import TableEngine
from .errors import InvalidFormatError, NotFoundError, ValidationError
from .models import (
    DEFAULT_PAGE_SIZE,
    RESERVED_KEYS,
    Column,
    ColumnSchema,
    PageSpec,
    SortSpec,
    ViewResult,
    format_value,
)
from .view import page_count

logger = logging.getLogger(__name__)

# ── Constants ────────────────────────────────────────────────

_THEMES = {"light": "textual-light", "dark": "textual-dark"}
_SORT_ARROWS = {"asc": " ↑", "desc": " ↓"}
DEFAULT_INPUT_DIR = Path("input")
DEFAULT_EXPORT_PATH = Path("table-data.csv")


# ── Manage Columns Modal ─────────────────────────────────────


class ManageColumnsModal(ModalScreen[None]):
    """Add a column by name and toggle column visibility."""

    BINDINGS = [Binding("escape", "close_modal", "Close")]

    def __init__(self, engine: TableEngine, **kw: Any) -> None:
        super().__init__(**kw)
        self._engine = engine
        self._checkbox_keys: dict[str, str] = {}
        self._generation = 0

    def compose(self) -> ComposeResult:
        with Vertical(id="modal-dialog"):
            yield Label("Manage Columns", id="modal-title")
            yield Label("New column name:")
            yield Input(placeholder="e.g. Department", id="column-name")
            with Horizontal(id="modal-buttons"):
                yield Button("Add Column", variant="primary", id="btn-add-column")
                yield Button("Close", id="btn-close")
            yield VerticalScroll(id="column-list")

    def on_mount(self) -> None:
        self._render_columns()

    def _render_columns(self) -> None:
        container = self.query_one("#column-list", VerticalScroll)
        container.remove_children()
        self._checkbox_keys.clear()
        # Removal is deferred, so every render needs fresh ids.
        self._generation += 1
        for i, col in enumerate(self._engine.schema.columns):
            box_id = f"col-visible-{self._generation}-{i}"
            self._checkbox_keys[box_id] = col.key
            container.mount(Checkbox(col.label, col.visible, id=box_id))

    @on(Input.Submitted, "#column-name")
    @on(Button.Pressed, "#btn-add-column")
    def _on_add(self) -> None:
        field = self.query_one("#column-name", Input)
        name = field.value.strip()
        if not name:
            self.notify("Column name is required", severity="error")
            return
        if name.lower() in RESERVED_KEYS:
            self.notify(f"'{name}' is reserved for the row id", severity="error")
            return
        if not self._engine.add_column(name):
            self.notify(f"Column '{name}' already exists", severity="warning")
            return
        field.value = ""
        self._render_columns()
        self.notify(f"Column added: {name}")

    @on(Checkbox.Changed)
    def _on_toggle(self, event: Checkbox.Changed) -> None:
        key = self._checkbox_keys.get(event.checkbox.id or "")
        if key is not None:
            self._engine.set_column_visibility(key, event.value)

    @on(Button.Pressed, "#btn-close")
    def _on_close(self) -> None:
        self.dismiss(None)

    def action_close_modal(self) -> None:
        self.dismiss(None)


# ── CSV Import Modal ─────────────────────────────────────────


class ImportCsvModal(ModalScreen[Path | None]):
    """Let the user pick a .csv file from the input folder."""

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(self, input_dir: Path, **kw: Any) -> None:
        super().__init__(**kw)
        self._input_dir = input_dir
        self._files: dict[str, Path] = {}

    def compose(self) -> ComposeResult:
        with Vertical(id="modal-dialog"):
            yield Label("Import Rows from CSV", id="modal-title")
            yield Label(f"Select a file from {self._input_dir}/:")
            yield VerticalScroll(id="file-list")
            yield Button("Cancel", id="btn-cancel")

    def on_mount(self) -> None:
        container = self.query_one("#file-list", VerticalScroll)
        self._input_dir.mkdir(parents=True, exist_ok=True)
        csv_files = sorted(self._input_dir.glob("*.csv"))
        if not csv_files:
            container.mount(
                Label(f"No .csv files found in {self._input_dir}/.\n"
                      "The header row needs name, email, age and role.")
            )
            return
        for i, f in enumerate(csv_files):
            btn_id = f"pick-file-{i}"
            self._files[btn_id] = f
            container.mount(Button(f.name, id=btn_id, classes="file-pick-btn"))

    @on(Button.Pressed, ".file-pick-btn")
    def _on_pick(self, event: Button.Pressed) -> None:
        self.dismiss(self._files.get(event.button.id or ""))

    @on(Button.Pressed, "#btn-cancel")
    def _on_cancel(self) -> None:
        self.dismiss(None)

    def action_cancel(self) -> None:
        self.dismiss(None)


# ── Edit Row Modal ───────────────────────────────────────────


class EditRowModal(ModalScreen[bool]):
    """Edit the visible fields of the row held by the engine's edit session.

    Dismisses with ``True`` once the draft is committed.
    """

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(self, engine: TableEngine, columns: list[Column], **kw: Any) -> None:
        super().__init__(**kw)
        self._engine = engine
        self._columns = columns

    def compose(self) -> ComposeResult:
        draft = self._engine.session.draft
        with Vertical(id="modal-dialog"):
            yield Label(f"Edit Row {self._engine.session.row_id}", id="modal-title")
            with VerticalScroll(id="field-list"):
                for i, col in enumerate(self._columns):
                    yield Label(col.label, classes="field-label")
                    yield Input(
                        value=format_value(draft.get(col.key)),
                        type="number" if col.key == "age" else "text",
                        id=f"field-{i}",
                    )
            with Horizontal(id="modal-buttons"):
                yield Button("Save", variant="primary", id="btn-save")
                yield Button("Cancel", id="btn-cancel")

    @on(Button.Pressed, "#btn-save")
    def _on_save(self) -> None:
        session = self._engine.session
        draft = session.draft
        for i, col in enumerate(self._columns):
            value = self.query_one(f"#field-{i}", Input).value
            # A field the row never had stays absent unless something was typed.
            if col.key not in draft and not value.strip():
                continue
            session.set_field(col.key, value)
        try:
            session.commit()
        except ValidationError as exc:
            self.notify(str(exc), severity="error")
            return
        except NotFoundError as exc:
            session.cancel()
            self.notify(str(exc), severity="error")
            self.dismiss(False)
            return
        self.dismiss(True)

    @on(Button.Pressed, "#btn-cancel")
    def _on_cancel(self) -> None:
        self.action_cancel()

    def action_cancel(self) -> None:
        self._engine.session.cancel()
        self.dismiss(False)


# ── Confirm Delete Modal ─────────────────────────────────────


class ConfirmDeleteModal(ModalScreen[bool]):
    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(self, row_id: int, **kw: Any) -> None:
        super().__init__(**kw)
        self._row_id = row_id

    def compose(self) -> ComposeResult:
        with Vertical(id="modal-dialog"):
            yield Label("Delete Row", id="modal-title")
            yield Label(f"Are you sure you want to delete row {self._row_id}?")
            with Horizontal(id="modal-buttons"):
                yield Button("Delete", variant="error", id="btn-confirm")
                yield Button("Cancel", id="btn-cancel")

    @on(Button.Pressed, "#btn-confirm")
    def _on_confirm(self) -> None:
        self.dismiss(True)

    @on(Button.Pressed, "#btn-cancel")
    def _on_cancel(self) -> None:
        self.dismiss(False)

    def action_cancel(self) -> None:
        self.dismiss(False)


# ── Main App ─────────────────────────────────────────────────


class TableManagerApp(App[None]):
    """TUI for searching, sorting and editing a table with dynamic columns."""

    TITLE = "Table Manager"
    SUB_TITLE = "Data Table Manager"

    CSS = """
    #main {
        height: 1fr;
        padding: 1 2;
    }

    #search {
        width: 100%;
    }

    #data-table {
        height: 1fr;
        min-height: 6;
        margin-top: 1;
    }

    #pager {
        height: 3;
        align: center middle;
    }

    #page-label {
        width: auto;
        padding: 1 2;
        color: $text-muted;
    }

    #button-bar {
        dock: bottom;
        height: auto;
        max-height: 4;
        margin-bottom: 1;
        padding: 0 1;
        layout: grid;
        grid-size: 6 1;
        grid-gutter: 0 1;
    }

    #button-bar Button {
        width: 100%;
        height: 3;
        min-width: 14;
    }

    /* ── modals ──────────────────────────────── */
    ModalScreen {
        align: center middle;
    }

    #modal-dialog {
        width: 80%;
        max-width: 80;
        height: auto;
        max-height: 90%;
        padding: 1 2;
        border: thick $primary;
        background: $surface;
    }

    #modal-title {
        text-style: bold;
        margin-bottom: 1;
    }

    #modal-buttons {
        margin-top: 1;
        height: 3;
    }

    #column-list, #file-list, #field-list {
        height: auto;
        max-height: 20;
        border: solid $primary;
        margin: 1 0;
    }

    .file-pick-btn {
        width: 100%;
        margin-bottom: 1;
    }

    .field-label {
        color: $text-muted;
    }
    """

    BINDINGS = [
        Binding("slash", "focus_search", "Search"),
        Binding("m", "manage_columns", "Columns"),
        Binding("i", "import_csv", "Import CSV"),
        Binding("e", "export_csv", "Export CSV"),
        Binding("delete", "delete_row", "Delete Row"),
        Binding("left_square_bracket", "prev_page", "Prev", key_display="["),
        Binding("right_square_bracket", "next_page", "Next", key_display="]"),
        Binding("t", "toggle_theme", "Theme"),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        config_path: str | Path | None = None,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        input_dir: str | Path = DEFAULT_INPUT_DIR,
        export_path: str | Path = DEFAULT_EXPORT_PATH,
        seed: bool = True,
        **kw: Any,
    ) -> None:
        super().__init__(**kw)
        self.config_path = storage.resolve_path(config_path)
        self.table_config, self._config_problem = storage.load_or_default(self.config_path)
        self.input_dir = Path(input_dir)
        self.export_path = Path(export_path)
        self.page_size = page_size

        self.engine = TableEngine(seed=seed)
        # Persisted columns go through the same path as live edits.
        self.engine.update_columns(self.table_config.columns)
        self.engine.schema_listeners.append(self._on_schema_changed)

        self.search_term = ""
        self.sort_spec = SortSpec()
        self.page_index = 0

    # ── compose ──────────────────────────────────────────────

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="main"):
            yield Input(placeholder="Search…", id="search")
            yield DataTable(id="data-table", cursor_type="row", zebra_stripes=True)
            with Horizontal(id="pager"):
                yield Button("◀ Prev", id="btn-prev")
                yield Label("", id="page-label")
                yield Button("Next ▶", id="btn-next")
        with Horizontal(id="button-bar"):
            yield Button("Manage Columns", id="btn-columns", variant="primary")
            yield Button("Import CSV", id="btn-import")
            yield Button("Export CSV", id="btn-export")
            yield Button("Delete Row", id="btn-delete")
            yield Button("Theme", id="btn-theme")
            yield Button("Quit", id="btn-quit", variant="error")
        yield Footer()

    def on_mount(self) -> None:
        self.theme = _THEMES[self.table_config.theme]
        self._refresh_table()
        if self._config_problem:
            self.notify(self._config_problem, severity="warning", timeout=10)

    # ── table refresh ────────────────────────────────────────

    def _current_view(self) -> ViewResult:
        result = self.engine.view(
            self.search_term, self.sort_spec, PageSpec(index=self.page_index, size=self.page_size),
        )
        last_page = page_count(result.total_count, self.page_size) - 1
        if self.page_index > last_page:
            self.page_index = last_page
            result = self.engine.view(
                self.search_term, self.sort_spec, PageSpec(index=self.page_index, size=self.page_size),
            )
        return result

    def _refresh_table(self) -> None:
        result = self._current_view()
        columns = self.engine.schema.list_visible()

        table = self.query_one("#data-table", DataTable)
        table.clear(columns=True)
        for col in columns:
            arrow = _SORT_ARROWS[self.sort_spec.direction] if self.sort_spec.key == col.key else ""
            table.add_column(col.label + arrow, key=col.key)
        if columns:
            for rec in result.rows:
                table.add_row(
                    *(format_value(rec.get(c.key)) for c in columns),
                    key=str(rec.id),
                )

        pages = page_count(result.total_count, self.page_size)
        self.query_one("#page-label", Label).update(
            f"Page {self.page_index + 1} of {pages} · {result.total_count} rows"
        )

    def _selected_row_id(self) -> int | None:
        table = self.query_one("#data-table", DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return int(row_key.value) if row_key.value is not None else None

    # ── persistence ──────────────────────────────────────────

    def _on_schema_changed(self, schema: ColumnSchema) -> None:
        self.table_config.columns = schema
        self._save_config()

    def _save_config(self) -> None:
        try:
            storage.save(self.table_config, self.config_path)
        except OSError as exc:
            logger.error("Could not save %s: %s", self.config_path, exc)
            self.notify(f"Could not save settings: {exc}", severity="warning")

    # ── table events ─────────────────────────────────────────

    @on(Input.Changed, "#search")
    def _on_search(self, event: Input.Changed) -> None:
        self.search_term = event.value
        self.page_index = 0
        self._refresh_table()

    @on(DataTable.HeaderSelected, "#data-table")
    def _on_header(self, event: DataTable.HeaderSelected) -> None:
        key = event.column_key.value
        if key is None:
            return
        self.sort_spec = self.sort_spec.toggled(key)
        self._refresh_table()

    @on(DataTable.RowSelected, "#data-table")
    def _on_row_selected(self, event: DataTable.RowSelected) -> None:
        if event.row_key.value is not None:
            self._start_edit(int(event.row_key.value))

    def _start_edit(self, row_id: int) -> None:
        try:
            self.engine.begin_edit(row_id)
        except NotFoundError as exc:
            self.notify(str(exc), severity="error")
            return
        self.push_screen(
            EditRowModal(self.engine, self.engine.schema.list_visible()),
            callback=self._on_edit_done,
        )

    def _on_edit_done(self, saved: bool | None) -> None:
        self._refresh_table()
        if saved:
            self.notify("Row saved")

    # ── actions ──────────────────────────────────────────────

    def action_focus_search(self) -> None:
        self.query_one("#search", Input).focus()

    def action_prev_page(self) -> None:
        if self.page_index > 0:
            self.page_index -= 1
            self._refresh_table()

    def action_next_page(self) -> None:
        total = self.engine.view(self.search_term, self.sort_spec).total_count
        if self.page_index + 1 < page_count(total, self.page_size):
            self.page_index += 1
            self._refresh_table()

    def action_manage_columns(self) -> None:
        self.push_screen(
            ManageColumnsModal(self.engine),
            callback=lambda _: self._refresh_table(),
        )

    def action_import_csv(self) -> None:
        self.push_screen(ImportCsvModal(self.input_dir), callback=self._on_csv_picked)

    def _on_csv_picked(self, path: Path | None) -> None:
        if path is None:
            return
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            self.notify(f"Error reading {path.name}: {exc}", severity="error")
            return
        try:
            created, result = self.engine.import_csv(text)
        except InvalidFormatError as exc:
            self.notify(str(exc), severity="error")
            return
        self._refresh_table()
        self.notify(
            f"Imported {len(created)} rows from {path.name} ({result.rejected} rejected)",
            severity="information" if not result.rejected else "warning",
        )

    def action_export_csv(self) -> None:
        text = self.engine.export_csv()
        try:
            self.export_path.parent.mkdir(parents=True, exist_ok=True)
            self.export_path.write_text(text, encoding="utf-8", newline="")
        except OSError as exc:
            self.notify(f"Export failed: {exc}", severity="error")
            return
        self.notify(f"Exported {len(self.engine.rows)} rows to {self.export_path}")

    def action_delete_row(self) -> None:
        row_id = self._selected_row_id()
        if row_id is None:
            self.notify("No row selected", severity="warning")
            return

        def _on_confirm(confirmed: bool | None) -> None:
            if confirmed:
                self.engine.delete_row(row_id)
                self._refresh_table()
                self.notify(f"Deleted row {row_id}")

        self.push_screen(ConfirmDeleteModal(row_id), callback=_on_confirm)

    def action_toggle_theme(self) -> None:
        self.table_config.theme = "dark" if self.table_config.theme == "light" else "light"
        self.theme = _THEMES[self.table_config.theme]
        self._save_config()

    def action_quit(self) -> None:
        self.exit()

    # ── button handlers ──────────────────────────────────────

    @on(Button.Pressed, "#btn-prev")
    def _btn_prev(self) -> None:
        self.action_prev_page()

    @on(Button.Pressed, "#btn-next")
    def _btn_next(self) -> None:
        self.action_next_page()

    @on(Button.Pressed, "#btn-columns")
    def _btn_columns(self) -> None:
        self.action_manage_columns()

    @on(Button.Pressed, "#btn-import")
    def _btn_import(self) -> None:
        self.action_import_csv()

    @on(Button.Pressed, "#btn-export")
    def _btn_export(self) -> None:
        self.action_export_csv()

    @on(Button.Pressed, "#btn-delete")
    def _btn_delete(self) -> None:
        self.action_delete_row()

    @on(Button.Pressed, "#btn-theme")
    def _btn_theme(self) -> None:
        self.action_toggle_theme()

    @on(Button.Pressed, "#btn-quit")
    def _btn_quit(self) -> None:
        self.action_quit()

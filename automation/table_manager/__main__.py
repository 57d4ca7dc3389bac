"""Entry point: python -m automation.table_manager [--path PATH] [--page-size N]"""

from __future__ import annotations

import argparse
import logging
import os

from textual.logging import TextualHandler

from .models import DEFAULT_PAGE_SIZE

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _positive_int(text: str) -> int:
    value = int(text)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return value


def _configure_logging(log_file: str | None, level: str) -> None:
    """Send log records to a file, or to the Textual devtools console."""
    handler: logging.Handler
    if log_file:
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    else:
        # A plain StreamHandler would draw over the TUI.
        handler = TextualHandler()
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), handlers=[handler])


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Table Manager — TUI for searching, sorting and editing tabular data",
    )
    parser.add_argument(
        "--path",
        default=None,
        help="Path to the settings JSON file (default: table_manager/config.json)",
    )
    parser.add_argument(
        "--page-size",
        type=_positive_int,
        default=DEFAULT_PAGE_SIZE,
        help=f"Rows per page (default: {DEFAULT_PAGE_SIZE})",
    )
    parser.add_argument(
        "--input-dir",
        default="input",
        help="Folder listed by the CSV import dialog (default: input)",
    )
    parser.add_argument(
        "--export-path",
        default="table-data.csv",
        help="File written by CSV export (default: table-data.csv)",
    )
    parser.add_argument(
        "--no-seed",
        action="store_true",
        help="Start with an empty table instead of the sample rows",
    )
    parser.add_argument("--log-file", default=None, help="Write log records to this file")
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="Logging level (default: $LOG_LEVEL or INFO)",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    _configure_logging(args.log_file, args.log_level)

    from .app import TableManagerApp

    app = TableManagerApp(
        config_path=args.path,
        page_size=args.page_size,
        input_dir=args.input_dir,
        export_path=args.export_path,
        seed=not args.no_seed,
    )
    app.run()


if __name__ == "__main__":
    main()

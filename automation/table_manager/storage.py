"""Read / write the table settings file (column layout and theme).

:func:`load` is strict.  The app starts through :func:`load_or_default`,
which never fails: a file that cannot be used is moved aside to
``<name>.invalid`` and the defaults are returned with a message saying
why, so the next save does not silently destroy the user's file.

Writes go to a temporary file first, then are renamed into place.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

import pydantic

from .models import TableConfig

logger = logging.getLogger(__name__)

DEFAULT_PATH = Path("table_manager") / "config.json"
INVALID_SUFFIX = ".invalid"

# A column layout is a few hundred bytes; anything this large is not ours.
_MAX_JSON_BYTES = 1024 * 1024


def resolve_path(path: str | Path | None = None) -> Path:
    """Return an absolute Path, falling back to DEFAULT_PATH."""
    p = Path(path) if path else DEFAULT_PATH
    return p.expanduser().resolve()


def load(path: str | Path | None = None) -> TableConfig:
    """Read and validate the settings file.  Returns defaults if missing.

    Raises ``RuntimeError`` for oversized files and
    ``pydantic.ValidationError`` for malformed JSON or an invalid schema.
    """
    p = resolve_path(path)
    if not p.exists():
        return TableConfig()

    size = p.stat().st_size
    if size > _MAX_JSON_BYTES:
        raise RuntimeError(
            f"{p.name} is {size / 1024:.0f} KB, "
            f"over the {_MAX_JSON_BYTES / 1024:.0f} KB limit for a settings file"
        )
    return TableConfig.model_validate_json(p.read_bytes())


def load_or_default(path: str | Path | None = None) -> tuple[TableConfig, str | None]:
    """Like :func:`load`, but fall back to defaults on any unusable file.

    Returns ``(config, problem)``; *problem* is ``None`` when the file was
    fine or absent, otherwise a message for the user.
    """
    p = resolve_path(path)
    try:
        return load(p), None
    except (pydantic.ValidationError, RuntimeError) as exc:
        reason = f"{type(exc).__name__}: {exc}"
    logger.warning("Ignoring settings file %s (%s)", p, reason)

    backup = p.with_name(p.name + INVALID_SUFFIX)
    try:
        os.replace(p, backup)
    except OSError as exc:
        logger.error("Could not move %s aside: %s", p, exc)
        return TableConfig(), f"Settings in {p.name} are invalid; using defaults"
    return TableConfig(), f"Settings in {p.name} are invalid; moved to {backup.name}, using defaults"


def save(config: TableConfig, path: str | Path | None = None) -> Path:
    """Atomically write *config* to *path*.  Creates parent dirs if needed."""
    p = resolve_path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp = tempfile.mkstemp(dir=p.parent, suffix=".tmp", prefix=".cfg_")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(config.model_dump_json(indent=2) + "\n")
        os.replace(tmp, p)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise
    return p

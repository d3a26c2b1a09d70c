"""File helpers for library export/import (naming, atomic writes, decoding)."""

from __future__ import annotations

import logging
import os
import tempfile
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING

from benchmark_hub.errors import ParseError
from benchmark_hub.export import (
    ImportSummary,
    format_records_as_csv,
    format_records_as_json,
    import_library_csv,
    import_library_json,
)

if TYPE_CHECKING:
    from benchmark_hub.store import CollectionStore

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("csv", "json")
EXPORT_FILENAME_PREFIX = "benchmark_library"


def build_export_path(directory: Path, fmt: str, today: date | None = None) -> Path:
    """Build ``<directory>/benchmark_library_YYYY-MM-DD.<fmt>``."""
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format: {fmt!r}")
    stamp = (today or date.today()).isoformat()
    return directory / f"{EXPORT_FILENAME_PREFIX}_{stamp}.{fmt}"


def write_export_file(path: Path, content: str) -> Path:
    """Write export content atomically (UTF-8) and return the path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp", prefix=".export-")
    closed = False
    try:
        os.write(fd, content.encode("utf-8"))
        os.close(fd)
        closed = True
        os.replace(tmp_path, path)
    except BaseException:
        if not closed:
            os.close(fd)
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
    return path


def read_import_file(path: Path) -> str:
    """Read an import file as text, dropping a leading BOM.

    Raises:
        ParseError: If the file is not valid UTF-8.
    """
    try:
        return path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as e:
        raise ParseError(f"Failed to parse file: {path.name} is not UTF-8 text") from e


def export_library_to_file(
    store: CollectionStore,
    directory: Path,
    fmt: str = "csv",
    today: date | None = None,
) -> Path | None:
    """Export the saved library; returns None when the library is empty."""
    if not store.library:
        return None
    path = build_export_path(directory, fmt, today)
    if fmt == "csv":
        content = format_records_as_csv(store.library)
    else:
        content = format_records_as_json(store.library)
    write_export_file(path, content)
    logger.info("Exported %d record(s) to %s", len(store.library), path)
    return path


def import_library_from_file(store: CollectionStore, path: Path) -> ImportSummary:
    """Import a .csv or .json file into the library, dispatching on suffix."""
    text = read_import_file(path)
    if path.suffix.lower() == ".json":
        return import_library_json(store, text)
    return import_library_csv(store, text)


__all__ = [
    "EXPORT_FORMATS",
    "build_export_path",
    "export_library_to_file",
    "import_library_from_file",
    "read_import_file",
    "write_export_file",
]

"""Library import/export: CSV and JSON codecs, plus the comparison table."""

from __future__ import annotations

import csv
import io
import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from benchmark_hub.config import record_to_dict
from benchmark_hub.errors import ParseError
from benchmark_hub.identity import normalize_records
from benchmark_hub.models import BenchmarkRecord

if TYPE_CHECKING:
    from benchmark_hub.store import CollectionStore

logger = logging.getLogger(__name__)

UTF8_BOM = "\ufeff"
CSV_HEADER = (
    "Title",
    "Source",
    "Authors",
    "Year",
    "Paper Link",
    "GitHub Link",
    "Item Count",
    "Specs",
    "Description",
)
CSV_MIN_COLUMNS = len(CSV_HEADER)
# Title, Source, Paper Link are written on one line; a newline in them on import is a broken row.
_SINGLE_LINE_COLUMNS = (0, 1, 4)
AUTHOR_SEPARATOR = ", "


@dataclass(slots=True)
class ImportSummary:
    """Outcome of one import: rows added, duplicates skipped, invalid rows skipped."""

    added: int = 0
    duplicates: int = 0
    invalid: int = 0

    @property
    def message(self) -> str:
        parts = [f"Imported {self.added} dataset(s)"]
        if self.duplicates:
            parts.append(f"{self.duplicates} already in library")
        if self.invalid:
            parts.append(f"{self.invalid} invalid row(s) skipped")
        return ", ".join(parts)


# ============================================================================
# CSV
# ============================================================================


def _single_line(value: str) -> str:
    return " ".join(value.splitlines())


def format_records_as_csv(records: Sequence[BenchmarkRecord]) -> str:
    """Format records as CSV: every value quoted, newline-joined rows, leading BOM."""
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for record in records:
        writer.writerow(
            [
                _single_line(record.title),
                _single_line(record.source),
                AUTHOR_SEPARATOR.join(record.authors),
                record.year or "",
                _single_line(record.paper_link),
                record.github_link or "",
                record.item_count or "",
                record.specs or "",
                record.description,
            ]
        )
    return UTF8_BOM + output.getvalue().rstrip("\n")


def _row_to_raw(row: list[str]) -> dict[str, Any]:
    return {
        "title": row[0],
        "source": row[1],
        "authors": [a.strip() for a in row[2].split(",") if a.strip()],
        "year": row[3],
        "paperLink": row[4],
        "githubLink": row[5],
        "itemCount": row[6],
        "specs": row[7],
        "description": row[8],
    }


def parse_csv_records(text: str) -> tuple[list[dict[str, Any]], int]:
    """Parse library CSV into raw record dicts.

    The first row is the header and is skipped, as are blank rows. Rows with
    fewer than CSV_MIN_COLUMNS columns count as invalid, and so do rows whose
    title, source, or paper link spans lines (an unclosed quote swallows the
    following line into the row).

    Returns:
        Tuple of (raw_records, invalid_row_count).

    Raises:
        ParseError: If the text is not parseable as CSV.
    """
    text = text.removeprefix(UTF8_BOM)
    try:
        rows = list(csv.reader(io.StringIO(text)))
    except csv.Error as e:
        raise ParseError(f"Failed to parse file: {e}") from e

    raws: list[dict[str, Any]] = []
    invalid = 0
    for line_number, row in enumerate(rows[1:], start=2):
        if not any(cell.strip() for cell in row):
            continue
        if len(row) < CSV_MIN_COLUMNS:
            logger.debug("Skipping CSV row %d with %d columns", line_number, len(row))
            invalid += 1
            continue
        if any("\n" in row[i] or "\r" in row[i] for i in _SINGLE_LINE_COLUMNS):
            logger.debug("Skipping CSV row %d with a multi-line key field", line_number)
            invalid += 1
            continue
        raws.append(_row_to_raw(row))
    return raws, invalid


# ============================================================================
# JSON
# ============================================================================


def format_records_as_json(records: Sequence[BenchmarkRecord]) -> str:
    """Serialize records as a JSON array in their camelCase storage shape."""
    return json.dumps([record_to_dict(r) for r in records], indent=2, ensure_ascii=False)


def parse_json_records(text: str) -> tuple[list[dict[str, Any]], int]:
    """Parse a JSON array of records.

    Returns:
        Tuple of (raw_records, invalid_entry_count) where entries that are not
        objects or lack a title or paperLink count as invalid.

    Raises:
        ParseError: If the text is not JSON or not an array.
    """
    try:
        data = json.loads(text.removeprefix(UTF8_BOM))
    except json.JSONDecodeError as e:
        raise ParseError(f"Failed to parse file: {e}") from e
    if not isinstance(data, list):
        raise ParseError("Failed to parse file: expected a JSON array")

    raws: list[dict[str, Any]] = []
    invalid = 0
    for entry in data:
        if (
            not isinstance(entry, dict)
            or not isinstance(entry.get("title"), str)
            or not entry["title"].strip()
            or not isinstance(entry.get("paperLink"), str)
            or not entry["paperLink"].strip()
        ):
            invalid += 1
            continue
        raws.append(entry)
    return raws, invalid


# ============================================================================
# Import into the store
# ============================================================================


def _import_raw(store: CollectionStore, raws: list[dict[str, Any]], invalid: int) -> ImportSummary:
    records = normalize_records(raws, store.minter)
    invalid += len(raws) - len(records)
    added = store.save_many(records)
    summary = ImportSummary(
        added=len(added),
        duplicates=len(records) - len(added),
        invalid=invalid,
    )
    logger.info("Import finished: %s", summary.message)
    return summary


def import_library_csv(store: CollectionStore, text: str) -> ImportSummary:
    """Import CSV into the library, skipping records whose paper link is already saved."""
    raws, invalid = parse_csv_records(text)
    return _import_raw(store, raws, invalid)


def import_library_json(store: CollectionStore, text: str) -> ImportSummary:
    """Import a JSON array into the library.

    Every entry goes through the same normalization as search results: any
    ``id`` is replaced by a freshly minted surrogate id, ``paperLink`` is
    stripped of surrounding whitespace, an unknown ``source`` label becomes
    "Other", and keys outside the record fields are dropped. Entries whose
    paper link is already saved count as duplicates.
    """
    raws, invalid = parse_json_records(text)
    return _import_raw(store, raws, invalid)


# ============================================================================
# Comparison
# ============================================================================

COMPARISON_ROWS: tuple[tuple[str, str], ...] = (
    ("Academic Source", "source"),
    ("Year", "year"),
    ("Lead Authors", "authors"),
    ("Dataset Size", "item_count"),
    ("Specs / Modalities", "specs"),
    ("Methodology & Purpose", "description"),
    ("Paper", "paper_link"),
    ("GitHub", "github_link"),
)


def _comparison_cell(record: BenchmarkRecord, attr: str) -> str:
    value = getattr(record, attr)
    if attr == "authors":
        value = AUTHOR_SEPARATOR.join(value)
    text = value or "N/A"
    return text.replace("|", "\\|").replace("\n", " ")


def format_comparison_as_markdown(records: Sequence[BenchmarkRecord]) -> str:
    """Format selected records as a side-by-side Markdown comparison table."""
    if not records:
        return ""
    titles = [r.title.replace("|", "\\|") for r in records]
    lines = [
        "| Feature | " + " | ".join(titles) + " |",
        "|---------|" + "|".join("---" for _ in records) + "|",
    ]
    for label, attr in COMPARISON_ROWS:
        cells = [_comparison_cell(r, attr) for r in records]
        lines.append(f"| {label} | " + " | ".join(cells) + " |")
    return "\n".join(lines)


__all__ = [
    "CSV_HEADER",
    "CSV_MIN_COLUMNS",
    "UTF8_BOM",
    "ImportSummary",
    "format_comparison_as_markdown",
    "format_records_as_csv",
    "format_records_as_json",
    "import_library_csv",
    "import_library_json",
    "parse_csv_records",
    "parse_json_records",
]

"""View projection: pick a source collection, filter it, and sort it."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from benchmark_hub.models import (
    SOURCE_FILTER_ALL,
    VIEW_SOURCES,
    BenchmarkRecord,
    SortConfig,
)

if TYPE_CHECKING:
    from benchmark_hub.store import CollectionStore


def _searchable_text(record: BenchmarkRecord) -> str:
    parts = [
        record.title,
        record.description,
        record.source,
        record.year or "",
        record.specs or "",
        record.item_count or "",
        " ".join(record.authors),
    ]
    return " ".join(parts).lower()


def record_matches_text(record: BenchmarkRecord, text_filter: str) -> bool:
    """Case-insensitive substring match over the record's descriptive fields.

    The same rule applies to every view: title, description, source, year,
    specs, item count, and authors.
    """
    needle = text_filter.strip().lower()
    if not needle:
        return True
    return needle in _searchable_text(record)


def parse_year(year: str | None) -> int:
    """Parse a free-form year string to int; non-numeric or missing is 0."""
    if not year:
        return 0
    try:
        return int(year.strip())
    except ValueError:
        return 0


def filter_records(
    records: Sequence[BenchmarkRecord],
    text_filter: str = "",
    source_filter: str = SOURCE_FILTER_ALL,
) -> list[BenchmarkRecord]:
    """Apply the free-text and source-type filters, preserving order."""
    return [
        record
        for record in records
        if (source_filter == SOURCE_FILTER_ALL or record.source == source_filter)
        and record_matches_text(record, text_filter)
    ]


def sort_records(records: Sequence[BenchmarkRecord], sort: SortConfig) -> list[BenchmarkRecord]:
    """Stable sort by year (as integer) or title (case-insensitive).

    Equal keys keep their input order in both directions.
    """
    reverse = sort.order == "desc"
    if sort.field == "year":
        return sorted(records, key=lambda r: parse_year(r.year), reverse=reverse)
    return sorted(records, key=lambda r: r.title.lower(), reverse=reverse)


def source_collection(
    store: CollectionStore,
    source: str,
    list_id: str | None = None,
) -> list[BenchmarkRecord]:
    """Return the records backing a view source."""
    if source == "search":
        return list(store.search_results)
    if source == "feed":
        return list(store.curated_feed)
    if source == "library":
        return list(store.library)
    if source == "list":
        if list_id is None:
            return []
        return store.records_in_list(list_id)
    raise ValueError(f"Unknown view source: {source!r} (expected one of {VIEW_SOURCES})")


def project_view(
    store: CollectionStore,
    source: str,
    *,
    list_id: str | None = None,
    text_filter: str = "",
    source_filter: str = SOURCE_FILTER_ALL,
    sort: SortConfig | None = None,
) -> list[BenchmarkRecord]:
    """Compute the displayed sequence for a view.

    The source-type filter only applies to the search-results view. Without a
    sort config the collection's own order is kept.
    """
    records = source_collection(store, source, list_id)
    effective_source_filter = source_filter if source == "search" else SOURCE_FILTER_ALL
    visible = filter_records(records, text_filter, effective_source_filter)
    if sort is not None:
        visible = sort_records(visible, sort)
    return visible


__all__ = [
    "filter_records",
    "parse_year",
    "project_view",
    "record_matches_text",
    "sort_records",
    "source_collection",
]

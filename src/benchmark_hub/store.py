"""Collection store: search results, curated feed, saved library, and named lists.

The library is the only durably persisted collection. Library, lists,
settings, and query history are written through to storage after every
accepted mutation.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from benchmark_hub.config import (
    load_history,
    load_library,
    load_lists,
    load_settings,
    save_history,
    save_library,
    save_lists,
    save_settings,
)
from benchmark_hub.errors import ValidationError
from benchmark_hub.identity import SurrogateIdMinter, merge_by_natural_key, normalize_records
from benchmark_hub.models import (
    MAX_HISTORY,
    MODEL_CHOICES,
    SEED_LIBRARY_SIZE,
    AppSettings,
    BenchmarkRecord,
    GroundingSource,
    NamedList,
)
from benchmark_hub.selection import SelectionSet
from benchmark_hub.storage import KeyValueStore

logger = logging.getLogger(__name__)


class CollectionStore:
    """Application state for the three record collections plus lists and settings."""

    def __init__(
        self,
        storage: KeyValueStore,
        *,
        minter: SurrogateIdMinter | None = None,
        selection: SelectionSet | None = None,
    ) -> None:
        self.storage = storage
        self.minter = minter or SurrogateIdMinter()
        self.selection = selection if selection is not None else SelectionSet()
        self.search_results: list[BenchmarkRecord] = []
        self.curated_feed: list[BenchmarkRecord] = []
        self.library: list[BenchmarkRecord] = []
        self.lists: list[NamedList] = []
        self.settings = AppSettings()
        self.history: list[str] = []
        self.seeded = False

    # ── Startup ──────────────────────────────────────────────────────────

    def startup(self, feed_records: Iterable[Mapping[str, Any]]) -> None:
        """Load persisted state and the curated feed.

        When no library snapshot was ever stored, the library is seeded with
        the first SEED_LIBRARY_SIZE feed records and persisted, so seeding
        happens at most once per storage.
        """
        self.set_curated_feed(feed_records)
        stored_library = load_library(self.storage)
        self.lists = load_lists(self.storage)
        self.settings = load_settings(self.storage)
        self.history = load_history(self.storage)

        if stored_library is None:
            self.library = [
                self._library_copy(record) for record in self.curated_feed[:SEED_LIBRARY_SIZE]
            ]
            self.seeded = True
            logger.info("Seeded new library with %d curated records", len(self.library))
            self._persist_library()
        else:
            self.library = stored_library
            self.minter.reserve(record.surrogate_id for record in stored_library)

        self.minter.reserve(lst.list_id for lst in self.lists)
        library_ids = {record.surrogate_id for record in self.library}
        for lst in self.lists:
            lst.member_ids &= library_ids

    def set_curated_feed(self, feed_records: Iterable[Mapping[str, Any]]) -> None:
        records = normalize_records(feed_records, self.minter)
        self.curated_feed, _ = merge_by_natural_key([], records)

    # ── Search results ───────────────────────────────────────────────────

    def ingest_search_results(
        self,
        raw_records: Iterable[Mapping[str, Any]],
        grounding: Iterable[GroundingSource] = (),
    ) -> list[BenchmarkRecord]:
        """Replace the search-results slot with freshly normalized records."""
        records = normalize_records(raw_records, self.minter, tuple(grounding))
        self.search_results, _ = merge_by_natural_key([], records)
        return self.search_results

    def clear_search_results(self) -> None:
        self.search_results = []

    # ── Library ──────────────────────────────────────────────────────────

    def _library_copy(self, record: BenchmarkRecord) -> BenchmarkRecord:
        return dataclasses.replace(
            record,
            surrogate_id=self.minter.mint(),
            authors=list(record.authors),
        )

    def is_saved(self, natural_key: str) -> bool:
        return any(record.paper_link == natural_key for record in self.library)

    def library_record(self, natural_key: str) -> BenchmarkRecord | None:
        for record in self.library:
            if record.paper_link == natural_key:
                return record
        return None

    def find_live_record(self, natural_key: str) -> BenchmarkRecord | None:
        """Find a record with this paper link in library, search results, or feed."""
        for collection in (self.library, self.search_results, self.curated_feed):
            for record in collection:
                if record.paper_link == natural_key:
                    return record
        return None

    def _add_to_library(self, records: Sequence[BenchmarkRecord]) -> list[BenchmarkRecord]:
        copies = [self._library_copy(record) for record in records]
        self.library, added = merge_by_natural_key(self.library, copies)
        return added

    def save_to_library(self, record: BenchmarkRecord) -> bool:
        """Save a copy of ``record``; no-op if its paper link is already saved."""
        added = self._add_to_library([record])
        if not added:
            return False
        self._persist_library()
        return True

    def save_many(self, records: Sequence[BenchmarkRecord]) -> list[BenchmarkRecord]:
        """Save several records with one write; returns the library copies added."""
        added = self._add_to_library(records)
        if added:
            self._persist_library()
        return added

    def save_all_results(self) -> int:
        return len(self.save_many(self.search_results))

    def remove_from_library(self, surrogate_id: str) -> bool:
        """Remove a library record, pruning it from every list and the selection."""
        removed = next((r for r in self.library if r.surrogate_id == surrogate_id), None)
        if removed is None:
            return False
        self.library = [r for r in self.library if r.surrogate_id != surrogate_id]
        touched_lists = False
        for lst in self.lists:
            if surrogate_id in lst.member_ids:
                lst.member_ids.discard(surrogate_id)
                touched_lists = True
        if self.find_live_record(removed.paper_link) is None:
            self.selection.discard(removed.paper_link)
        self._persist_library()
        if touched_lists:
            self._persist_lists()
        return True

    # ── Named lists ──────────────────────────────────────────────────────

    def get_list(self, list_id: str) -> NamedList | None:
        for lst in self.lists:
            if lst.list_id == list_id:
                return lst
        return None

    def create_list(self, name: str) -> NamedList:
        name = name.strip() if isinstance(name, str) else ""
        if not name:
            raise ValidationError("List name cannot be empty")
        named_list = NamedList(
            list_id=f"list-{self.minter.mint()}",
            name=name,
            created_at=datetime.now(UTC).isoformat(),
        )
        self.lists.append(named_list)
        self._persist_lists()
        return named_list

    def delete_list(self, list_id: str) -> bool:
        remaining = [lst for lst in self.lists if lst.list_id != list_id]
        if len(remaining) == len(self.lists):
            return False
        self.lists = remaining
        self._persist_lists()
        return True

    def toggle_list_membership(self, surrogate_id: str, list_id: str) -> bool | None:
        """Add or remove a library record from a list.

        Returns the new membership, or None if the record is not in the
        library or the list does not exist.
        """
        named_list = self.get_list(list_id)
        if named_list is None:
            return None
        if not any(record.surrogate_id == surrogate_id for record in self.library):
            return None
        if surrogate_id in named_list.member_ids:
            named_list.member_ids.discard(surrogate_id)
            member = False
        else:
            named_list.member_ids.add(surrogate_id)
            member = True
        self._persist_lists()
        return member

    def records_in_list(self, list_id: str) -> list[BenchmarkRecord]:
        named_list = self.get_list(list_id)
        if named_list is None:
            return []
        return [record for record in self.library if record.surrogate_id in named_list.member_ids]

    def lists_for_record(self, surrogate_id: str) -> list[NamedList]:
        return [lst for lst in self.lists if surrogate_id in lst.member_ids]

    # ── Settings & history ───────────────────────────────────────────────

    def update_settings(self, *, model: str) -> None:
        if model not in MODEL_CHOICES:
            raise ValidationError(f"Unknown model: {model!r}")
        self.settings.model = model
        save_settings(self.storage, self.settings)

    def record_query(self, query: str) -> list[str]:
        """Push a query onto the most-recent-first history (deduped case-insensitively)."""
        query = query.strip()
        if not query:
            return self.history
        folded = query.casefold()
        self.history = [query, *(q for q in self.history if q.casefold() != folded)][:MAX_HISTORY]
        save_history(self.storage, self.history)
        return self.history

    def clear_history(self) -> None:
        self.history = []
        save_history(self.storage, self.history)

    # ── Persistence ──────────────────────────────────────────────────────

    def _persist_library(self) -> None:
        save_library(self.storage, self.library)

    def _persist_lists(self) -> None:
        save_lists(self.storage, self.lists)


__all__ = [
    "CollectionStore",
]

"""Comparison selection keyed by paper link, spanning every collection."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
from typing import TYPE_CHECKING

from benchmark_hub.models import BenchmarkRecord

if TYPE_CHECKING:
    from benchmark_hub.store import CollectionStore

_LIBRARY_VIEWS = frozenset({"library", "list"})


class SelectionSet:
    """Set of selected natural keys.

    Selection is never narrowed implicitly by switching views: keys chosen in
    one view stay selected while another view is displayed.
    """

    __slots__ = ("_keys",)

    def __init__(self, keys: Iterable[str] = ()) -> None:
        self._keys: set[str] = set(keys)

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._keys))

    def __len__(self) -> int:
        return len(self._keys)

    @property
    def keys(self) -> frozenset[str]:
        return frozenset(self._keys)

    def toggle(self, key: str) -> bool:
        """Flip membership of ``key``. Returns True if it is now selected."""
        if key in self._keys:
            self._keys.discard(key)
            return False
        self._keys.add(key)
        return True

    def select_all_visible(self, visible_keys: Iterable[str]) -> None:
        """Select every visible key, or unselect them all if already selected."""
        visible = set(visible_keys)
        if not visible:
            return
        if visible <= self._keys:
            self._keys -= visible
        else:
            self._keys |= visible

    def all_selected(self, visible_keys: Iterable[str]) -> bool:
        visible = set(visible_keys)
        return bool(visible) and visible <= self._keys

    def discard(self, key: str) -> None:
        self._keys.discard(key)

    def clear(self) -> None:
        self._keys.clear()

    def bulk_save_selected(
        self,
        visible_records: Sequence[BenchmarkRecord],
        save: Callable[[BenchmarkRecord], bool],
        *,
        active_source: str,
    ) -> int:
        """Save every visible selected record via ``save``; return how many were added.

        Outside a library view, the visible keys are then released from the
        selection; keys selected in other views stay selected.
        """
        targets = [r for r in visible_records if r.paper_link in self._keys]
        added = sum(1 for record in targets if save(record))
        if active_source not in _LIBRARY_VIEWS:
            self._keys -= {record.paper_link for record in visible_records}
        return added

    def selected_records(self, store: CollectionStore) -> list[BenchmarkRecord]:
        """Resolve selected keys to live records, in library-then-results-then-feed order."""
        resolved: list[BenchmarkRecord] = []
        seen: set[str] = set()
        for collection in (store.library, store.search_results, store.curated_feed):
            for record in collection:
                if record.paper_link in self._keys and record.paper_link not in seen:
                    seen.add(record.paper_link)
                    resolved.append(record)
        return resolved


__all__ = [
    "SelectionSet",
]

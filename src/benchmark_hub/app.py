"""BenchmarkHub application state. Wires the store, views, selection, and search.

A UI shell owns one ``BenchmarkHub`` instance and calls its methods from
event handlers; every method runs to completion on the event loop thread.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import httpx

from benchmark_hub.config import default_storage
from benchmark_hub.export import format_comparison_as_markdown
from benchmark_hub.llm_providers import resolve_provider
from benchmark_hub.models import (
    SOURCE_FILTER_ALL,
    SOURCE_TAGS,
    VIEW_SOURCES,
    BenchmarkRecord,
    SortConfig,
)
from benchmark_hub.retrieval import TICK_INTERVAL_SECONDS, RetrievalController, RetrievalSession
from benchmark_hub.selection import SelectionSet
from benchmark_hub.services.feed_service import FEED_REQUEST_TIMEOUT, get_feed_url
from benchmark_hub.services.interfaces import AppServices, build_default_app_services
from benchmark_hub.services.retrieval_service import (
    DEFAULT_RETRIEVAL_TIMEOUT_SECONDS,
    RetrievalResponse,
)
from benchmark_hub.storage import KeyValueStore
from benchmark_hub.store import CollectionStore
from benchmark_hub.views import project_view

logger = logging.getLogger(__name__)


class BenchmarkHub:
    """Application facade consumed by a UI shell."""

    def __init__(
        self,
        storage: KeyValueStore | None = None,
        *,
        services: AppServices | None = None,
        client: httpx.AsyncClient | None = None,
        feed_url: str | None = None,
        api_key: str | None = None,
        retrieval_timeout_seconds: int = DEFAULT_RETRIEVAL_TIMEOUT_SECONDS,
        tick_interval: float = TICK_INTERVAL_SECONDS,
        on_search_change: Callable[[RetrievalSession], None] | None = None,
    ) -> None:
        self.store = CollectionStore(storage if storage is not None else default_storage())
        self.services = services or build_default_app_services()
        self._client = client
        self._api_key = api_key
        self._retrieval_timeout_seconds = retrieval_timeout_seconds
        self.feed_url = feed_url if feed_url is not None else get_feed_url()
        self.retrieval = RetrievalController(
            self.store,
            self._retrieve,
            tick_interval=tick_interval,
            on_change=on_search_change,
        )
        self.active_source = "search"
        self.active_list_id: str | None = None
        self.text_filter = ""
        self.source_filter = SOURCE_FILTER_ALL
        self.sort: SortConfig | None = None

    @property
    def selection(self) -> SelectionSet:
        return self.store.selection

    async def startup(self) -> None:
        """Load the curated feed and persisted state."""
        feed = await self.services.feed.load(
            client=self._client,
            url=self.feed_url,
            timeout_seconds=FEED_REQUEST_TIMEOUT,
        )
        self.store.startup(feed)
        logger.info(
            "Started with %d library record(s), %d curated record(s)",
            len(self.store.library),
            len(self.store.curated_feed),
        )

    async def _retrieve(self, query: str) -> RetrievalResponse:
        provider = resolve_provider(self.store.settings, api_key=self._api_key)
        return await self.services.retrieval.search(
            query=query,
            provider=provider,
            timeout_seconds=self._retrieval_timeout_seconds,
        )

    # ── Search ───────────────────────────────────────────────────────────

    def start_search(self, query: str) -> RetrievalSession:
        """Submit a search and switch to the results view."""
        session = self.retrieval.start(query)
        self.active_source = "search"
        self.active_list_id = None
        return session

    async def search(self, query: str) -> RetrievalSession:
        session = self.start_search(query)
        await self.retrieval.wait()
        return session

    def cancel_search(self) -> bool:
        return self.retrieval.cancel()

    # ── Views ────────────────────────────────────────────────────────────

    def switch_view(self, source: str, list_id: str | None = None) -> None:
        """Change the displayed source. The selection is left untouched."""
        if source not in VIEW_SOURCES:
            raise ValueError(f"Unknown view source: {source!r}")
        if source == "list" and self.store.get_list(list_id or "") is None:
            raise ValueError(f"Unknown list: {list_id!r}")
        self.active_source = source
        self.active_list_id = list_id if source == "list" else None

    def set_filters(
        self,
        *,
        text_filter: str | None = None,
        source_filter: str | None = None,
        sort: SortConfig | None = None,
    ) -> None:
        if text_filter is not None:
            self.text_filter = text_filter
        if source_filter is not None:
            if source_filter != SOURCE_FILTER_ALL and source_filter not in SOURCE_TAGS:
                raise ValueError(f"Unknown source filter: {source_filter!r}")
            self.source_filter = source_filter
        if sort is not None:
            self.sort = sort

    def visible_records(self) -> list[BenchmarkRecord]:
        return project_view(
            self.store,
            self.active_source,
            list_id=self.active_list_id,
            text_filter=self.text_filter,
            source_filter=self.source_filter,
            sort=self.sort,
        )

    # ── Library & lists ──────────────────────────────────────────────────

    def delete_list(self, list_id: str) -> bool:
        """Delete a list; if it is on screen, fall back to the full library view."""
        deleted = self.store.delete_list(list_id)
        if deleted and self.active_source == "list" and self.active_list_id == list_id:
            self.switch_view("library")
        return deleted

    # ── Selection & comparison ───────────────────────────────────────────

    def toggle_selection(self, natural_key: str) -> bool:
        return self.selection.toggle(natural_key)

    def select_all_visible(self) -> None:
        self.selection.select_all_visible(r.paper_link for r in self.visible_records())

    def bulk_save_selected(self) -> int:
        return self.selection.bulk_save_selected(
            self.visible_records(),
            self.store.save_to_library,
            active_source=self.active_source,
        )

    def comparison_records(self) -> list[BenchmarkRecord]:
        return self.selection.selected_records(self.store)

    def comparison_markdown(self) -> str:
        return format_comparison_as_markdown(self.comparison_records())


__all__ = [
    "BenchmarkHub",
]

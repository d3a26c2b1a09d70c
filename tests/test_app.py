"""Tests for the BenchmarkHub application facade with fake services."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from benchmark_hub.app import BenchmarkHub
from benchmark_hub.errors import RetrievalError
from benchmark_hub.llm_providers import GeminiProvider
from benchmark_hub.models import LIBRARY_KEY, SEED_LIBRARY_SIZE, SortConfig
from benchmark_hub.services.interfaces import AppServices
from benchmark_hub.services.retrieval_service import RetrievalResponse
from benchmark_hub.storage import MemoryStore


def _raw(n: int, **extra: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "title": f"Benchmark {n}",
        "paperLink": f"https://arxiv.org/abs/2400.{n:05d}",
        "description": f"Description {n}",
        "source": "arXiv",
        "year": str(2010 + n),
    }
    data.update(extra)
    return data


class FakeFeedService:
    def __init__(self, records: list[dict[str, Any]]) -> None:
        self.records = records
        self.calls: list[dict[str, Any]] = []

    async def load(self, *, client, url: str, timeout_seconds: int) -> list[dict[str, Any]]:
        self.calls.append({"client": client, "url": url, "timeout_seconds": timeout_seconds})
        return [dict(r) for r in self.records]


class FakeRetrievalService:
    def __init__(self) -> None:
        self.responses: dict[str, RetrievalResponse | Exception] = {}
        self.providers: list[Any] = []

    async def search(self, *, query: str, provider, timeout_seconds: int) -> RetrievalResponse:
        self.providers.append(provider)
        await asyncio.sleep(0)
        outcome = self.responses[query]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def feed() -> FakeFeedService:
    return FakeFeedService([_raw(n) for n in range(1, 8)])


@pytest.fixture
def retrieval() -> FakeRetrievalService:
    return FakeRetrievalService()


@pytest.fixture
def make_hub(feed, retrieval):
    def _make(storage: MemoryStore | None = None, **kwargs: Any) -> BenchmarkHub:
        return BenchmarkHub(
            storage if storage is not None else MemoryStore(),
            services=AppServices(retrieval=retrieval, feed=feed),
            feed_url="https://feed.example/benchmarks.json",
            api_key="",
            **kwargs,
        )

    return _make


class TestStartup:
    async def test_first_launch_seeds_library(self, make_hub, feed):
        storage = MemoryStore()
        hub = make_hub(storage)
        await hub.startup()

        assert len(hub.store.curated_feed) == 7
        assert len(hub.store.library) == SEED_LIBRARY_SIZE
        assert hub.store.seeded is True
        assert storage.get(LIBRARY_KEY) is not None
        assert feed.calls[0]["url"] == "https://feed.example/benchmarks.json"

        feed_ids = {r.surrogate_id for r in hub.store.curated_feed}
        assert all(r.surrogate_id not in feed_ids for r in hub.store.library)

    async def test_second_launch_does_not_reseed(self, make_hub):
        storage = MemoryStore()
        first = make_hub(storage)
        await first.startup()
        for record in list(first.store.library):
            first.store.remove_from_library(record.surrogate_id)

        second = make_hub(storage)
        await second.startup()

        assert second.store.library == []
        assert second.store.seeded is False

    async def test_initial_view_is_search(self, make_hub):
        hub = make_hub()
        await hub.startup()
        assert hub.active_source == "search"
        assert hub.visible_records() == []


class TestSearch:
    async def test_search_populates_results(self, make_hub, retrieval):
        retrieval.responses["vision"] = RetrievalResponse(records=[_raw(20), _raw(21)])
        hub = make_hub()
        await hub.startup()
        hub.switch_view("library")

        session = await hub.search("vision")

        assert session.phase == "done"
        assert hub.active_source == "search"
        assert [r.title for r in hub.visible_records()] == ["Benchmark 20", "Benchmark 21"]
        assert hub.store.history == ["vision"]
        assert retrieval.providers == [None]

    async def test_failure_surfaces_message(self, make_hub, retrieval):
        retrieval.responses["q"] = RetrievalError("Failed to fetch benchmark data: HTTP 500")
        hub = make_hub()
        await hub.startup()

        session = await hub.search("q")

        assert session.phase == "failed"
        assert session.error_message == "Failed to fetch benchmark data: HTTP 500"

    async def test_cancel_search(self, make_hub, retrieval):
        retrieval.responses["slow"] = RetrievalResponse(records=[_raw(30)])
        hub = make_hub()
        await hub.startup()

        session = hub.start_search("slow")
        assert hub.cancel_search() is True
        await hub.retrieval.wait()

        assert session.phase == "cancelled"
        assert hub.store.search_results == []

    async def test_provider_resolved_from_settings(self, retrieval):
        retrieval.responses["q"] = RetrievalResponse(records=[])
        hub = BenchmarkHub(
            MemoryStore(),
            services=AppServices(retrieval=retrieval, feed=FakeFeedService([])),
            feed_url="",
            api_key="secret",
        )
        await hub.startup()
        await hub.search("q")

        assert isinstance(retrieval.providers[0], GeminiProvider)


class TestViews:
    async def test_switch_view_keeps_selection(self, make_hub):
        hub = make_hub()
        await hub.startup()
        key = hub.store.curated_feed[0].paper_link
        hub.switch_view("feed")
        hub.toggle_selection(key)

        hub.switch_view("library")
        assert key in hub.selection

    async def test_unknown_view_or_list(self, make_hub):
        hub = make_hub()
        await hub.startup()
        with pytest.raises(ValueError):
            hub.switch_view("archive")
        with pytest.raises(ValueError):
            hub.switch_view("list", "missing")

    async def test_filters_and_sort(self, make_hub):
        hub = make_hub()
        await hub.startup()
        hub.switch_view("feed")
        hub.set_filters(text_filter="benchmark", sort=SortConfig(field="year", order="asc"))

        years = [r.year for r in hub.visible_records()]
        assert years == sorted(years)

        hub.set_filters(text_filter="Description 3")
        assert [r.title for r in hub.visible_records()] == ["Benchmark 3"]

    async def test_unknown_source_filter(self, make_hub):
        hub = make_hub()
        await hub.startup()
        with pytest.raises(ValueError):
            hub.set_filters(source_filter="Reddit")

    async def test_deleting_active_list_falls_back_to_library(self, make_hub):
        hub = make_hub()
        await hub.startup()
        lst = hub.store.create_list("Favourites")
        hub.store.toggle_list_membership(hub.store.library[0].surrogate_id, lst.list_id)
        hub.switch_view("list", lst.list_id)
        assert len(hub.visible_records()) == 1

        assert hub.delete_list(lst.list_id) is True
        assert hub.active_source == "library"
        assert hub.active_list_id is None


class TestSelection:
    async def test_bulk_save_from_feed(self, make_hub):
        hub = make_hub()
        await hub.startup()
        hub.switch_view("feed")
        hub.select_all_visible()
        assert len(hub.selection) == 7

        added = hub.bulk_save_selected()

        assert added == 7 - SEED_LIBRARY_SIZE
        assert len(hub.store.library) == 7
        assert len(hub.selection) == 0

    async def test_select_all_twice_unselects(self, make_hub):
        hub = make_hub()
        await hub.startup()
        hub.switch_view("feed")
        hub.select_all_visible()
        hub.select_all_visible()
        assert len(hub.selection) == 0

    async def test_comparison_uses_live_records(self, make_hub):
        hub = make_hub()
        await hub.startup()
        hub.switch_view("feed")
        first, second = hub.store.curated_feed[5], hub.store.curated_feed[6]
        hub.toggle_selection(first.paper_link)
        hub.toggle_selection(second.paper_link)

        records = hub.comparison_records()
        assert [r.paper_link for r in records] == [first.paper_link, second.paper_link]
        assert hub.comparison_markdown().startswith("| Feature | Benchmark 6 | Benchmark 7 |")

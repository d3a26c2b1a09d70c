"""Shared test fixtures for BenchmarkHub tests."""

from __future__ import annotations

import itertools
from typing import Any

import pytest

from benchmark_hub.models import BenchmarkRecord
from benchmark_hub.storage import MemoryStore
from benchmark_hub.store import CollectionStore

# ── Factories ────────────────────────────────────────────────────────────────


@pytest.fixture
def make_record():
    """Factory fixture for BenchmarkRecord instances with sensible defaults.

    Surrogate ids default to ``rec-<n>`` and paper links to a unique arXiv URL.
    """
    counter = itertools.count(1)

    def _make(
        paper_link: str | None = None,
        title: str = "Test Benchmark",
        description: str = "A benchmark for tests.",
        source: str = "arXiv",
        surrogate_id: str | None = None,
        github_link: str | None = None,
        item_count: str | None = None,
        specs: str | None = None,
        year: str | None = "2024",
        authors: list[str] | None = None,
    ) -> BenchmarkRecord:
        n = next(counter)
        return BenchmarkRecord(
            surrogate_id=surrogate_id or f"rec-{n}",
            paper_link=paper_link or f"https://arxiv.org/abs/2401.{n:05d}",
            title=title,
            description=description,
            source=source,
            github_link=github_link,
            item_count=item_count,
            specs=specs,
            year=year,
            authors=list(authors) if authors is not None else ["Test Author"],
        )

    return _make


@pytest.fixture
def raw_record():
    """Factory fixture for raw camelCase record dicts as produced by collaborators."""

    def _make(paper_link: str, title: str = "Raw Benchmark", **extra: Any) -> dict[str, Any]:
        data: dict[str, Any] = {
            "title": title,
            "paperLink": paper_link,
            "description": "Raw description.",
        }
        data.update(extra)
        return data

    return _make


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def store(memory_store) -> CollectionStore:
    """A started CollectionStore with an empty feed and empty library."""
    collection_store = CollectionStore(memory_store)
    collection_store.startup([])
    return collection_store

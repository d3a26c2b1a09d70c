"""Service interfaces + default adapters for app-level dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import httpx

from benchmark_hub.llm_providers import LLMProvider
from benchmark_hub.services import feed_service as _feed
from benchmark_hub.services import retrieval_service as _retrieval
from benchmark_hub.services.retrieval_service import RetrievalResponse


@runtime_checkable
class RetrievalService(Protocol):
    """Interface for the dataset search collaborator."""

    async def search(
        self,
        *,
        query: str,
        provider: LLMProvider | None,
        timeout_seconds: int,
    ) -> RetrievalResponse:
        """Search for datasets; raises RetrievalError on failure."""
        ...


@runtime_checkable
class FeedService(Protocol):
    """Interface for the curated feed collaborator."""

    async def load(
        self,
        *,
        client: httpx.AsyncClient | None,
        url: str,
        timeout_seconds: int,
    ) -> list[dict[str, Any]]:
        """Load raw feed records, falling back to the built-in set."""
        ...


class DefaultRetrievalService:
    """Default adapter that delegates to the function-based retrieval service."""

    async def search(
        self,
        *,
        query: str,
        provider: LLMProvider | None,
        timeout_seconds: int,
    ) -> RetrievalResponse:
        return await _retrieval.search_benchmark_datasets(
            query=query,
            provider=provider,
            timeout_seconds=timeout_seconds,
        )


class DefaultFeedService:
    """Default adapter that delegates to the function-based feed service."""

    async def load(
        self,
        *,
        client: httpx.AsyncClient | None,
        url: str,
        timeout_seconds: int,
    ) -> list[dict[str, Any]]:
        return await _feed.load_curated_feed(client=client, url=url, timeout=timeout_seconds)


@dataclass(slots=True)
class AppServices:
    """Aggregated service interfaces consumed by the app layer."""

    retrieval: RetrievalService
    feed: FeedService


def build_default_app_services() -> AppServices:
    """Build default app services backed by the function-based modules."""
    return AppServices(
        retrieval=DefaultRetrievalService(),
        feed=DefaultFeedService(),
    )


__all__ = [
    "AppServices",
    "FeedService",
    "RetrievalService",
    "build_default_app_services",
]

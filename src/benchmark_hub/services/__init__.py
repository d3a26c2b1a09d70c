"""Internal service layer for retrieval and curated-feed collaborators."""

from benchmark_hub.services.feed_service import (
    fallback_feed,
    fetch_curated_feed,
    load_curated_feed,
)
from benchmark_hub.services.retrieval_service import (
    RetrievalResponse,
    search_benchmark_datasets,
)

__all__ = [
    "RetrievalResponse",
    "fallback_feed",
    "fetch_curated_feed",
    "load_curated_feed",
    "search_benchmark_datasets",
]

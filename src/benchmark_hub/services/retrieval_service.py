"""Dataset retrieval service: prompt the LLM provider and parse its dataset list."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from benchmark_hub.errors import RetrievalError
from benchmark_hub.llm import build_search_prompt, parse_dataset_response
from benchmark_hub.llm_providers import LLMProvider
from benchmark_hub.models import GroundingSource

logger = logging.getLogger(__name__)

DEFAULT_RETRIEVAL_TIMEOUT_SECONDS = 120


@dataclass(slots=True)
class RetrievalResponse:
    """Raw records returned by one retrieval call, plus citation provenance."""

    records: list[dict[str, Any]]
    grounding: tuple[GroundingSource, ...] = ()


async def search_benchmark_datasets(
    *,
    query: str,
    provider: LLMProvider | None,
    timeout_seconds: int = DEFAULT_RETRIEVAL_TIMEOUT_SECONDS,
) -> RetrievalResponse:
    """Run one dataset search.

    Raises:
        RetrievalError: No provider, provider failure, or malformed output.
    """
    if provider is None:
        raise RetrievalError(
            "No LLM provider configured. Set GEMINI_API_KEY or API_KEY."
        )
    prompt = build_search_prompt(query)
    result = await provider.execute(prompt, timeout_seconds)
    if not result.success:
        logger.warning("Dataset search failed for %r: %s", query, result.error)
        raise RetrievalError(f"Failed to fetch benchmark data: {result.error}")

    records = parse_dataset_response(result.output)
    if records is None:
        raise RetrievalError("Failed to fetch benchmark data: the model returned malformed output")
    logger.info("Dataset search for %r returned %d records", query, len(records))
    return RetrievalResponse(records=records, grounding=tuple(result.grounding))


__all__ = [
    "DEFAULT_RETRIEVAL_TIMEOUT_SECONDS",
    "RetrievalResponse",
    "search_benchmark_datasets",
]

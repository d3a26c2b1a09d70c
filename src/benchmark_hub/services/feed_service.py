"""Curated benchmark feed: a static JSON document with a built-in fallback set."""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx

logger = logging.getLogger(__name__)

FEED_URL_ENV_VAR = "BENCHMARK_HUB_FEED_URL"
FEED_REQUEST_TIMEOUT = 15  # seconds

FALLBACK_FEED: tuple[dict[str, Any], ...] = (
    {
        "title": "MMLU: Measuring Massive Multitask Language Understanding",
        "source": "arXiv",
        "paperLink": "https://arxiv.org/abs/2009.03300",
        "githubLink": "https://github.com/hendrycks/test",
        "description": (
            "Multiple-choice questions across 57 subjects spanning STEM, the humanities, "
            "and the social sciences, used to measure broad world knowledge."
        ),
        "itemCount": "15,908 questions",
        "specs": "Text, multiple choice",
        "year": "2020",
        "authors": ["Dan Hendrycks", "Collin Burns", "Steven Basart"],
    },
    {
        "title": "ImageNet: A Large-Scale Hierarchical Image Database",
        "source": "Scholar",
        "paperLink": "https://ieeexplore.ieee.org/document/5206848",
        "description": (
            "Image classification benchmark organized by the WordNet hierarchy, "
            "the standard pretraining and evaluation set for vision models."
        ),
        "itemCount": "14M images",
        "specs": "Images, 1000-class labels (ILSVRC subset)",
        "year": "2009",
        "authors": ["Jia Deng", "Wei Dong", "Richard Socher", "Li-Jia Li", "Kai Li", "Li Fei-Fei"],
    },
    {
        "title": "SQuAD: 100,000+ Questions for Machine Comprehension of Text",
        "source": "Hugging Face",
        "paperLink": "https://arxiv.org/abs/1606.05250",
        "githubLink": "https://github.com/rajpurkar/SQuAD-explorer",
        "description": (
            "Reading comprehension dataset of crowd-sourced questions on Wikipedia "
            "articles where each answer is a span of the passage."
        ),
        "itemCount": "107,785 question-answer pairs",
        "specs": "Text, extractive QA",
        "year": "2016",
        "authors": ["Pranav Rajpurkar", "Jian Zhang", "Konstantin Lopyrev", "Percy Liang"],
    },
)


def fallback_feed() -> list[dict[str, Any]]:
    """Return a fresh copy of the built-in fallback records."""
    return [dict(item) for item in FALLBACK_FEED]


def get_feed_url() -> str:
    return os.environ.get(FEED_URL_ENV_VAR, "").strip()


async def fetch_curated_feed(
    client: httpx.AsyncClient,
    url: str,
    timeout: int = FEED_REQUEST_TIMEOUT,
) -> list[dict[str, Any]] | None:
    """Fetch the curated feed document.

    Returns None on any failure. Never raises.
    """
    try:
        response = await client.get(url, timeout=timeout)
    except httpx.HTTPError:
        logger.warning("Curated feed request failed", exc_info=True)
        return None
    if response.status_code != 200:
        logger.warning("Curated feed returned %d", response.status_code)
        return None
    try:
        data = response.json()
    except ValueError:
        logger.warning("Curated feed returned invalid JSON", exc_info=True)
        return None
    if not isinstance(data, list):
        logger.warning("Curated feed is not a JSON array")
        return None
    return [item for item in data if isinstance(item, dict)]


async def load_curated_feed(
    *,
    client: httpx.AsyncClient | None,
    url: str,
    timeout: int = FEED_REQUEST_TIMEOUT,
) -> list[dict[str, Any]]:
    """Load the curated feed, silently substituting the fallback set on failure."""
    records: list[dict[str, Any]] | None = None
    if url:
        if client is not None:
            records = await fetch_curated_feed(client, url, timeout)
        else:
            async with httpx.AsyncClient() as tmp_client:
                records = await fetch_curated_feed(tmp_client, url, timeout)
    else:
        logger.info("No curated feed URL configured")
    if records is None:
        logger.warning("Using built-in fallback feed (%d records)", len(FALLBACK_FEED))
        return fallback_feed()
    return records


__all__ = [
    "FALLBACK_FEED",
    "FEED_URL_ENV_VAR",
    "fallback_feed",
    "fetch_curated_feed",
    "get_feed_url",
    "load_curated_feed",
]

"""Dataset search prompt, structured-output schema, and model response parsing."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from benchmark_hub.models import GroundingSource

logger = logging.getLogger(__name__)

# ============================================================================
# Prompt & Schema
# ============================================================================

SEARCH_PROMPT_TEMPLATE = """\
Search for benchmark datasets related to the topic: "{query}".
Focus on finding information from arXiv, Hugging Face (datasets), Google Scholar, \
and Semantic Scholar.

For each unique benchmark found, extract:
1. Dataset Title
2. Primary Paper Link (arXiv or official source)
3. GitHub repository link (if available)
4. Dataset count/size (e.g., number of samples, storage size)
5. Specifications (data format, modalities like text/image/audio)
6. Brief description of the benchmark's purpose
7. Publication year and primary authors

Format the results as a JSON array of objects with the keys: title, source, \
paperLink, githubLink, description, itemCount, specs, year, authors.
"""

RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "title": {"type": "STRING"},
            "source": {
                "type": "STRING",
                "description": "One of: arXiv, Hugging Face, Scholar, Semantic Scholar",
            },
            "paperLink": {"type": "STRING"},
            "githubLink": {"type": "STRING"},
            "description": {"type": "STRING"},
            "itemCount": {"type": "STRING"},
            "specs": {"type": "STRING"},
            "year": {"type": "STRING"},
            "authors": {"type": "ARRAY", "items": {"type": "STRING"}},
        },
        "required": ["title", "paperLink", "description"],
    },
}

_MARKDOWN_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)
_JSON_ARRAY_RE = re.compile(r"\[.*\]", re.DOTALL)


def build_search_prompt(query: str) -> str:
    """Build the dataset search prompt for a user query."""
    return SEARCH_PROMPT_TEMPLATE.format(query=query.replace('"', "'").strip())


# ============================================================================
# Response Parsing
# ============================================================================


def _extract_records(data: Any) -> list[dict[str, Any]] | None:
    if isinstance(data, dict):
        for key in ("datasets", "results", "items"):
            if isinstance(data.get(key), list):
                data = data[key]
                break
    if not isinstance(data, list):
        return None
    return [item for item in data if isinstance(item, dict)]


def parse_dataset_response(text: str) -> list[dict[str, Any]] | None:
    """Parse the model's dataset list.

    Tries multiple strategies:
    1. Direct JSON parse
    2. Strip markdown fences then JSON parse
    3. Outermost [...] span

    Returns the list of raw record dicts, or None if parsing fails.
    """
    stripped = text.strip()
    if not stripped:
        return []

    candidates = [stripped]
    fence_match = _MARKDOWN_FENCE_RE.search(stripped)
    if fence_match:
        candidates.append(fence_match.group(1))
    array_match = _JSON_ARRAY_RE.search(stripped)
    if array_match:
        candidates.append(array_match.group(0))

    for candidate in candidates:
        try:
            result = _extract_records(json.loads(candidate))
        except (json.JSONDecodeError, ValueError, TypeError):
            continue
        if result is not None:
            return result

    logger.debug("Could not parse dataset response: %.200s", stripped)
    return None


def parse_grounding_chunks(chunks: Any) -> list[GroundingSource]:
    """Extract citation sources from grounding chunks (web or maps), dropping uri-less ones."""
    if not isinstance(chunks, list):
        return []
    sources: list[GroundingSource] = []
    for chunk in chunks:
        if not isinstance(chunk, dict):
            continue
        web = chunk.get("web") if isinstance(chunk.get("web"), dict) else {}
        maps = chunk.get("maps") if isinstance(chunk.get("maps"), dict) else {}
        uri = web.get("uri") or maps.get("uri")
        if not isinstance(uri, str) or not uri:
            continue
        title = web.get("title") or maps.get("title") or ""
        sources.append(GroundingSource(uri=uri, title=title if isinstance(title, str) else ""))
    return sources


__all__ = [
    "RESPONSE_SCHEMA",
    "SEARCH_PROMPT_TEMPLATE",
    "build_search_prompt",
    "parse_dataset_response",
    "parse_grounding_chunks",
]

"""Record identity: surrogate id minting, field normalization, natural-key merging.

Every origin (search results, curated feed, CSV/JSON import, save actions)
funnels raw records through ``normalize_record`` and merges them with
``merge_by_natural_key``. Equality is defined by paper link alone.
"""

from __future__ import annotations

import itertools
import logging
import time
from collections.abc import Iterable, Mapping
from typing import Any

from benchmark_hub.models import (
    SOURCE_ARXIV,
    SOURCE_HUGGINGFACE,
    SOURCE_OTHER,
    SOURCE_SCHOLAR,
    SOURCE_SEMANTIC_SCHOLAR,
    SOURCE_TAGS,
    BenchmarkRecord,
    GroundingSource,
)

logger = logging.getLogger(__name__)

_SOURCE_ALIASES: dict[str, str] = {
    "arxiv": SOURCE_ARXIV,
    "hugging face": SOURCE_HUGGINGFACE,
    "huggingface": SOURCE_HUGGINGFACE,
    "hf": SOURCE_HUGGINGFACE,
    "scholar": SOURCE_SCHOLAR,
    "google scholar": SOURCE_SCHOLAR,
    "semantic scholar": SOURCE_SEMANTIC_SCHOLAR,
    "semanticscholar": SOURCE_SEMANTIC_SCHOLAR,
    "s2": SOURCE_SEMANTIC_SCHOLAR,
    "other": SOURCE_OTHER,
}


class SurrogateIdMinter:
    """Mints surrogate ids that are never handed out twice.

    Ids look like ``<epoch-ms>-<seq>``. Ids seen elsewhere (e.g. loaded from
    storage) can be reserved so a fresh mint never collides with them.
    """

    __slots__ = ("_clock", "_counter", "_issued")

    def __init__(self, clock=time.time_ns) -> None:
        self._clock = clock
        self._counter = itertools.count()
        self._issued: set[str] = set()

    def reserve(self, ids: Iterable[str]) -> None:
        """Mark existing ids as taken."""
        self._issued.update(ids)

    def mint(self) -> str:
        while True:
            candidate = f"{self._clock() // 1_000_000}-{next(self._counter)}"
            if candidate not in self._issued:
                self._issued.add(candidate)
                return candidate


def normalize_source_tag(value: Any) -> str:
    """Map a free-form source label onto one of SOURCE_TAGS (default "Other")."""
    if not isinstance(value, str) or not value.strip():
        return SOURCE_OTHER
    if value in SOURCE_TAGS:
        return value
    return _SOURCE_ALIASES.get(value.strip().lower(), SOURCE_OTHER)


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if not isinstance(value, str):
        return None
    return value or None


def _normalize_authors(value: Any) -> list[str]:
    if isinstance(value, str):
        return [a.strip() for a in value.split(",") if a.strip()]
    if isinstance(value, (list, tuple)):
        return [str(a).strip() for a in value if isinstance(a, str) and a.strip()]
    return []


def _normalize_grounding(value: Any) -> tuple[GroundingSource, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    sources: list[GroundingSource] = []
    for item in value:
        if isinstance(item, GroundingSource):
            sources.append(item)
        elif isinstance(item, Mapping):
            uri = item.get("uri")
            if isinstance(uri, str) and uri:
                title = item.get("title")
                if not isinstance(title, str):
                    title = ""
                sources.append(GroundingSource(uri=uri, title=title))
    return tuple(sources)


def normalize_record(
    raw: Mapping[str, Any],
    minter: SurrogateIdMinter,
    grounding: Iterable[GroundingSource] | None = None,
) -> BenchmarkRecord | None:
    """Build a BenchmarkRecord from a raw camelCase mapping.

    A fresh surrogate id is always minted; any ``id`` in ``raw`` is ignored.
    Returns None when the title or paper link is missing.
    """
    title = raw.get("title")
    paper_link = raw.get("paperLink")
    if not isinstance(title, str) or not title.strip():
        return None
    if not isinstance(paper_link, str) or not paper_link.strip():
        return None

    description = raw.get("description")
    if grounding is not None:
        sources = tuple(grounding)
    else:
        sources = _normalize_grounding(raw.get("groundingSources"))
    return BenchmarkRecord(
        surrogate_id=minter.mint(),
        paper_link=paper_link.strip(),
        title=title,
        description=description if isinstance(description, str) else "",
        source=normalize_source_tag(raw.get("source")),
        github_link=_optional_str(raw.get("githubLink")),
        item_count=_optional_str(raw.get("itemCount")),
        specs=_optional_str(raw.get("specs")),
        year=_optional_str(raw.get("year")),
        authors=_normalize_authors(raw.get("authors")),
        grounding_sources=sources,
    )


def normalize_records(
    raws: Iterable[Mapping[str, Any]],
    minter: SurrogateIdMinter,
    grounding: Iterable[GroundingSource] | None = None,
) -> list[BenchmarkRecord]:
    """Normalize many raw records, dropping those without title or paper link."""
    shared = tuple(grounding) if grounding is not None else None
    records: list[BenchmarkRecord] = []
    for raw in raws:
        if not isinstance(raw, Mapping):
            continue
        record = normalize_record(raw, minter, shared)
        if record is None:
            logger.debug("Dropping raw record without title/paperLink: %r", raw)
            continue
        records.append(record)
    return records


def merge_by_natural_key(
    existing: Iterable[BenchmarkRecord],
    incoming: Iterable[BenchmarkRecord],
) -> tuple[list[BenchmarkRecord], list[BenchmarkRecord]]:
    """Merge incoming records into existing ones, first write wins.

    Returns ``(merged, added)``. Existing records are never modified; an
    incoming record whose paper link is already present (in ``existing`` or
    earlier in ``incoming``) is discarded.
    """
    merged = list(existing)
    seen = {record.paper_link for record in merged}
    added: list[BenchmarkRecord] = []
    for record in incoming:
        if record.paper_link in seen:
            continue
        seen.add(record.paper_link)
        merged.append(record)
        added.append(record)
    return merged, added


__all__ = [
    "SurrogateIdMinter",
    "merge_by_natural_key",
    "normalize_record",
    "normalize_records",
    "normalize_source_tag",
]

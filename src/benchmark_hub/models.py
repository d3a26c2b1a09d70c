"""Data models and constants for the BenchmarkHub research library."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

# Application identity, single source of truth for platformdirs paths
CONFIG_APP_NAME = "benchmark-hub"

# Source tags, in display form
SOURCE_ARXIV = "arXiv"
SOURCE_HUGGINGFACE = "Hugging Face"
SOURCE_SCHOLAR = "Scholar"
SOURCE_SEMANTIC_SCHOLAR = "Semantic Scholar"
SOURCE_OTHER = "Other"
SOURCE_TAGS = (
    SOURCE_ARXIV,
    SOURCE_HUGGINGFACE,
    SOURCE_SCHOLAR,
    SOURCE_SEMANTIC_SCHOLAR,
    SOURCE_OTHER,
)
SOURCE_FILTER_ALL = "All"

# Model choices for the retrieval collaborator
MODEL_CHOICES = (
    "gemini-3-pro-preview",
    "gemini-3-flash-preview",
    "gemini-flash-lite-latest",
)
DEFAULT_MODEL = "gemini-3-flash-preview"

# Sort options
SORT_FIELDS = ("year", "title")
SORT_ORDERS = ("asc", "desc")

# Library seeding and history limits
SEED_LIBRARY_SIZE = 5
MAX_HISTORY = 8

# Durable storage keys
LIBRARY_KEY = "benchmark_hub_saved"
LISTS_KEY = "benchmark_hub_lists"
SETTINGS_KEY = "benchmark_hub_settings"
HISTORY_KEY = "benchmark_hub_history"
STORAGE_KEYS = (LIBRARY_KEY, LISTS_KEY, SETTINGS_KEY, HISTORY_KEY)

ViewSource = Literal["search", "feed", "library", "list"]
VIEW_SOURCES: tuple[str, ...] = ("search", "feed", "library", "list")


@dataclass(frozen=True, slots=True)
class GroundingSource:
    """Citation provenance attached to a retrieved record."""

    uri: str
    title: str = ""


@dataclass(slots=True)
class BenchmarkRecord:
    """A benchmark dataset entry.

    ``paper_link`` is the natural key: two records with the same paper link
    describe the same dataset. ``surrogate_id`` identifies one instance.
    """

    surrogate_id: str
    paper_link: str
    title: str
    description: str = ""
    source: str = SOURCE_OTHER
    github_link: str | None = None
    item_count: str | None = None
    specs: str | None = None
    year: str | None = None
    authors: list[str] = field(default_factory=list)
    grounding_sources: tuple[GroundingSource, ...] = ()

    @property
    def natural_key(self) -> str:
        return self.paper_link


@dataclass(slots=True)
class NamedList:
    """A user-defined list referencing library records by surrogate id."""

    list_id: str
    name: str
    member_ids: set[str] = field(default_factory=set)
    created_at: str = ""  # ISO 8601 timestamp, set on creation


@dataclass(slots=True)
class AppSettings:
    """Process-wide user settings."""

    model: str = DEFAULT_MODEL


@dataclass(frozen=True, slots=True)
class SortConfig:
    """Sort field and direction for a projected view."""

    field: str = "year"
    order: str = "desc"

    def __post_init__(self) -> None:
        if self.field not in SORT_FIELDS:
            raise ValueError(f"Unknown sort field: {self.field!r}")
        if self.order not in SORT_ORDERS:
            raise ValueError(f"Unknown sort order: {self.order!r}")


__all__ = [
    "CONFIG_APP_NAME",
    "DEFAULT_MODEL",
    "HISTORY_KEY",
    "LIBRARY_KEY",
    "LISTS_KEY",
    "MAX_HISTORY",
    "MODEL_CHOICES",
    "SEED_LIBRARY_SIZE",
    "SETTINGS_KEY",
    "SORT_FIELDS",
    "SORT_ORDERS",
    "SOURCE_ARXIV",
    "SOURCE_FILTER_ALL",
    "SOURCE_HUGGINGFACE",
    "SOURCE_OTHER",
    "SOURCE_SCHOLAR",
    "SOURCE_SEMANTIC_SCHOLAR",
    "SOURCE_TAGS",
    "STORAGE_KEYS",
    "VIEW_SOURCES",
    "AppSettings",
    "BenchmarkRecord",
    "GroundingSource",
    "NamedList",
    "SortConfig",
    "ViewSource",
]

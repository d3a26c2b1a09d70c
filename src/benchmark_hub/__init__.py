"""BenchmarkHub: search, curate, and compare benchmark datasets."""

from benchmark_hub.app import BenchmarkHub
from benchmark_hub.errors import ParseError, RetrievalError, ValidationError
from benchmark_hub.export import (
    ImportSummary,
    format_comparison_as_markdown,
    format_records_as_csv,
    format_records_as_json,
    import_library_csv,
    import_library_json,
)
from benchmark_hub.identity import SurrogateIdMinter, merge_by_natural_key, normalize_record
from benchmark_hub.models import (
    AppSettings,
    BenchmarkRecord,
    GroundingSource,
    NamedList,
    SortConfig,
)
from benchmark_hub.retrieval import RetrievalController, RetrievalSession
from benchmark_hub.selection import SelectionSet
from benchmark_hub.storage import JsonFileStore, KeyValueStore, MemoryStore
from benchmark_hub.store import CollectionStore
from benchmark_hub.views import project_view

__all__ = [
    "AppSettings",
    "BenchmarkHub",
    "BenchmarkRecord",
    "CollectionStore",
    "GroundingSource",
    "ImportSummary",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "NamedList",
    "ParseError",
    "RetrievalController",
    "RetrievalError",
    "RetrievalSession",
    "SelectionSet",
    "SortConfig",
    "SurrogateIdMinter",
    "ValidationError",
    "format_comparison_as_markdown",
    "format_records_as_csv",
    "format_records_as_json",
    "import_library_csv",
    "import_library_json",
    "merge_by_natural_key",
    "normalize_record",
    "project_view",
]

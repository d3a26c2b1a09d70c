"""Persistence of library, lists, settings, and query history.

Validation contract: loaders guarantee valid output for any stored input:

  Value      Rule                                      Handler
  ─────────  ────────────────────────────────────────  ──────────────────
  library    entries need id, title, paperLink         dict_to_record
  library    paper links unique (first entry wins)     load_library
  lists      name non-empty, member ids are strings    _parse_lists
  settings   model in MODEL_CHOICES                    load_settings
  history    strings only, deduped, ≤ MAX_HISTORY      load_history

A missing key loads as None (library) or the default value; a corrupted
value is logged and replaced by the default.
"""

from __future__ import annotations

import json
import logging
import logging.handlers
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir, user_data_dir

from benchmark_hub.identity import normalize_source_tag
from benchmark_hub.models import (
    CONFIG_APP_NAME,
    DEFAULT_MODEL,
    HISTORY_KEY,
    LIBRARY_KEY,
    LISTS_KEY,
    MAX_HISTORY,
    MODEL_CHOICES,
    SETTINGS_KEY,
    AppSettings,
    BenchmarkRecord,
    GroundingSource,
    NamedList,
)
from benchmark_hub.storage import JsonFileStore, KeyValueStore

logger = logging.getLogger(__name__)

DEBUG_LOG_FILENAME = "debug.log"


def get_data_dir() -> Path:
    """Get the directory holding persisted library state.

    Uses platformdirs for a cross-platform location:
    - Linux: ~/.local/share/benchmark-hub/
    - macOS: ~/Library/Application Support/benchmark-hub/
    - Windows: %LOCALAPPDATA%/benchmark-hub/
    """
    return Path(user_data_dir(CONFIG_APP_NAME))


def default_storage() -> JsonFileStore:
    """Storage backend rooted at the platform data directory."""
    return JsonFileStore(get_data_dir())


def configure_logging(debug: bool) -> None:
    """Configure logging. When debug=True, logs to file at DEBUG level."""
    if not debug:
        # Default: suppress all logging (the UI shell owns stderr)
        logging.disable(logging.CRITICAL)
        return

    log_dir = Path(user_config_dir(CONFIG_APP_NAME))
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / DEBUG_LOG_FILENAME

    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    logging.root.addHandler(handler)
    logging.root.setLevel(logging.DEBUG)


# ============================================================================
# Record (de)serialization
# ============================================================================


def _safe_get(data: dict, key: str, default: Any, expected_type: type) -> Any:
    """Safely get a value from dict with type validation.

    Returns the default if key is missing or value has wrong type.
    """
    value = data.get(key, default)
    if not isinstance(value, expected_type):
        return default
    return value


def record_to_dict(record: BenchmarkRecord) -> dict[str, Any]:
    """Serialize a record to its camelCase JSON shape (absent optionals omitted)."""
    data: dict[str, Any] = {
        "id": record.surrogate_id,
        "title": record.title,
        "source": record.source,
        "paperLink": record.paper_link,
        "description": record.description,
    }
    optional = {
        "githubLink": record.github_link,
        "itemCount": record.item_count,
        "specs": record.specs,
        "year": record.year,
    }
    data.update({key: value for key, value in optional.items() if value is not None})
    data["authors"] = list(record.authors)
    if record.grounding_sources:
        data["groundingSources"] = [
            {"uri": g.uri, "title": g.title} for g in record.grounding_sources
        ]
    return data


def _optional(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    return value if isinstance(value, str) and value else None


def dict_to_record(data: Any) -> BenchmarkRecord | None:
    """Deserialize a stored record, keeping its surrogate id.

    Returns None if id, title, or paperLink is missing or mistyped.
    """
    if not isinstance(data, dict):
        return None
    surrogate_id = _safe_get(data, "id", "", str)
    title = _safe_get(data, "title", "", str)
    paper_link = _safe_get(data, "paperLink", "", str)
    if not surrogate_id or not title or not paper_link:
        return None
    authors = _safe_get(data, "authors", [], list)
    grounding = _safe_get(data, "groundingSources", [], list)
    return BenchmarkRecord(
        surrogate_id=surrogate_id,
        paper_link=paper_link,
        title=title,
        description=_safe_get(data, "description", "", str),
        source=normalize_source_tag(data.get("source")),
        github_link=_optional(data, "githubLink"),
        item_count=_optional(data, "itemCount"),
        specs=_optional(data, "specs"),
        year=_optional(data, "year"),
        authors=[a for a in authors if isinstance(a, str)],
        grounding_sources=tuple(
            GroundingSource(uri=g["uri"], title=_safe_get(g, "title", "", str))
            for g in grounding
            if isinstance(g, dict) and isinstance(g.get("uri"), str) and g["uri"]
        ),
    )


def _list_to_dict(named_list: NamedList) -> dict[str, Any]:
    return {
        "id": named_list.list_id,
        "name": named_list.name,
        "datasetIds": sorted(named_list.member_ids),
        "createdAt": named_list.created_at,
    }


def _parse_lists(raw: Any) -> list[NamedList]:
    """Parse the stored lists document."""
    result: list[NamedList] = []
    if not isinstance(raw, list):
        return result
    seen_ids: set[str] = set()
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        list_id = _safe_get(entry, "id", "", str)
        name = _safe_get(entry, "name", "", str)
        if not list_id or not name.strip() or list_id in seen_ids:
            continue
        seen_ids.add(list_id)
        member_ids = _safe_get(entry, "datasetIds", [], list)
        result.append(
            NamedList(
                list_id=list_id,
                name=name,
                member_ids={m for m in member_ids if isinstance(m, str)},
                created_at=_safe_get(entry, "createdAt", "", str),
            )
        )
    return result


# ============================================================================
# Load / save of the four persisted values
# ============================================================================


def _read_json(storage: KeyValueStore, key: str) -> tuple[bool, Any]:
    """Read and decode one key. Returns (present, value); value is None if unreadable."""
    try:
        text = storage.get(key)
    except OSError as e:
        logger.warning("Could not read %s, using defaults: %s", key, e)
        return True, None
    if text is None:
        return False, None
    try:
        return True, json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning("Stored %s has invalid JSON, using defaults: %s", key, e)
        return True, None


def _write_json(storage: KeyValueStore, key: str, payload: Any) -> bool:
    try:
        storage.set(key, json.dumps(payload, indent=2, ensure_ascii=False))
    except OSError as e:
        logger.error("Failed to save %s: %s", key, e)
        return False
    return True


def load_library(storage: KeyValueStore) -> list[BenchmarkRecord] | None:
    """Load the saved library.

    Returns None only when no library snapshot was ever stored; a stored but
    unreadable snapshot loads as an empty library.
    """
    present, raw = _read_json(storage, LIBRARY_KEY)
    if not present:
        return None
    if not isinstance(raw, list):
        if raw is not None:
            logger.warning("Stored library is not a list, starting empty")
        return []
    records: list[BenchmarkRecord] = []
    seen_links: set[str] = set()
    seen_ids: set[str] = set()
    for entry in raw:
        record = dict_to_record(entry)
        if record is None:
            logger.debug("Skipping invalid stored record: %r", entry)
            continue
        if record.paper_link in seen_links or record.surrogate_id in seen_ids:
            continue
        seen_links.add(record.paper_link)
        seen_ids.add(record.surrogate_id)
        records.append(record)
    return records


def save_library(storage: KeyValueStore, records: list[BenchmarkRecord]) -> bool:
    return _write_json(storage, LIBRARY_KEY, [record_to_dict(r) for r in records])


def load_lists(storage: KeyValueStore) -> list[NamedList]:
    _, raw = _read_json(storage, LISTS_KEY)
    return _parse_lists(raw)


def save_lists(storage: KeyValueStore, lists: list[NamedList]) -> bool:
    return _write_json(storage, LISTS_KEY, [_list_to_dict(lst) for lst in lists])


def load_settings(storage: KeyValueStore) -> AppSettings:
    _, raw = _read_json(storage, SETTINGS_KEY)
    if not isinstance(raw, dict):
        return AppSettings()
    model = _safe_get(raw, "model", DEFAULT_MODEL, str)
    if model not in MODEL_CHOICES:
        logger.warning("Unknown model %r in settings, defaulting to %s", model, DEFAULT_MODEL)
        model = DEFAULT_MODEL
    return AppSettings(model=model)


def save_settings(storage: KeyValueStore, settings: AppSettings) -> bool:
    return _write_json(storage, SETTINGS_KEY, {"model": settings.model})


def load_history(storage: KeyValueStore) -> list[str]:
    _, raw = _read_json(storage, HISTORY_KEY)
    if not isinstance(raw, list):
        return []
    history: list[str] = []
    seen: set[str] = set()
    for entry in raw:
        if not isinstance(entry, str) or not entry.strip():
            continue
        folded = entry.strip().casefold()
        if folded in seen:
            continue
        seen.add(folded)
        history.append(entry.strip())
    return history[:MAX_HISTORY]


def save_history(storage: KeyValueStore, history: list[str]) -> bool:
    return _write_json(storage, HISTORY_KEY, list(history))


__all__ = [
    "DEBUG_LOG_FILENAME",
    "configure_logging",
    "default_storage",
    "dict_to_record",
    "get_data_dir",
    "load_history",
    "load_library",
    "load_lists",
    "load_settings",
    "record_to_dict",
    "save_history",
    "save_library",
    "save_lists",
    "save_settings",
]

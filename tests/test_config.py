"""Tests for persistence of library, lists, settings, and history."""

from __future__ import annotations

import json
import logging
import logging.handlers
from pathlib import Path
from unittest.mock import patch

import pytest

from benchmark_hub.config import (
    configure_logging,
    dict_to_record,
    get_data_dir,
    load_history,
    load_library,
    load_lists,
    load_settings,
    record_to_dict,
    save_history,
    save_library,
    save_lists,
    save_settings,
)
from benchmark_hub.models import (
    DEFAULT_MODEL,
    HISTORY_KEY,
    LIBRARY_KEY,
    LISTS_KEY,
    MAX_HISTORY,
    SETTINGS_KEY,
    AppSettings,
    GroundingSource,
    NamedList,
)
from benchmark_hub.storage import JsonFileStore, MemoryStore

# ============================================================================
# Records
# ============================================================================


class TestRecordSerialization:
    def test_round_trip_keeps_id_and_fields(self, make_record):
        record = make_record(github_link="https://github.com/x/y", item_count="1k", specs="Text")
        record.grounding_sources = (GroundingSource(uri="https://g", title="G"),)

        data = record_to_dict(record)
        assert data["id"] == record.surrogate_id
        assert data["paperLink"] == record.paper_link
        assert data["groundingSources"] == [{"uri": "https://g", "title": "G"}]
        assert dict_to_record(data) == record

    def test_absent_optionals_are_omitted(self, make_record):
        data = record_to_dict(make_record(year=None))
        assert "githubLink" not in data
        assert "year" not in data
        assert "groundingSources" not in data

    @pytest.mark.parametrize(
        "data",
        [
            None,
            [],
            {"title": "No id", "paperLink": "https://a"},
            {"id": "x", "paperLink": "https://a"},
            {"id": "x", "title": "No link"},
            {"id": 5, "title": "Bad id", "paperLink": "https://a"},
        ],
    )
    def test_invalid_entries(self, data):
        assert dict_to_record(data) is None

    def test_unknown_source_and_bad_authors(self):
        record = dict_to_record(
            {
                "id": "x",
                "title": "T",
                "paperLink": "https://a",
                "source": "Reddit",
                "authors": ["A", 3, None],
            }
        )
        assert record is not None
        assert record.source == "Other"
        assert record.authors == ["A"]


# ============================================================================
# Library
# ============================================================================


class TestLibrary:
    def test_missing_key_is_none(self):
        assert load_library(MemoryStore()) is None

    def test_corrupt_json_is_empty(self):
        assert load_library(MemoryStore({LIBRARY_KEY: "{not json"})) == []

    def test_non_list_is_empty(self):
        assert load_library(MemoryStore({LIBRARY_KEY: '{"a": 1}'})) == []

    def test_duplicates_and_invalid_entries_skipped(self):
        raw = [
            {"id": "1", "title": "A", "paperLink": "https://a"},
            {"id": "2", "title": "A again", "paperLink": "https://a"},
            {"id": "1", "title": "Same id", "paperLink": "https://b"},
            {"title": "No id", "paperLink": "https://c"},
            {"id": "3", "title": "C", "paperLink": "https://d"},
        ]
        records = load_library(MemoryStore({LIBRARY_KEY: json.dumps(raw)}))
        assert records is not None
        assert [(r.surrogate_id, r.paper_link) for r in records] == [
            ("1", "https://a"),
            ("3", "https://d"),
        ]

    def test_save_then_load(self, make_record):
        storage = MemoryStore()
        records = [make_record(), make_record()]
        assert save_library(storage, records) is True
        assert load_library(storage) == records

    def test_empty_saved_library_is_not_none(self):
        storage = MemoryStore()
        save_library(storage, [])
        assert load_library(storage) == []


# ============================================================================
# Lists, settings, history
# ============================================================================


class TestLists:
    def test_round_trip(self):
        storage = MemoryStore()
        lists = [NamedList(list_id="l1", name="Vision", member_ids={"b", "a"}, created_at="t")]
        save_lists(storage, lists)

        stored = json.loads(storage.get(LISTS_KEY))
        assert stored == [
            {"id": "l1", "name": "Vision", "datasetIds": ["a", "b"], "createdAt": "t"}
        ]
        assert load_lists(storage) == lists

    def test_invalid_entries_skipped(self):
        raw = [
            {"id": "l1", "name": "  ", "datasetIds": []},
            {"name": "No id"},
            {"id": "l2", "name": "Ok", "datasetIds": ["a", 1]},
            {"id": "l2", "name": "Dup id"},
            "junk",
        ]
        lists = load_lists(MemoryStore({LISTS_KEY: json.dumps(raw)}))
        assert [(lst.list_id, lst.member_ids) for lst in lists] == [("l2", {"a"})]

    def test_missing_is_empty(self):
        assert load_lists(MemoryStore()) == []


class TestSettings:
    def test_defaults(self):
        assert load_settings(MemoryStore()) == AppSettings()
        assert load_settings(MemoryStore()).model == DEFAULT_MODEL

    def test_round_trip(self):
        storage = MemoryStore()
        settings = AppSettings(model="gemini-3-pro-preview")
        save_settings(storage, settings)
        assert json.loads(storage.get(SETTINGS_KEY)) == {"model": "gemini-3-pro-preview"}
        assert load_settings(storage) == settings

    def test_unknown_model_falls_back(self):
        storage = MemoryStore({SETTINGS_KEY: '{"model": "gpt-2"}'})
        assert load_settings(storage).model == DEFAULT_MODEL


class TestHistory:
    def test_dedupes_and_caps(self):
        raw = ["a", "A ", "b", 3, "", *[f"q{i}" for i in range(20)]]
        history = load_history(MemoryStore({HISTORY_KEY: json.dumps(raw)}))
        assert history[:2] == ["a", "b"]
        assert len(history) == MAX_HISTORY

    def test_round_trip(self):
        storage = MemoryStore()
        save_history(storage, ["x", "y"])
        assert load_history(storage) == ["x", "y"]


class TestWriteFailures:
    def test_save_returns_false_on_os_error(self, make_record):
        storage = MemoryStore()
        with patch.object(MemoryStore, "set", side_effect=OSError("disk full")):
            assert save_library(storage, [make_record()]) is False

    def test_unreadable_key_loads_defaults(self):
        storage = MemoryStore()
        with patch.object(MemoryStore, "get", side_effect=OSError("denied")):
            assert load_library(storage) == []
            assert load_settings(storage) == AppSettings()


# ============================================================================
# Storage backends
# ============================================================================


class TestJsonFileStore:
    def test_set_get_delete(self, tmp_path: Path):
        storage = JsonFileStore(tmp_path / "data")
        assert storage.get("benchmark_hub_saved") is None

        storage.set("benchmark_hub_saved", "[]")
        assert storage.get("benchmark_hub_saved") == "[]"
        assert (tmp_path / "data" / "benchmark_hub_saved.json").exists()
        assert [p.name for p in (tmp_path / "data").iterdir()] == ["benchmark_hub_saved.json"]

        storage.delete("benchmark_hub_saved")
        storage.delete("benchmark_hub_saved")
        assert storage.get("benchmark_hub_saved") is None

    @pytest.mark.parametrize("key", ["../escape", "a/b", ""])
    def test_rejects_unsafe_keys(self, tmp_path: Path, key: str):
        with pytest.raises(ValueError, match="Invalid storage key"):
            JsonFileStore(tmp_path).get(key)

    def test_library_persists_across_instances(self, tmp_path: Path, make_record):
        record = make_record()
        save_library(JsonFileStore(tmp_path), [record])
        assert load_library(JsonFileStore(tmp_path)) == [record]


# ============================================================================
# Paths & logging
# ============================================================================


class TestPathsAndLogging:
    def test_data_dir_uses_app_name(self):
        with patch("benchmark_hub.config.user_data_dir", return_value="/tmp/bh") as data_dir:
            assert get_data_dir() == Path("/tmp/bh")
        data_dir.assert_called_once_with("benchmark-hub")

    def test_configure_logging_disabled_by_default(self):
        try:
            configure_logging(debug=False)
            assert logging.root.manager.disable >= logging.CRITICAL
        finally:
            logging.disable(logging.NOTSET)

    def test_configure_logging_creates_file_handler(self, tmp_path: Path):
        logging.disable(logging.NOTSET)
        before = list(logging.root.handlers)
        previous_level = logging.root.level

        with patch("benchmark_hub.config.user_config_dir", return_value=str(tmp_path)):
            configure_logging(debug=True)

        added = [h for h in logging.root.handlers if h not in before]
        try:
            assert len(added) == 1
            handler = added[0]
            assert isinstance(handler, logging.handlers.RotatingFileHandler)
            assert handler.maxBytes == 5 * 1024 * 1024
            assert handler.backupCount == 3
            assert handler.baseFilename == str(tmp_path / "debug.log")
            assert logging.root.level == logging.DEBUG
        finally:
            for handler in added:
                logging.root.removeHandler(handler)
                handler.close()
            logging.root.setLevel(previous_level)

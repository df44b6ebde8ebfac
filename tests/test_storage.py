"""Tests for key/value persistence helpers."""

import json

import pytest

from alert_engine.storage import (
    MemoryKeyValueStore,
    SQLiteKeyValueStore,
    append_bounded,
    load_json,
    save_json,
)


class TestSQLiteKeyValueStore:
    """Test SQLite-backed storage."""

    @pytest.fixture
    def temp_store(self, tmp_path):
        """Create a temporary database."""
        return SQLiteKeyValueStore(str(tmp_path / "engine.db"))

    def test_missing_key(self, temp_store):
        assert temp_store.get("nothing") is None

    def test_set_and_get(self, temp_store):
        temp_store.set("greeting", "bonjour")
        assert temp_store.get("greeting") == "bonjour"

    def test_overwrite(self, temp_store):
        temp_store.set("k", "1")
        temp_store.set("k", "2")
        assert temp_store.get("k") == "2"

    def test_persists_across_instances(self, tmp_path):
        path = str(tmp_path / "nested" / "engine.db")
        SQLiteKeyValueStore(path).set("k", "v")
        assert SQLiteKeyValueStore(path).get("k") == "v"


class TestJsonHelpers:
    def test_round_trip(self):
        store = MemoryKeyValueStore()
        assert save_json(store, "data", {"a": [1, 2]}) is True
        assert load_json(store, "data") == {"a": [1, 2]}

    def test_corrupt_value_is_absent(self):
        store = MemoryKeyValueStore({"data": "{broken"})
        assert load_json(store, "data") is None

    def test_missing_value_is_absent(self):
        assert load_json(MemoryKeyValueStore(), "data") is None

    def test_failed_write_returns_false(self):
        class BrokenStore(MemoryKeyValueStore):
            def set(self, key, value):
                raise OSError("disk full")

        assert save_json(BrokenStore(), "data", [1]) is False


class TestAppendBounded:
    def test_keeps_most_recent(self):
        store = MemoryKeyValueStore()
        for i in range(15):
            append_bounded(store, "logs", {"n": i}, limit=10)

        entries = json.loads(store.get("logs"))
        assert len(entries) == 10
        assert entries[0]["n"] == 5
        assert entries[-1]["n"] == 14

    def test_replaces_corrupt_list(self):
        store = MemoryKeyValueStore({"logs": '{"not": "a list"}'})
        entries = append_bounded(store, "logs", {"n": 1})
        assert entries == [{"n": 1}]

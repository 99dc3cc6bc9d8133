"""Unit tests for persistent usage counters."""

import json
import threading

import pytest

from imagestudio.utils.counters import (
    EDIT_COUNT_KEY,
    GENERATION_COUNT_KEY,
    FileStore,
    MemoryStore,
    UsageCounters,
)


@pytest.mark.unit
class TestUsageCounters:
    def test_missing_reads_zero(self):
        counters = UsageCounters(MemoryStore())
        assert counters.edit_count == 0
        assert counters.generation_count == 0

    def test_increment_is_monotonic(self):
        counters = UsageCounters(MemoryStore())
        values = [counters.record_edit() for _ in range(5)]
        assert values == [1, 2, 3, 4, 5]
        assert counters.edit_count == 5
        assert counters.generation_count == 0

    def test_values_stored_as_decimal_strings(self):
        store = MemoryStore()
        counters = UsageCounters(store)
        counters.record_generation()
        counters.record_generation()
        assert store.get(GENERATION_COUNT_KEY) == "2"

    @pytest.mark.parametrize("raw", ["abc", "", "-4"])
    def test_unparsable_values_read_as_zero(self, raw):
        counters = UsageCounters(MemoryStore({EDIT_COUNT_KEY: raw}))
        assert counters.edit_count == 0
        assert counters.record_edit() == 1

    def test_existing_value_continues(self):
        counters = UsageCounters(MemoryStore({EDIT_COUNT_KEY: "41"}))
        assert counters.record_edit() == 42

    def test_concurrent_increments(self):
        counters = UsageCounters(MemoryStore())

        def work():
            for _ in range(50):
                counters.record_edit()

        threads = [threading.Thread(target=work) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert counters.edit_count == 200


@pytest.mark.unit
class TestFileStore:
    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "state" / "usage.json"
        UsageCounters(FileStore(path)).record_edit()
        UsageCounters(FileStore(path)).record_edit()
        assert UsageCounters(FileStore(path)).edit_count == 2
        assert json.loads(path.read_text(encoding="utf-8")) == {EDIT_COUNT_KEY: "2"}

    def test_missing_file_reads_empty(self, tmp_path):
        store = FileStore(tmp_path / "none.json")
        assert store.get(EDIT_COUNT_KEY) is None

    def test_invalid_json_reads_empty(self, tmp_path):
        path = tmp_path / "usage.json"
        path.write_text("{not json", encoding="utf-8")
        counters = UsageCounters(FileStore(path))
        assert counters.edit_count == 0
        assert counters.record_edit() == 1

    def test_non_object_json_reads_empty(self, tmp_path):
        path = tmp_path / "usage.json"
        path.write_text("[1, 2]", encoding="utf-8")
        assert FileStore(path).get(EDIT_COUNT_KEY) is None

    def test_set_and_clear(self, tmp_path):
        store = FileStore(tmp_path / "usage.json")
        store.set(GENERATION_COUNT_KEY, "7")
        assert store.get(GENERATION_COUNT_KEY) == "7"
        store.clear()
        assert store.get(GENERATION_COUNT_KEY) is None

    def test_no_temp_files_left(self, tmp_path):
        store = FileStore(tmp_path / "usage.json")
        for _ in range(3):
            UsageCounters(store).record_generation()
        leftovers = [p.name for p in tmp_path.iterdir() if p.name.endswith(".tmp")]
        assert leftovers == []

    def test_concurrent_increments(self, tmp_path):
        path = tmp_path / "usage.json"

        def work():
            counters = UsageCounters(FileStore(path))
            for _ in range(10):
                counters.record_generation()

        threads = [threading.Thread(target=work) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert UsageCounters(FileStore(path)).generation_count == 40

"""
Unit tests for entity_store/storage.py
"""

import pytest

from entity_store import JsonFileStore, ValidationError


class TestJsonFileStore:
    """Record-per-file persistence."""

    def test_save_then_load(self, tmp_path):
        store = JsonFileStore(tmp_path / "things", "thing")
        store.save("abc", {"id": "abc", "value": 1})

        assert store.exists("abc")
        assert store.load("abc") == {"id": "abc", "value": 1}
        assert (tmp_path / "things" / "abc.json").exists()

    def test_load_missing_returns_none(self, tmp_path):
        store = JsonFileStore(tmp_path, "thing")
        assert store.load("nope") is None

    def test_delete(self, tmp_path):
        store = JsonFileStore(tmp_path, "thing")
        store.save("abc", {"id": "abc"})

        assert store.delete("abc") is True
        assert store.delete("abc") is False
        assert not store.exists("abc")

    def test_load_all_skips_corrupt_files(self, tmp_path):
        store = JsonFileStore(tmp_path, "thing")
        store.save("one", {"id": "one"})
        store.save("two", {"id": "two"})
        (tmp_path / "broken.json").write_text("{not json")

        ids = sorted(record["id"] for record in store.load_all())
        assert ids == ["one", "two"]

    def test_no_temp_files_left_behind(self, tmp_path):
        store = JsonFileStore(tmp_path, "thing")
        store.save("abc", {"id": "abc"})
        assert list(tmp_path.glob("*.tmp")) == []

    @pytest.mark.parametrize("bad_id", ["", "../escape", "a/b", ".hidden"])
    def test_rejects_unsafe_ids(self, tmp_path, bad_id):
        store = JsonFileStore(tmp_path, "thing")
        with pytest.raises(ValidationError):
            store.load(bad_id)

    def test_lock_is_reentrant_within_thread(self, tmp_path):
        store = JsonFileStore(tmp_path, "thing")
        with store.locked():
            with store.locked():
                store.save("abc", {"id": "abc"})
            assert store.load("abc") == {"id": "abc"}

        # Released: a fresh acquisition must not block
        with store.locked():
            assert store.delete("abc") is True

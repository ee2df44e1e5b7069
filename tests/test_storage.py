"""Tests for flat-file JSON persistence."""

import pytest
from unittest.mock import patch

from callrelay.storage import JsonDocumentStore
from callrelay.utils.errors import PersistenceError


class TestJsonDocumentStore:
    """Test suite for JsonDocumentStore."""

    def test_save_then_load(self, tmp_path):
        store = JsonDocumentStore(tmp_path / "nested" / "webhooks.json")

        store.save({"vip": {"recipients": "+1555"}})

        assert store.exists()
        assert store.load() == {"vip": {"recipients": "+1555"}}

    def test_missing_file_returns_default(self, tmp_path):
        store = JsonDocumentStore(tmp_path / "webhooks.json")

        assert store.load(default={}) == {}
        assert not store.exists()

    def test_corrupt_file_returns_default(self, tmp_path):
        path = tmp_path / "webhooks.json"
        path.write_text("{broken")

        assert JsonDocumentStore(path).load(default={}) == {}
        assert path.read_text() == "{broken"

    def test_failed_write_keeps_previous_document(self, tmp_path):
        """A failed rename raises and leaves no temp file behind."""
        store = JsonDocumentStore(tmp_path / "webhooks.json")
        store.save({"a": 1})

        with patch("callrelay.storage.os.replace", side_effect=OSError("read-only file system")):
            with pytest.raises(PersistenceError):
                store.save({"b": 2})

        assert store.load() == {"a": 1}
        assert [p.name for p in tmp_path.iterdir()] == ["webhooks.json"]

    def test_unserializable_data(self, tmp_path):
        store = JsonDocumentStore(tmp_path / "webhooks.json")

        with pytest.raises(PersistenceError):
            store.save({"a": object()})

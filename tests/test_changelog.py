"""Tests for the changelog recorder."""

import json
import pytest
from unittest.mock import patch

from callrelay.models.changelog import ChangelogAction
from callrelay.services.changelog import ChangelogRecorder
from callrelay.storage import JsonDocumentStore
from callrelay.utils.errors import PersistenceError
from tests.conftest import TEST_VERSION


class TestChangelogRecorder:
    """Test suite for ChangelogRecorder."""

    @pytest.mark.asyncio
    async def test_record_appends_and_persists(self, changelog, tmp_path):
        entry = await changelog.record(ChangelogAction.CONFIG_CREATED, "vip", {"config": {}})

        assert entry.webhook_name == "vip"
        assert entry.version == TEST_VERSION
        on_disk = json.loads((tmp_path / "changelog.json").read_text())
        assert on_disk == [entry.to_dict()]
        assert on_disk[0]["action"] == "config_created"
        assert on_disk[0]["webhookName"] == "vip"

    @pytest.mark.asyncio
    async def test_keeps_newest_hundred(self, changelog, tmp_path):
        """Appending past the cap drops the oldest entries."""
        for i in range(105):
            await changelog.record(ChangelogAction.WEBHOOK_TRIGGERED, "vip", {"n": i})

        entries = changelog.list()
        assert len(entries) == 100
        assert entries[0].details == {"n": 5}
        assert entries[-1].details == {"n": 104}
        assert len(json.loads((tmp_path / "changelog.json").read_text())) == 100

    @pytest.mark.asyncio
    async def test_write_failure_drops_entry(self, changelog):
        """A failed write is logged and the in-memory log is unchanged."""
        await changelog.record(ChangelogAction.CONFIG_CREATED, "vip")

        with patch.object(changelog.store, "save", side_effect=PersistenceError("disk full")):
            entry = await changelog.record(ChangelogAction.CONFIG_UPDATED, "vip")

        assert entry is None
        assert [e.action for e in changelog.list()] == [ChangelogAction.CONFIG_CREATED]

    @pytest.mark.asyncio
    async def test_load_round_trip(self, changelog, tmp_path):
        await changelog.record(ChangelogAction.CONFIG_ARCHIVED, "vip", {"archivedAt": "2024-01-01T00:00:00+00:00"})

        reloaded = ChangelogRecorder(JsonDocumentStore(tmp_path / "changelog.json"), TEST_VERSION)
        reloaded.load()

        assert reloaded.to_list() == changelog.to_list()

    def test_load_skips_invalid_entries(self, tmp_path):
        path = tmp_path / "changelog.json"
        path.write_text(json.dumps([
            {"timestamp": "2024-01-01T00:00:00+00:00", "action": "config_created", "webhookName": "a", "details": {}, "version": "1"},
            {"action": "not_an_action"},
        ]))

        recorder = ChangelogRecorder(JsonDocumentStore(path), TEST_VERSION)
        recorder.load()

        assert len(recorder) == 1
        assert recorder.list()[0].webhook_name == "a"

    def test_corrupt_file_starts_empty(self, tmp_path):
        path = tmp_path / "changelog.json"
        path.write_text("{not json")

        recorder = ChangelogRecorder(JsonDocumentStore(path), TEST_VERSION)
        recorder.load()

        assert len(recorder) == 0

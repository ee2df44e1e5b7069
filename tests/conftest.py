"""Pytest configuration and fixtures for callrelay tests."""

import pytest
from unittest.mock import AsyncMock, MagicMock
from fastapi.testclient import TestClient

from callrelay.services.changelog import ChangelogRecorder
from callrelay.services.config_store import ConfigStore
from callrelay.storage import JsonDocumentStore

TEST_VERSION = "2.0.0-test"


@pytest.fixture
def changelog(tmp_path):
    """Changelog recorder backed by a temporary file."""
    recorder = ChangelogRecorder(JsonDocumentStore(tmp_path / "changelog.json"), TEST_VERSION)
    recorder.load()
    return recorder


@pytest.fixture
def config_store(tmp_path, changelog):
    """Empty config store backed by temporary files."""
    store = ConfigStore(
        JsonDocumentStore(tmp_path / "webhooks.json"),
        JsonDocumentStore(tmp_path / "archived.json"),
        changelog,
    )
    store.load()
    return store


@pytest.fixture
def mock_sms():
    """Messaging client whose send() always succeeds."""
    sms = MagicMock()
    sms.send = AsyncMock(return_value="msg-1")
    return sms


@pytest.fixture
def app_client(tmp_path, monkeypatch):
    """TestClient running the full app against a temporary data directory."""
    from callrelay.config import settings
    from callrelay.main import app

    monkeypatch.setattr(settings, "data_dir", str(tmp_path))
    monkeypatch.setattr(settings, "my_phone_number", "+15550001111")
    monkeypatch.setattr(settings, "goto_phone_number", "+15559990000")
    monkeypatch.setattr(settings, "goto_client_id", "client-id")
    monkeypatch.setattr(settings, "goto_client_secret", "client-secret")
    monkeypatch.setattr(settings, "public_base_url", "https://relay.example.com")

    with TestClient(app) as client:
        app.state.sms_client.send = AsyncMock(return_value="msg-1")
        yield client

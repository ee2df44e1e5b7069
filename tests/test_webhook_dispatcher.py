"""Tests for webhook dispatch."""

from datetime import datetime
import pytest

from callrelay.models import ChangelogAction
from callrelay.services.webhook_dispatcher import WebhookDispatcher, build_event_data
from callrelay.utils.errors import DispatchError, UnknownConfigError

NOW = datetime(2024, 3, 5, 14, 7, 9)


@pytest.fixture
def dispatcher(config_store, mock_sms, changelog):
    return WebhookDispatcher(
        config_store,
        mock_sms,
        changelog,
        fallback_recipient="+15550001111",
        clock=lambda: NOW,
    )


class TestBuildEventData:
    """Tests for payload alias resolution."""

    def test_resolves_aliases(self):
        event = build_event_data({"from": "+1777", "callerIdName": "Ann", "extensionNumber": "204"})

        assert event["callerNumber"] == "+1777"
        assert event["callerName"] == "Ann"
        assert event["extension"] == "204"

    def test_primary_key_wins(self):
        event = build_event_data({"callerNumber": "+1111", "caller": "+2222"})

        assert event["callerNumber"] == "+1111"

    def test_empty_value_falls_through(self):
        event = build_event_data({"callerNumber": "", "callerId": "+3333"})

        assert event["callerNumber"] == "+3333"

    def test_keeps_raw_fields(self):
        event = build_event_data({"callId": "abc"})

        assert event["callId"] == "abc"
        assert "callerNumber" not in event

    def test_none_payload(self):
        assert build_event_data(None) == {}


class TestHandle:
    """Tests for WebhookDispatcher.handle()."""

    @pytest.mark.asyncio
    async def test_renders_and_sends(self, dispatcher, config_store, mock_sms, changelog):
        await config_store.create("vip", {"recipients": "+1555, +1666", "messageTemplate": "VIP {callerName} {callerNumber}"})

        result = await dispatcher.handle("vip", {"caller": "+1777", "name": "Ann"})

        mock_sms.send.assert_awaited_once_with("VIP Ann +1777", ["+1555", "+1666"])
        assert result.to_dict() == {
            "success": True,
            "type": "vip",
            "recipientCount": 2,
            "messageId": "msg-1",
        }
        entry = changelog.list()[-1]
        assert entry.action == ChangelogAction.WEBHOOK_TRIGGERED
        assert entry.webhook_name == "vip"
        assert entry.details == {"callerNumber": "+1777", "recipientCount": 2, "messageId": "msg-1"}

    @pytest.mark.asyncio
    async def test_unknown_config(self, dispatcher, mock_sms, changelog):
        """Unknown names never reach the provider and are not logged."""
        with pytest.raises(UnknownConfigError):
            await dispatcher.handle("nope", {"caller": "+1777"})

        mock_sms.send.assert_not_awaited()
        assert len(changelog) == 0

    @pytest.mark.asyncio
    async def test_archived_config_is_unknown(self, dispatcher, config_store):
        await config_store.create("vip", {"recipients": "+1555"})
        await config_store.archive("vip")

        with pytest.raises(UnknownConfigError):
            await dispatcher.handle("vip", {})

    @pytest.mark.asyncio
    async def test_send_failure_not_recorded(self, dispatcher, config_store, mock_sms, changelog):
        await config_store.create("vip", {"recipients": "+1555"})
        entries_before = len(changelog)
        mock_sms.send.side_effect = DispatchError("SMS send failed with HTTP 500")

        with pytest.raises(DispatchError):
            await dispatcher.handle("vip", {})

        assert len(changelog) == entries_before

    @pytest.mark.asyncio
    async def test_unknown_caller_recorded(self, dispatcher, config_store, changelog):
        await config_store.create("vip", {"recipients": "+1555"})

        await dispatcher.handle("vip", None)

        assert changelog.list()[-1].details["callerNumber"] == "Unknown"


class TestSendTest:
    """Tests for WebhookDispatcher.send_test()."""

    @pytest.mark.asyncio
    async def test_defaults_to_general(self, dispatcher, config_store, mock_sms, changelog):
        await config_store.create("general", {"recipients": "+1555"})
        entries_before = len(changelog)

        result = await dispatcher.send_test()

        message, recipients = mock_sms.send.await_args.args
        assert recipients == ["+1555"]
        assert "Your webhook is working!" in message
        assert NOW.strftime("%X") in message
        assert result.type == "general"
        assert len(changelog) == entries_before

    @pytest.mark.asyncio
    async def test_custom_message_and_type(self, dispatcher, config_store, mock_sms):
        await config_store.create("vip", {"recipients": "+1555, +1666"})

        result = await dispatcher.send_test("vip", "Ping")

        mock_sms.send.assert_awaited_once_with("Ping", ["+1555", "+1666"])
        assert result.recipient_count == 2

    @pytest.mark.asyncio
    async def test_falls_back_to_personal_number(self, dispatcher, mock_sms):
        result = await dispatcher.send_test("missing")

        assert mock_sms.send.await_args.args[1] == ["+15550001111"]
        assert result.recipients == ["+15550001111"]

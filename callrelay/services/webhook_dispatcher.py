"""
Turns inbound call-event webhooks into SMS notifications.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from loguru import logger

from callrelay.clients.goto_messaging import GoToMessagingClient
from callrelay.constants import DEFAULT_CONFIG_NAME, DEFAULT_TEST_MESSAGE
from callrelay.models.changelog import ChangelogAction
from callrelay.services.changelog import ChangelogRecorder
from callrelay.services.config_store import ConfigStore
from callrelay.services.template_renderer import render
from callrelay.utils.errors import UnknownConfigError
from callrelay.utils.phone import parse_phone_numbers

# Event field -> payload keys that may carry it, highest priority first
FIELD_ALIASES: Dict[str, tuple] = {
    "callerNumber": ("callerNumber", "caller", "from", "callerId"),
    "callerName": ("callerName", "callerIdName", "name"),
    "extension": ("extension", "extensionNumber", "to"),
    "queueName": ("queueName", "queue"),
    "waitTime": ("waitTime", "wait"),
    "customMessage": ("customMessage", "message"),
}


def build_event_data(payload: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Normalize a webhook payload into template fields.

    The raw payload is kept as a fallback bag; each known field is then set
    from the first alias that carries a non-empty value.
    """
    payload = payload or {}
    event = dict(payload)
    for field, aliases in FIELD_ALIASES.items():
        for key in aliases:
            value = payload.get(key)
            if value is not None and value != "":
                event[field] = value
                break
    return event


@dataclass
class DispatchResult:
    """Acknowledgment returned to the webhook caller."""

    success: bool
    type: str
    recipient_count: int
    message_id: str = ""
    recipients: List[str] = field(default_factory=list, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "type": self.type,
            "recipientCount": self.recipient_count,
            "messageId": self.message_id,
        }


class WebhookDispatcher:
    """Resolves a config, renders its template and sends the SMS."""

    def __init__(
        self,
        store: ConfigStore,
        sms: GoToMessagingClient,
        changelog: ChangelogRecorder,
        fallback_recipient: str = "",
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.sms = sms
        self.changelog = changelog
        self.fallback_recipient = fallback_recipient
        self._clock = clock

    async def handle(self, config_name: str, payload: Optional[Dict[str, Any]]) -> DispatchResult:
        """
        Dispatch one webhook event.

        Raises:
            UnknownConfigError: If no active config has this name
            DispatchError: If the SMS could not be sent
        """
        config = self.store.get(config_name)
        if config is None:
            raise UnknownConfigError(f"Unknown webhook type '{config_name}'")

        event = build_event_data(payload)
        message = render(config.message_template, event, now=self._clock())
        recipients = config.recipient_list

        logger.info(f"Webhook '{config_name}' triggered by {event.get('callerNumber', 'unknown caller')}")
        message_id = await self.sms.send(message, recipients)

        caller_number = event.get("callerNumber") or "Unknown"
        await self.changelog.record(
            ChangelogAction.WEBHOOK_TRIGGERED,
            config_name,
            {
                "callerNumber": caller_number,
                "recipientCount": len(recipients),
                "messageId": message_id,
            },
        )
        return DispatchResult(
            success=True,
            type=config_name,
            recipient_count=len(recipients),
            message_id=message_id,
            recipients=recipients,
        )

    async def send_test(self, config_name: Optional[str] = None, message: Optional[str] = None) -> DispatchResult:
        """
        Send a test SMS to a config's recipients.

        Falls back to the configured personal number when the config does not
        exist. Test sends are not recorded in the changelog.
        """
        config_name = config_name or DEFAULT_CONFIG_NAME
        config = self.store.get(config_name)
        recipients = config.recipient_list if config else parse_phone_numbers(self.fallback_recipient)
        if config is None:
            logger.info(f"Test SMS: config '{config_name}' not found, using fallback recipient")

        body = render(message or DEFAULT_TEST_MESSAGE, {}, now=self._clock())
        message_id = await self.sms.send(body, recipients)
        return DispatchResult(
            success=True,
            type=config_name,
            recipient_count=len(recipients),
            message_id=message_id,
            recipients=recipients,
        )

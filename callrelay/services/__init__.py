"""
Service layer for callrelay business logic.
"""
from callrelay.services.changelog import ChangelogRecorder
from callrelay.services.config_store import ConfigStore, StoreSnapshot
from callrelay.services.webhook_dispatcher import WebhookDispatcher, DispatchResult
from callrelay.services.template_renderer import render

__all__ = [
    "ChangelogRecorder",
    "ConfigStore",
    "StoreSnapshot",
    "WebhookDispatcher",
    "DispatchResult",
    "render",
]

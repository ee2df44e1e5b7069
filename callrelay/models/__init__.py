"""
Data models for callrelay.
"""
from callrelay.models.notification import NotificationConfig, validate_config_name
from callrelay.models.changelog import ChangelogAction, ChangelogEntry

__all__ = [
    "NotificationConfig",
    "validate_config_name",
    "ChangelogAction",
    "ChangelogEntry",
]

"""
Changelog entry model.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ChangelogAction(str, Enum):
    CONFIG_CREATED = "config_created"
    CONFIG_UPDATED = "config_updated"
    CONFIG_ARCHIVED = "config_archived"
    CONFIG_RESTORED = "config_restored"
    WEBHOOK_TRIGGERED = "webhook_triggered"
    DATA_IMPORTED = "data_imported"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ChangelogEntry(BaseModel):
    """Immutable record of one mutation or webhook trigger."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    timestamp: str = Field(default_factory=utc_now_iso)
    action: ChangelogAction
    webhook_name: str
    details: Dict[str, Any] = Field(default_factory=dict)
    version: str

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")

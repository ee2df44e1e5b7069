"""
Notification configuration model.
"""
import re
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from callrelay.constants import CONFIG_NAME_MAX_LENGTH, CONFIG_NAME_PATTERN, DEFAULT_MESSAGE_TEMPLATE
from callrelay.utils.errors import InvalidInputError
from callrelay.utils.phone import parse_phone_numbers

_NAME_RE = re.compile(CONFIG_NAME_PATTERN)


def validate_config_name(name: Any) -> str:
    """Check that a config name can be used as a webhook URL segment."""
    if not name or not isinstance(name, str):
        raise InvalidInputError("Config name is required")
    if len(name) > CONFIG_NAME_MAX_LENGTH or not _NAME_RE.match(name):
        raise InvalidInputError(
            f"Invalid config name '{name}': use letters, digits, '-' or '_' "
            f"(max {CONFIG_NAME_MAX_LENGTH} characters)"
        )
    return name


class NotificationConfig(BaseModel):
    """A named set of recipients and the message sent to them."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    recipients: str = Field("", description="Comma-separated phone numbers")
    message_template: str = Field(DEFAULT_MESSAGE_TEMPLATE, description="Body with {placeholder} tokens")
    description: str = ""
    email: Optional[str] = Field(None, description="Informational only, no email is sent")
    browser_notify: bool = Field(False, description="Consumed by the admin UI only")
    tags: List[str] = Field(default_factory=list)
    archived_at: Optional[str] = None

    @field_validator("recipients", mode="before")
    @classmethod
    def _join_recipient_list(cls, value):
        if value is None:
            return ""
        if isinstance(value, (list, tuple)):
            return ", ".join(parse_phone_numbers(value))
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        tags = []
        for tag in value:
            tag = str(tag).strip()
            if tag and tag not in tags:
                tags.append(tag)
        return tags

    @classmethod
    def to_alias_keys(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        """Rename snake_case field names in `data` to their camelCase aliases."""
        return {
            (to_camel(key) if key in cls.model_fields else key): value
            for key, value in data.items()
        }

    @property
    def recipient_list(self) -> List[str]:
        return parse_phone_numbers(self.recipients)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with camelCase keys, omitting unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)

"""
Message template rendering.

Templates use {placeholder} tokens. Each known token is substituted once, in
a fixed order; a token that appears twice keeps its second occurrence
verbatim. Tokens outside the known set are left untouched.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple


def _value(event_data: Dict[str, Any], key: str) -> Optional[str]:
    value = event_data.get(key)
    if value is None or value == "":
        return None
    return str(value)


def build_substitutions(event_data: Dict[str, Any], now: datetime) -> List[Tuple[str, str]]:
    """Ordered (token, value) pairs for one render."""
    caller_number = _value(event_data, "callerNumber")
    return [
        ("{callerNumber}", caller_number or "Unknown"),
        ("{callerName}", _value(event_data, "callerName") or caller_number or "Unknown"),
        ("{extension}", _value(event_data, "extension") or "N/A"),
        ("{time}", now.strftime("%X")),
        ("{date}", now.strftime("%x")),
        ("{customMessage}", _value(event_data, "customMessage") or "Notification"),
        ("{queueName}", _value(event_data, "queueName") or "N/A"),
        ("{waitTime}", _value(event_data, "waitTime") or "N/A"),
    ]


def render(template: str, event_data: Optional[Dict[str, Any]] = None, now: Optional[datetime] = None) -> str:
    """
    Fill a message template with event data.

    Args:
        template: Message body containing placeholder tokens
        event_data: Resolved event fields (callerNumber, callerName, ...)
        now: Clock reading used for {time} and {date}; defaults to local now

    Returns:
        Rendered message
    """
    if now is None:
        now = datetime.now()

    message = template or ""
    for token, value in build_substitutions(event_data or {}, now):
        message = message.replace(token, value, 1)
    return message

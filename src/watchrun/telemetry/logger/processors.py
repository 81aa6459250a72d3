# src/watchrun/telemetry/logger/processors.py

"""
Custom structlog processors.
"""

import logging
from typing import Any

from structlog.typing import EventDict, WrappedLogger

LOG_EMOJIS: dict[int | str, str] = {
    logging.DEBUG: "🐛",
    logging.INFO: "ℹ️",
    logging.WARNING: "⚠️",
    logging.ERROR: "❌",
    logging.CRITICAL: "💥",
    "run": "🏃",
    "interrupt": "✋",
    "change": "📝",
    "key": "⌨️",
    "reporter": "📣",
    "general": "➡️",
}

# Keys used to steer processors; never rendered.
_CONTROL_KEYS = ("emoji_key",)


def add_emoji_processor(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Prefixes the event with an emoji picked by `emoji_key` or by level."""
    emoji_key: Any = event_dict.get("emoji_key")
    if emoji_key is None:
        emoji_key = logging._nameToLevel.get(method_name.upper(), "general")
    emoji = LOG_EMOJIS.get(emoji_key, LOG_EMOJIS["general"])
    event = event_dict.get("event")
    if isinstance(event, str):
        event_dict["event"] = f"{emoji} {event}"
    return event_dict


def remove_extra_keys_processor(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Drops processor control keys before rendering."""
    for key in _CONTROL_KEYS:
        event_dict.pop(key, None)
    return event_dict


# 🔼⚙️

"""chatstream.config.env
=====================

Environment variable names and helpers for credentials and settings.

Design Notes
------------
- ``API_KEY_ENV_NAMES`` lists accepted key variables, canonical first.
- Helpers never raise on unset variables; callers decide how to proceed.
"""

from __future__ import annotations

import os
from typing import Dict, Optional, Tuple

# Accepted API key variables in precedence order.
API_KEY_ENV_NAMES: Tuple[str, ...] = ("CHATSTREAM_API_KEY", "OPENAI_API_KEY")

# Config field -> environment variable.
ENV_FIELD_MAP: Dict[str, str] = {
    "model": "CHATSTREAM_MODEL",
    "effort": "CHATSTREAM_EFFORT",
    "base_url": "CHATSTREAM_BASE_URL",
    "system_prompt": "CHATSTREAM_SYSTEM_PROMPT",
    "db_path": "CHATSTREAM_DB_PATH",
    "history_disabled": "CHATSTREAM_HISTORY_DISABLED",
}

CONFIG_FILE_ENV = "CHATSTREAM_CONFIG_FILE"


def is_placeholder(val: Optional[str]) -> bool:
    """Return True if the provided string looks like a placeholder/test value.

    Heuristics: contains 'placeholder', 'changeme', 'your-key' or 'example',
    case-insensitively and ignoring surrounding spaces.
    """
    if val is None:
        return False
    v = str(val).strip().lower()
    return "placeholder" in v or "changeme" in v or "your-key" in v or "example" in v


def resolve_api_key() -> Optional[str]:
    """Return the first non-empty, non-placeholder API key from the environment."""
    for name in API_KEY_ENV_NAMES:
        val = os.getenv(name)
        if val and val.strip() and not is_placeholder(val):
            return val.strip()
    return None


def parse_bool(value: Optional[str]) -> bool:
    """Interpret common truthy strings (1/true/yes/on)."""
    return (value or "").strip().lower() in {"1", "true", "yes", "y", "on"}


__all__ = [
    "API_KEY_ENV_NAMES",
    "ENV_FIELD_MAP",
    "CONFIG_FILE_ENV",
    "is_placeholder",
    "resolve_api_key",
    "parse_bool",
]

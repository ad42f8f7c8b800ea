"""chatstream.config.defaults
==========================

Central place for small, stable default values used across the chatstream
package. These defaults can be overridden via environment variables or an
external configuration file (see ``chatstream.config``).

This module intentionally imports nothing from the rest of the package so it
can be used from any layer without circular imports. Only plain constants
live here.
"""

from __future__ import annotations

# ---- Endpoint ----
DEFAULT_BASE_URL = "https://api.openai.com/v1"
CHAT_COMPLETIONS_PATH = "/chat/completions"

# ---- Models ----
DEFAULT_MODEL = "gpt-5-mini"
DEFAULT_EFFORT = "medium"

# Models that accept ``reasoning_effort`` directly.
REASONING_MODELS = ("gpt-5", "gpt-5-mini")
# Older models receive effort as sampling parameters instead.
EFFORT_SAMPLING_PARAMS = {
    "low": {"temperature": 0.3, "top_p": 0.5},
    "medium": {"temperature": 0.7, "top_p": 0.8},
    "high": {"temperature": 1.0, "top_p": 1.0},
}

DEFAULT_SYSTEM_PROMPT = "You are a helpful, concise assistant. Keep answers clear and useful."

# ---- History ----
# Number of entries shown by the history listing.
HISTORY_LIST_LIMIT = 30
# Preview length for history summaries (characters, before the ellipsis).
HISTORY_PREVIEW_CHARS = 60
DEFAULT_DB_FILE_NAME = "history.db"
APP_DIR_NAME = "chatstream"

# ---- SQLite config (infrastructure) ----
# Standard busy timeout to mitigate lock contention (milliseconds).
SQLITE_BUSY_TIMEOUT_MS = 5000
# Journal and sync mode optimized for local use and light concurrency.
SQLITE_JOURNAL_MODE = "WAL"
SQLITE_SYNCHRONOUS = "NORMAL"


__all__ = [
    "DEFAULT_BASE_URL",
    "CHAT_COMPLETIONS_PATH",
    "DEFAULT_MODEL",
    "DEFAULT_EFFORT",
    "REASONING_MODELS",
    "EFFORT_SAMPLING_PARAMS",
    "DEFAULT_SYSTEM_PROMPT",
    "HISTORY_LIST_LIMIT",
    "HISTORY_PREVIEW_CHARS",
    "DEFAULT_DB_FILE_NAME",
    "APP_DIR_NAME",
    "SQLITE_BUSY_TIMEOUT_MS",
    "SQLITE_JOURNAL_MODE",
    "SQLITE_SYNCHRONOUS",
]

"""Unified configuration layer for chatstream.

Goals
-----
* Centralize defaults (model, effort, endpoint, system prompt, history DB).
* Merge sources in a predictable order (later wins):
    1. Built-in defaults
    2. Optional external config file (JSON or YAML) pointed to by
       ``CHATSTREAM_CONFIG_FILE``
    3. Environment variables (a ``.env`` file is loaded first, once)
    4. In-code overrides passed to the helper
* Provide a single call site: ``get_chat_config(overrides)``.

Environment Variable Conventions
--------------------------------
``CHATSTREAM_API_KEY`` / ``OPENAI_API_KEY``, ``CHATSTREAM_MODEL``,
``CHATSTREAM_EFFORT``, ``CHATSTREAM_BASE_URL``, ``CHATSTREAM_SYSTEM_PROMPT``,
``CHATSTREAM_DB_PATH``, ``CHATSTREAM_HISTORY_DISABLED``.

External Config File (Optional)
-------------------------------
JSON is tried first, then YAML. Structure example:

```
model: gpt-5
effort: high
base_url: https://api.openai.com/v1
system_prompt: "Be brief."
history_disabled: false
```
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .defaults import (
    APP_DIR_NAME,
    DEFAULT_BASE_URL,
    DEFAULT_DB_FILE_NAME,
    DEFAULT_EFFORT,
    DEFAULT_MODEL,
    DEFAULT_SYSTEM_PROMPT,
)
from .env import CONFIG_FILE_ENV, ENV_FIELD_MAP, is_placeholder, parse_bool, resolve_api_key


def default_db_path() -> str:
    """Return the XDG data location of the history database."""
    root = os.environ.get("XDG_DATA_HOME")
    base = Path(root).expanduser() if root else Path.home() / ".local" / "share"
    return str(base / APP_DIR_NAME / DEFAULT_DB_FILE_NAME)


def _defaults() -> Dict[str, Any]:
    return {
        "api_key": "",
        "model": DEFAULT_MODEL,
        "effort": DEFAULT_EFFORT,
        "base_url": DEFAULT_BASE_URL,
        "system_prompt": DEFAULT_SYSTEM_PROMPT,
        "db_path": default_db_path(),
        "history_disabled": False,
    }


_FILE_CACHE: Optional[Dict[str, Any]] = None
_DOTENV_LOADED = False


def _load_dotenv_once() -> None:
    """Lightweight .env loader.

    Parses KEY=VALUE lines, ignoring comments and blank lines. Existing
    environment variables win unless their value looks like a placeholder.
    """
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    _DOTENV_LOADED = True
    path = os.getenv("DOTENV_FILE", ".env")
    if not os.path.isfile(path):
        return
    with open(path, "r", encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            k, v = line.split("=", 1)
            k = k.strip()
            if k.startswith("export "):
                k = k[len("export "):].strip()
            v = v.strip().strip('"').strip("'")
            if k and (k not in os.environ or is_placeholder(os.environ.get(k))):
                os.environ[k] = v


def _load_external_config() -> Dict[str, Any]:
    """Load and cache the optional JSON/YAML config file (``{}`` when absent)."""
    global _FILE_CACHE
    if _FILE_CACHE is not None:
        return _FILE_CACHE
    path = os.getenv(CONFIG_FILE_ENV)
    if not path or not Path(path).expanduser().is_file():
        _FILE_CACHE = {}
        return _FILE_CACHE
    text = Path(path).expanduser().read_text(encoding="utf-8")
    data: Any
    try:
        data = json.loads(text)
    except ValueError:
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError:
            data = {}
    _FILE_CACHE = data if isinstance(data, dict) else {}
    return _FILE_CACHE


def _env_overrides() -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for field, env_name in ENV_FIELD_MAP.items():
        val = os.getenv(env_name)
        if val is None:
            continue
        out[field] = parse_bool(val) if field == "history_disabled" else val
    key = resolve_api_key()
    if key:
        out["api_key"] = key
    return out


def get_chat_config(overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return the merged configuration mapping.

    Merge order (later wins): defaults -> external config -> env vars -> overrides.
    ``None`` valued overrides are ignored so argparse namespaces can be passed
    through without clobbering configured values.
    """
    _load_dotenv_once()
    cfg: Dict[str, Any] = _defaults()
    cfg |= {k: v for k, v in _load_external_config().items() if k in cfg}
    cfg |= _env_overrides()
    if overrides:
        cfg |= {k: v for k, v in overrides.items() if v is not None}
    if is_placeholder(cfg.get("api_key")):
        cfg["api_key"] = ""
    return cfg


def reset_config_cache() -> None:
    """Forget cached file and .env state (used by tests)."""
    global _FILE_CACHE, _DOTENV_LOADED
    _FILE_CACHE = None
    _DOTENV_LOADED = False


__all__ = ["get_chat_config", "default_db_path", "reset_config_cache"]

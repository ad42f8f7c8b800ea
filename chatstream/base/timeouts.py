"""Timeout configuration for HTTP requests.

Centralizes the timeout values applied to the pooled ``httpx`` clients so no
call site hard-codes its own numbers.

Key Components
--------------
TimeoutConfig
    Frozen dataclass of normalized timeout values (seconds).

get_timeout_config()
    Returns a process-cached configuration, re-parsed only when the relevant
    environment variables change. Supported variables (all optional):
        CHATSTREAM_TIMEOUT_CONNECT_SECONDS
        CHATSTREAM_TIMEOUT_READ_SECONDS
        CHATSTREAM_TIMEOUT_WRITE_SECONDS

Failure Modes
-------------
Unset, non-numeric or non-positive values fall back to the defaults.
"""
from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Optional

import httpx

_ENV_CONNECT = "CHATSTREAM_TIMEOUT_CONNECT_SECONDS"
_ENV_READ = "CHATSTREAM_TIMEOUT_READ_SECONDS"
_ENV_WRITE = "CHATSTREAM_TIMEOUT_WRITE_SECONDS"


@dataclass(frozen=True)
class TimeoutConfig:
    """Container for normalized timeout values (seconds).

    Attributes:
        connect_timeout_seconds: Time allowed to establish the connection.
        read_timeout_seconds: Idle time allowed between two reads of the
            response body; for streams this bounds the gap between chunks.
        write_timeout_seconds: Time allowed to send the request body.
    """

    connect_timeout_seconds: float = 10.0
    read_timeout_seconds: float = 120.0
    write_timeout_seconds: float = 30.0

    def to_httpx(self) -> httpx.Timeout:
        """Return the equivalent ``httpx.Timeout``."""
        return httpx.Timeout(
            connect=self.connect_timeout_seconds,
            read=self.read_timeout_seconds,
            write=self.write_timeout_seconds,
            pool=self.connect_timeout_seconds,
        )


_CACHED: Optional[TimeoutConfig] = None
_ENV_GUARD: Optional[str] = None


def _parse_env_float(name: str, default: float) -> float:
    """Parse a positive float from the environment, else return ``default``."""
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        val = float(raw)
    except ValueError:
        return default
    return val if val > 0 else default


def get_timeout_config() -> TimeoutConfig:
    """Return the process-cached `TimeoutConfig` instance."""
    global _CACHED, _ENV_GUARD  # noqa: PLW0603 - documented module cache
    guard = "/".join(os.getenv(n, "") for n in (_ENV_CONNECT, _ENV_READ, _ENV_WRITE))
    if _CACHED is not None and _ENV_GUARD == guard:
        return _CACHED
    defaults = TimeoutConfig()
    _CACHED = TimeoutConfig(
        connect_timeout_seconds=_parse_env_float(_ENV_CONNECT, defaults.connect_timeout_seconds),
        read_timeout_seconds=_parse_env_float(_ENV_READ, defaults.read_timeout_seconds),
        write_timeout_seconds=_parse_env_float(_ENV_WRITE, defaults.write_timeout_seconds),
    )
    _ENV_GUARD = guard
    return _CACHED


__all__ = ["TimeoutConfig", "get_timeout_config"]

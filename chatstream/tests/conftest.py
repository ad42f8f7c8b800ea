"""Pytest configuration for the chatstream test suite.

Provides:
- environment isolation (XDG dirs, API key variables, config caches)
- default ``Settings`` pointing at the fake endpoint
- a ``FakeEndpoint`` fixture (``httpx.MockTransport``) and its client
- a handler capturing structured events from the ``chatstream`` logger
"""

from __future__ import annotations

import logging
from typing import Iterator

import httpx
import pytest

from chatstream.base.logging import get_logger
from chatstream.base.models import Settings
from chatstream.config import reset_config_cache
from chatstream.tests.helpers import BASE_URL, FakeEndpoint, ListHandler

_ENV_VARS = (
    "OPENAI_API_KEY",
    "CHATSTREAM_API_KEY",
    "CHATSTREAM_MODEL",
    "CHATSTREAM_EFFORT",
    "CHATSTREAM_BASE_URL",
    "CHATSTREAM_SYSTEM_PROMPT",
    "CHATSTREAM_DB_PATH",
    "CHATSTREAM_HISTORY_DISABLED",
    "CHATSTREAM_CONFIG_FILE",
    "CHATSTREAM_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> Iterator[None]:
    """Keep tests away from the real user config, keys and history."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "state"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("DOTENV_FILE", str(tmp_path / "missing.env"))
    reset_config_cache()
    yield
    reset_config_cache()


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        api_key="sk-test",
        model="gpt-5-mini",
        effort="medium",
        base_url=BASE_URL,
        system_prompt="Be brief.",
    )


@pytest.fixture()
def endpoint() -> FakeEndpoint:
    return FakeEndpoint()


@pytest.fixture()
def http_client(endpoint: FakeEndpoint) -> Iterator[httpx.Client]:
    client = endpoint.client()
    yield client
    client.close()


@pytest.fixture()
def tmp_db(tmp_path) -> str:
    return str(tmp_path / "history.db")


@pytest.fixture()
def log_events() -> Iterator[ListHandler]:
    """Attach a ``ListHandler`` to the shared ``chatstream`` logger."""
    base = get_logger()
    previous = base.level
    base.setLevel(logging.INFO)
    handler = ListHandler()
    base.addHandler(handler)
    try:
        yield handler
    finally:
        base.removeHandler(handler)
        base.setLevel(previous)

"""Tests for layered configuration (defaults, file, .env, env, overrides)."""
from __future__ import annotations

import json
import os

from chatstream.config import default_db_path, get_chat_config, reset_config_cache
from chatstream.config.defaults import DEFAULT_MODEL, DEFAULT_SYSTEM_PROMPT
from chatstream.config.env import is_placeholder, parse_bool, resolve_api_key


def test_defaults_without_any_source(tmp_path):
    cfg = get_chat_config()
    assert cfg["api_key"] == ""  # nosec B101 - pytest assert in tests
    assert cfg["model"] == DEFAULT_MODEL  # nosec B101 - pytest assert in tests
    assert cfg["system_prompt"] == DEFAULT_SYSTEM_PROMPT  # nosec B101 - pytest assert in tests
    assert cfg["history_disabled"] is False  # nosec B101 - pytest assert in tests
    assert cfg["db_path"] == str(tmp_path / "data" / "chatstream" / "history.db")  # nosec B101 - pytest assert in tests
    assert default_db_path() == cfg["db_path"]  # nosec B101 - pytest assert in tests


def test_env_wins_over_file_and_overrides_win_over_env(tmp_path, monkeypatch):
    cfg_file = tmp_path / "chat.yaml"
    cfg_file.write_text("model: gpt-4\neffort: low\nsystem_prompt: from file\nunknown_key: 1\n", encoding="utf-8")
    monkeypatch.setenv("CHATSTREAM_CONFIG_FILE", str(cfg_file))
    monkeypatch.setenv("CHATSTREAM_EFFORT", "high")
    monkeypatch.setenv("CHATSTREAM_HISTORY_DISABLED", "yes")
    reset_config_cache()

    cfg = get_chat_config({"system_prompt": "override", "model": None})
    assert cfg["model"] == "gpt-4"  # nosec B101 - pytest assert in tests
    assert cfg["effort"] == "high"  # nosec B101 - pytest assert in tests
    assert cfg["system_prompt"] == "override"  # nosec B101 - pytest assert in tests
    assert cfg["history_disabled"] is True  # nosec B101 - pytest assert in tests
    assert "unknown_key" not in cfg  # nosec B101 - pytest assert in tests


def test_json_config_file(tmp_path, monkeypatch):
    cfg_file = tmp_path / "chat.json"
    cfg_file.write_text(json.dumps({"base_url": "https://proxy.test/v1"}), encoding="utf-8")
    monkeypatch.setenv("CHATSTREAM_CONFIG_FILE", str(cfg_file))
    reset_config_cache()
    assert get_chat_config()["base_url"] == "https://proxy.test/v1"  # nosec B101 - pytest assert in tests


def test_api_key_precedence_and_placeholders(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-openai")
    assert resolve_api_key() == "sk-openai"  # nosec B101 - pytest assert in tests
    monkeypatch.setenv("CHATSTREAM_API_KEY", "your-key-here")
    assert resolve_api_key() == "sk-openai"  # nosec B101 - pytest assert in tests
    monkeypatch.setenv("CHATSTREAM_API_KEY", "sk-own")
    assert get_chat_config()["api_key"] == "sk-own"  # nosec B101 - pytest assert in tests
    assert get_chat_config({"api_key": "changeme"})["api_key"] == ""  # nosec B101 - pytest assert in tests


def test_dotenv_file_is_loaded_once(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("# comment\nexport OPENAI_API_KEY='sk-dotenv'\nCHATSTREAM_MODEL=gpt-5\n", encoding="utf-8")
    monkeypatch.setenv("DOTENV_FILE", str(env_file))
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    reset_config_cache()
    try:
        cfg = get_chat_config()
        assert cfg["api_key"] == "sk-dotenv" and cfg["model"] == "gpt-5"  # nosec B101 - pytest assert in tests
    finally:
        # the .env loader writes os.environ directly
        os.environ.pop("OPENAI_API_KEY", None)
        os.environ.pop("CHATSTREAM_MODEL", None)


def test_helpers():
    assert is_placeholder(" PLACEHOLDER ") and not is_placeholder("sk-real") and not is_placeholder(None)  # nosec B101 - pytest assert in tests
    assert parse_bool("On") and parse_bool("1") and not parse_bool("no") and not parse_bool(None)  # nosec B101 - pytest assert in tests

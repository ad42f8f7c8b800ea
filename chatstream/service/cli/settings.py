"""Persistent CLI settings for the chat shell.

Purpose
-------
Keep user preferences across runs: log verbosity, optional log file, colors
and the last chosen model/effort. Settings are stored under the user's
configuration directory per the XDG base directory layout, falling back
to ``~/.config/chatstream/cli.json``. Log files default to the XDG state
directory (``$XDG_STATE_HOME``) or ``~/.local/state/chatstream``.

Public API
----------
- ``CLISettings``: dataclass container for settings.
- ``load_settings()``: load settings from disk (or defaults on first run).
- ``save_settings(settings)``: persist settings atomically to disk.
- ``apply_logging(settings)``: apply level and optional file handler using
  the base logging facilities.
"""


from __future__ import annotations

import contextlib
import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from ...base import logging as base_logging
from ...base.logging import get_logger, log_event
from ...base.models import ChatModel, Effort

CONFIG_DIR_NAME = "chatstream"
CONFIG_FILE_NAME = "cli.json"
DEFAULT_LOG_FILE = "chatstream.log"
_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _xdg_config_dir() -> Path:
    """Return ``$XDG_CONFIG_HOME/chatstream`` (default ``~/.config/chatstream``)."""
    root = os.environ.get("XDG_CONFIG_HOME")
    base = Path(root).expanduser() if root else Path.home() / ".config"
    return base / CONFIG_DIR_NAME


def _config_file_path() -> Path:
    return _xdg_config_dir() / CONFIG_FILE_NAME


def _xdg_state_dir() -> Path:
    """Return ``$XDG_STATE_HOME/chatstream`` (default ``~/.local/state/chatstream``)."""
    root = os.environ.get("XDG_STATE_HOME")
    base = Path(root).expanduser() if root else Path.home() / ".local" / "state"
    return base / CONFIG_DIR_NAME


def _default_log_path() -> str:
    return str(_xdg_state_dir() / DEFAULT_LOG_FILE)


@dataclass
class CLISettings:
    """Container for CLI user preferences.

    Attributes
    ----------
    verbosity: str
        Logging level name, e.g. ``"WARNING"`` (the shell default keeps the
        console quiet while chatting).
    log_to_file: bool
        When ``True``, also write logs to ``log_file_path``.
    log_file_path: str
        Log file location.
    ui_colors: bool
        ANSI colors in shell output.
    last_model / last_effort: Optional[str]
        Model and effort chosen in the previous run.
    """

    verbosity: str = "WARNING"
    log_to_file: bool = False
    log_file_path: str = field(default_factory=_default_log_path)
    ui_colors: bool = True
    last_model: Optional[str] = None
    last_effort: Optional[str] = None


def _optional_choice(data: Dict[str, Any], key: str, parse: Any) -> Optional[str]:
    raw = data.get(key)
    if raw is None:
        return None
    try:
        return parse(raw).value
    except ValueError:
        return None


def load_settings() -> CLISettings:
    """Load CLI settings from disk or return defaults if absent or unreadable."""
    cfg_path = _config_file_path()
    if not cfg_path.is_file():
        return CLISettings()
    try:
        data = json.loads(cfg_path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return CLISettings()
    if not isinstance(data, dict):
        return CLISettings()
    verbosity = str(data.get("verbosity", "WARNING")).strip().upper()
    return CLISettings(
        verbosity=verbosity if verbosity in _LEVELS else "WARNING",
        log_to_file=bool(data.get("log_to_file", False)),
        log_file_path=str(data.get("log_file_path") or _default_log_path()),
        ui_colors=bool(data.get("ui_colors", True)),
        last_model=_optional_choice(data, "last_model", ChatModel.parse),
        last_effort=_optional_choice(data, "last_effort", Effort.parse),
    )


def save_settings(settings: CLISettings) -> Tuple[bool, Optional[str]]:
    """Persist CLI settings atomically; returns ``(ok, error)``."""
    try:
        cfg_dir = _xdg_config_dir()
        cfg_dir.mkdir(parents=True, exist_ok=True)
        cfg_path = _config_file_path()
        tmp_path = cfg_path.with_suffix(".tmp")
        tmp_path.write_text(json.dumps(asdict(settings), ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp_path, cfg_path)
        return True, None
    except OSError as exc:
        return False, str(exc)


def normalize_log_path(raw_path: str) -> str:
    """Normalize a user-provided log path to a concrete file path.

    An existing directory, or a non-existent path without a suffix, gets the
    default log file name appended. Otherwise the expanded absolute path is
    returned as-is.
    """
    p = Path(os.path.expanduser(raw_path))
    if p.is_dir():
        return str((p / DEFAULT_LOG_FILE).resolve())
    if not p.exists() and not p.suffix:
        return str((p / DEFAULT_LOG_FILE).resolve())
    return str(p.resolve())


def apply_logging(settings: CLISettings) -> None:
    """Reconfigure the shared ``chatstream`` logger from ``settings``."""
    level = getattr(logging, settings.verbosity.upper(), logging.WARNING)
    file_path: Optional[str] = None
    if settings.log_to_file:
        normalized = normalize_log_path(settings.log_file_path)
        if normalized != settings.log_file_path:
            settings.log_file_path = normalized
            with contextlib.suppress(OSError):
                save_settings(settings)
        file_path = normalized
    base_logging.configure_logger(level=level, file_path=file_path)
    log_event(
        get_logger(),
        "cli.options.apply_logging",
        verbosity=settings.verbosity,
        log_to_file=settings.log_to_file,
        log_file_path=file_path,
        level=logging.DEBUG,
    )


__all__ = [
    "CLISettings",
    "load_settings",
    "save_settings",
    "apply_logging",
    "normalize_log_path",
]

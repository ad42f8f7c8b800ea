# -*- coding: utf-8 -*-
"""Utility helpers shared by the chat shell and one-shot commands.

Functions
---------
- ``parse_verbosity(value)``: map user strings and synonyms to a canonical
  logging level name.
- ``suppress_console_logs()``: context manager that detaches console handlers
  while a reply streams, so JSON log lines do not interleave with text.
- ``format_history(summaries)``: render history summaries as aligned rows.
- ``colorize(text, color, enabled)``: wrap text in ANSI color codes.
"""

from __future__ import annotations

import contextlib
import logging
from typing import Iterator, List, Optional, Sequence, Tuple

from ...base.logging import BASE_LOGGER_NAME
from ...base.streaming import TokenUsage
from ...persistence import ChatSummary

_FILE_HANDLER_ATTR = "_chatstream_file_handler"

_COLORS = {
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "blue": "\033[34m",
    "magenta": "\033[35m",
    "cyan": "\033[36m",
    "dim": "\033[2m",
}


def parse_verbosity(value: str) -> Optional[str]:
    """Parse a user-provided verbosity string into a canonical level.

    Accepted values (case-insensitive): DEBUG, INFO, WARNING, ERROR, CRITICAL
    and the synonyms verbose, warn, err, quiet, crit and silent.

    Returns
    -------
    Optional[str]
        Canonical upper-cased level, or ``None`` if invalid.
    """
    v = value.strip().lower()
    mapping = {
        "debug": "DEBUG",
        "verbose": "DEBUG",
        "info": "INFO",
        "warning": "WARNING",
        "warn": "WARNING",
        "error": "ERROR",
        "err": "ERROR",
        "quiet": "ERROR",
        "critical": "CRITICAL",
        "crit": "CRITICAL",
        "silent": "CRITICAL",
    }
    return mapping.get(v)


def colorize(text: str, color: str, enabled: bool = True) -> str:
    if not enabled or color not in _COLORS:
        return text
    return f"{_COLORS[color]}{text}\033[0m"


@contextlib.contextmanager
def suppress_console_logs() -> Iterator[None]:
    """Temporarily detach console handlers from the ``chatstream`` logger.

    Managed file handlers (tagged ``_chatstream_file_handler``) stay attached,
    so file logging continues. Handlers are restored on exit.
    """
    base = logging.getLogger(BASE_LOGGER_NAME)
    detached: List[Tuple[logging.Handler, int]] = []
    try:
        for handler in list(base.handlers):
            if getattr(handler, _FILE_HANDLER_ATTR, False):
                continue
            if isinstance(handler, logging.StreamHandler):
                with contextlib.suppress(ValueError, OSError):
                    # a stream closed by its owner cannot be flushed
                    handler.flush()
                detached.append((handler, handler.level))
                base.removeHandler(handler)
        yield
    finally:
        for handler, level in detached:
            handler.setLevel(level)
            base.addHandler(handler)


def format_usage(usage: Optional[TokenUsage]) -> str:
    """Render token counts as ``total (prompt P, completion C)``."""
    if usage is None:
        return "n/a"
    parts = []
    if usage.prompt_tokens is not None:
        parts.append(f"prompt {usage.prompt_tokens}")
    if usage.completion_tokens is not None:
        parts.append(f"completion {usage.completion_tokens}")
    detail = f" ({', '.join(parts)})" if parts else ""
    return f"{usage.total_tokens}{detail}"


def format_history(summaries: Sequence[ChatSummary]) -> str:
    """Render history entries, one per line: id, local time, model, preview."""
    if not summaries:
        return "(no saved chats)"
    width = max(len(str(s.id)) for s in summaries)
    rows = []
    for s in summaries:
        stamp = s.timestamp.astimezone().strftime("%Y-%m-%d %H:%M")
        rows.append(f"{str(s.id).rjust(width)}  {stamp}  {s.model.value:<20}  {s.preview}")
    return "\n".join(rows)


__all__ = ["parse_verbosity", "colorize", "suppress_console_logs", "format_usage", "format_history"]

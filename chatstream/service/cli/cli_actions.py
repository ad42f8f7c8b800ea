"""CLI action handlers and session helpers.

Purpose
-------
Build a ``SessionState`` from configuration and command-line flags, render a
streaming turn to the terminal, and implement the one-shot subcommands
(``ask``, ``history``, ``show``). This module has no top-level side effects
and is safe to import in tests.

Fallback & Error Semantics
--------------------------
- Stream failures are printed to stderr and turn into exit code 1.
- Invalid user input (empty prompt, blank image URL) exits with code 2.
- History storage problems never abort a chat; the session falls back to
  in-memory history and the shell reports it in ``/status``.
"""

from __future__ import annotations

import argparse
import sys
from typing import Any, Dict, Optional, TextIO

import httpx
from pydantic import ValidationError

from ...base.logging import get_logger, log_event
from ...base.models import Settings
from ...base.streaming import StreamCompleted, StreamDelta, StreamFailed, StreamingClient, TerminalEvent
from ...config import get_chat_config
from ...config.defaults import HISTORY_LIST_LIMIT
from ...persistence import NotFound, SqliteChatStore
from ...session import SessionState, SessionTurn, to_json, to_markdown
from .cli_utils import format_history, suppress_console_logs
from .settings import CLISettings

_logger = get_logger("chatstream.cli")


def session_overrides(args: argparse.Namespace, cli_settings: Optional[CLISettings] = None) -> Dict[str, Any]:
    """Collect config overrides from flags, then from the last shell choices."""
    last_model = cli_settings.last_model if cli_settings else None
    last_effort = cli_settings.last_effort if cli_settings else None
    return {
        "model": getattr(args, "model", None) or last_model,
        "effort": getattr(args, "effort", None) or last_effort,
        "db_path": getattr(args, "db_path", None),
        "history_disabled": getattr(args, "history_disabled", None),
    }


def build_session(
    args: argparse.Namespace,
    cli_settings: Optional[CLISettings] = None,
    *,
    http_client: Optional[httpx.Client] = None,
) -> SessionState:
    """Create a session from merged configuration.

    History goes to ``SqliteChatStore`` at the configured path unless it is
    disabled, in which case the session keeps an in-memory store.
    """
    cfg = get_chat_config(session_overrides(args, cli_settings))
    settings = Settings.from_config(cfg)
    store = None if cfg.get("history_disabled") else SqliteChatStore(str(cfg["db_path"]))
    session = SessionState(settings, client=StreamingClient(client=http_client), store=store)
    log_event(
        _logger,
        "cli.session.start",
        model=settings.model.value,
        effort=settings.effort.value,
        history=store.db_path if store is not None else None,
        api_key_present=settings.has_api_key,
    )
    return session


def describe_failure(outcome: StreamFailed) -> str:
    if outcome.aborted:
        return "[cancelled]"
    return f"error ({outcome.kind.value}): {outcome.message}"


def print_turn(turn: SessionTurn, out: Optional[TextIO] = None, err: Optional[TextIO] = None) -> TerminalEvent:
    """Stream a turn to ``out`` (stdout) and return its terminal event.

    Deltas carry the whole text so far; only the part not yet printed is
    written. Ctrl-C cancels the request and keeps what was already shown.
    Failures are reported on ``err`` (stderr).
    """
    out = out or sys.stdout
    err = err or sys.stderr
    shown = 0
    with suppress_console_logs():
        try:
            for evt in turn:
                if isinstance(evt, StreamDelta):
                    out.write(evt.text[shown:])
                    out.flush()
                    shown = len(evt.text)
        except KeyboardInterrupt:
            turn.cancel()
    outcome = turn.run()
    if shown:
        out.write("\n")
        out.flush()
    if isinstance(outcome, StreamFailed):
        err.write(describe_failure(outcome) + "\n")
        err.flush()
    return outcome


def handle_ask(args: argparse.Namespace, *, http_client: Optional[httpx.Client] = None) -> int:
    """Send one prompt, stream the reply to stdout, return the exit code."""
    session = build_session(args, http_client=http_client)
    try:
        try:
            turn = session.send(" ".join(args.prompt), getattr(args, "images", None) or ())
        except ValidationError as exc:
            print(f"invalid message: {exc.errors()[0]['msg']}", file=sys.stderr)
            return 2
        outcome = print_turn(turn)
        return 0 if isinstance(outcome, StreamCompleted) else 1
    finally:
        session.close()


def handle_history(args: argparse.Namespace) -> int:
    """Print saved chats, newest first."""
    session = build_session(args)
    try:
        summaries = session.history(args.limit or HISTORY_LIST_LIMIT)
        if not session.persistence_available:
            print("history is not persisted (memory only)", file=sys.stderr)
        print(format_history(summaries))
        return 0
    finally:
        session.close()


def handle_show(args: argparse.Namespace) -> int:
    """Print one saved chat as Markdown or JSON."""
    session = build_session(args)
    try:
        try:
            record = session.open_record(args.record_id)
        except NotFound as exc:
            print(str(exc), file=sys.stderr)
            return 1
        if args.fmt == "json":
            print(to_json(record.messages))
        else:
            settings = session.settings.with_changes(model=record.model)
            print(to_markdown(record.messages, settings, now=record.timestamp.astimezone()))
        return 0
    finally:
        session.close()


__all__ = [
    "session_overrides",
    "build_session",
    "describe_failure",
    "print_turn",
    "handle_ask",
    "handle_history",
    "handle_show",
]

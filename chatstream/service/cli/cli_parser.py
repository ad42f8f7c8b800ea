"""CLI parser construction for the ``chatstream`` command.

This module wires subparsers but contains no execution logic. Subcommand
handlers live in ``cli_actions`` and ``cli_shell``.
"""

from __future__ import annotations

import argparse

from ...base.models import ChatModel, Effort

SUBCOMMANDS = ("shell", "ask", "history", "show")


def add_session_flags(parser: argparse.ArgumentParser) -> None:
    """Attach the flags shared by every subcommand that opens a session.

    Omitted flags stay ``None`` so configuration and persisted CLI settings
    can supply the value.
    """
    parser.add_argument("--model", default=None, choices=[m.value for m in ChatModel])
    parser.add_argument("--effort", default=None, choices=[e.value for e in Effort])
    parser.add_argument("--db", dest="db_path", default=None, help="History database file")
    parser.add_argument(
        "--no-history",
        dest="history_disabled",
        action="store_const",
        const=True,
        default=None,
        help="Keep history in memory only",
    )


def build_parser() -> argparse.ArgumentParser:
    """Construct the top-level CLI parser and subcommands.

    Returns
    -------
    argparse.ArgumentParser
        Parser with ``shell`` (default), ``ask``, ``history`` and ``show``.
    """
    p = argparse.ArgumentParser(prog="chatstream", description="Streaming chat-completion client")
    sub = p.add_subparsers(dest="cmd")

    p_shell = sub.add_parser("shell", help="Interactive chat (default)")
    add_session_flags(p_shell)

    p_ask = sub.add_parser("ask", help="Send one prompt and print the streamed reply")
    add_session_flags(p_ask)
    p_ask.add_argument("prompt", nargs="+")
    p_ask.add_argument("--image", dest="images", action="append", default=[], help="Attach an image URL")

    p_hist = sub.add_parser("history", help="List saved chats, newest first")
    add_session_flags(p_hist)
    p_hist.add_argument("--limit", type=int, default=None)

    p_show = sub.add_parser("show", help="Print a saved chat")
    add_session_flags(p_show)
    p_show.add_argument("record_id", type=int)
    p_show.add_argument("--format", dest="fmt", choices=["markdown", "json"], default="markdown")

    return p


__all__ = ["SUBCOMMANDS", "add_session_flags", "build_parser"]

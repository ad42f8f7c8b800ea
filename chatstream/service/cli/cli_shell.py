"""Interactive chat shell.

Purpose
-------
Provide a terminal chat on top of ``SessionState``: plain lines are sent as
user messages and the reply streams in place; slash commands manage the
conversation, history and settings.

Commands
--------
- ``/new`` or ``/clear``: start a new conversation
- ``/retry``: regenerate the last assistant reply
- ``/history [n]``: list saved chats, newest first
- ``/load <id>``: continue a saved chat
- ``/download [path]``: write the transcript as JSON
- ``/export [path]``: write the transcript as Markdown
- ``/model [id]`` / ``/effort [level]``: show or change settings
- ``/image <url>``: attach an image to the next message
- ``/verbosity <level>`` / ``/logfile on|off [path]``: logging options
- ``/status``, ``/help``, ``/quit`` (also ``/exit``)

Notes
-----
- Ctrl-C while a reply streams cancels that request only; at the prompt it
  leaves the shell.
- Model and effort changes persist to the CLI settings file.
"""


from __future__ import annotations

import argparse
import contextlib
import time
from pathlib import Path
from typing import List, Optional

import httpx
from pydantic import ValidationError

from ...base.models import ChatModel, Effort
from ...base.streaming import StreamCompleted
from ...config.defaults import HISTORY_LIST_LIMIT
from ...persistence import NotFound
from ...session import SessionState, SessionTurn, to_json, to_markdown
from .cli_actions import build_session, print_turn
from .cli_utils import colorize, format_history, format_usage, parse_verbosity
from .settings import CLISettings, apply_logging, load_settings, normalize_log_path, save_settings

PROMPT = "you> "


def _print_header(title: str) -> None:
    print("\n== " + title + " ==")


def _readline(prompt: str) -> str:
    """Read a single line from stdin; return ``/quit`` on EOF."""
    try:
        return input(prompt)
    except EOFError:
        return "/quit"


class ChatShell:
    """Holds shell state and executes commands.

    Parameters
    ----------
    session:
        The conversation driven by this shell.
    cli_settings:
        Persistent preferences (logging, colors, last model/effort).
    """

    def __init__(self, session: SessionState, cli_settings: CLISettings) -> None:
        self.session = session
        self.settings = cli_settings
        self.pending_images: List[str] = []
        self.running = True

    def _color(self, text: str, color: str) -> str:
        return colorize(text, color, self.settings.ui_colors)

    def _remember_choices(self) -> None:
        self.settings.last_model = self.session.settings.model.value
        self.settings.last_effort = self.session.settings.effort.value
        ok, error = save_settings(self.settings)
        if not ok:
            print(self._color(f"warning: could not save settings: {error}", "yellow"))

    # Chat ------------------------------------------------------------------
    def send(self, text: str) -> None:
        images, self.pending_images = self.pending_images, []
        try:
            turn = self.session.send(text, images)
        except ValidationError as exc:
            print(self._color(f"invalid message: {exc.errors()[0]['msg']}", "red"))
            self.pending_images = images
            return
        self._run_turn(turn)

    def retry(self) -> None:
        turn = self.session.retry_last()
        if turn is None:
            print(self._color("nothing to retry", "yellow"))
            return
        self._run_turn(turn)

    def _run_turn(self, turn: SessionTurn) -> None:
        print(self._color("assistant> ", "cyan"), end="", flush=True)
        outcome = print_turn(turn)
        if isinstance(outcome, StreamCompleted) and not outcome.text:
            print(self._color("(empty reply)", "dim"))

    # Conversation management ---------------------------------------------
    def new_chat(self) -> None:
        self.session.reset()
        self.pending_images = []
        print(self._color("New chat started.", "green"))

    def history(self, tokens: List[str]) -> None:
        limit = HISTORY_LIST_LIMIT
        if tokens:
            try:
                limit = max(1, int(tokens[0]))
            except ValueError:
                print("usage: /history [n]")
                return
        _print_header(self._color("history", "cyan"))
        print(format_history(self.session.history(limit)))

    def load(self, tokens: List[str]) -> None:
        if not tokens or not tokens[0].isdigit():
            print("usage: /load <id>")
            return
        try:
            record = self.session.open_record(int(tokens[0]))
        except NotFound as exc:
            print(self._color(str(exc), "red"))
            return
        self.session.load_from_record(record)
        visible = [m for m in record.messages if m.role != "system"]
        print(self._color(f"Loaded chat {record.id} ({len(visible)} messages).", "green"))
        for m in visible:
            label = "you> " if m.role == "user" else "assistant> "
            print(self._color(label, "cyan") + m.text_or_joined())

    def _write_file(self, tokens: List[str], suffix: str, content: str) -> None:
        if not any(m.role != "system" for m in self.session.messages):
            print(self._color("nothing to save yet", "yellow"))
            return
        target = Path(tokens[0]).expanduser() if tokens else Path(f"chat-{int(time.time() * 1000)}{suffix}")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        except OSError as exc:
            print(self._color(f"could not write {target}: {exc}", "red"))
            return
        print(self._color(f"saved {target}", "green"))

    def download(self, tokens: List[str]) -> None:
        self._write_file(tokens, ".json", to_json(self.session.messages))

    def export(self, tokens: List[str]) -> None:
        self._write_file(tokens, ".md", to_markdown(self.session.messages, self.session.settings))

    def attach_image(self, tokens: List[str]) -> None:
        if not tokens:
            print("usage: /image <url>")
            return
        self.pending_images.append(tokens[0])
        print(self._color(f"image attached ({len(self.pending_images)} pending)", "green"))

    # Settings --------------------------------------------------------------
    def set_model(self, value: Optional[str]) -> None:
        if not value:
            print(f"model: {self.session.settings.model.value}")
            print("available: " + ", ".join(m.value for m in ChatModel))
            return
        try:
            self.session.update_settings(model=ChatModel.parse(value))
        except ValueError as exc:
            print(self._color(str(exc), "red"))
            return
        self._remember_choices()
        print(f"model: {self.session.settings.model.value}")

    def set_effort(self, value: Optional[str]) -> None:
        if not value:
            print(f"effort: {self.session.settings.effort.value}")
            return
        try:
            self.session.update_settings(effort=Effort.parse(value))
        except ValueError as exc:
            print(self._color(str(exc), "red"))
            return
        self._remember_choices()
        print(f"effort: {self.session.settings.effort.value}")

    def set_verbosity(self, tokens: List[str]) -> None:
        level = parse_verbosity(tokens[0]) if tokens else None
        if level is None:
            print("usage: /verbosity debug|info|warning|error|critical")
            return
        self.settings.verbosity = level
        apply_logging(self.settings)
        save_settings(self.settings)
        print(f"verbosity: {level}")

    def set_logfile(self, tokens: List[str]) -> None:
        if not tokens or tokens[0].lower() not in {"on", "off"}:
            print("usage: /logfile on|off [path]")
            return
        self.settings.log_to_file = tokens[0].lower() == "on"
        if len(tokens) > 1:
            self.settings.log_file_path = normalize_log_path(tokens[1])
        apply_logging(self.settings)
        save_settings(self.settings)
        print(f"log file: {self.settings.log_file_path if self.settings.log_to_file else 'disabled'}")

    def status(self) -> None:
        s = self.session.settings
        _print_header(self._color("status", "cyan"))
        print(f"model    : {s.model.value}")
        print(f"effort   : {s.effort.value}")
        print(f"endpoint : {s.base_url}")
        print(f"api key  : {'set' if s.has_api_key else self._color('missing', 'red')}")
        store = self.session.store
        if self.session.persistence_available:
            print(f"history  : {getattr(store, 'db_path', 'on')}")
        else:
            print(self._color("history  : memory only", "yellow"))
        print(f"messages : {len(self.session.messages)}")
        print(f"tokens   : {format_usage(self.session.last_usage)}")
        if self.pending_images:
            print(f"images   : {len(self.pending_images)} pending")
        print(f"verbosity: {self.settings.verbosity}")
        print(f"log file : {self.settings.log_file_path if self.settings.log_to_file else 'disabled'}")

    @staticmethod
    def help() -> None:
        _print_header("help")
        print("/new, /clear          Start a new chat")
        print("/retry                Regenerate the last reply")
        print("/history [n]          List saved chats")
        print("/load <id>            Continue a saved chat")
        print("/download [path]      Save the chat as JSON")
        print("/export [path]        Save the chat as Markdown")
        print("/model [id]           Show or set the model")
        print("/effort [level]       Show or set reasoning effort (low|medium|high)")
        print("/image <url>          Attach an image to the next message")
        print("/verbosity <level>    Set log level")
        print("/logfile on|off [p]   Toggle file logging")
        print("/status               Show current settings")
        print("/help                 Show this help")
        print("/quit, /exit          Leave")
        print("(any other text)      Send as a message; Ctrl-C cancels a reply")

    def quit(self) -> None:
        self.running = False


def session_dispatch(shell: ChatShell, cmd: str, args_list: List[str]) -> bool:
    """Dispatch a slash command to the shell.

    Returns
    -------
    bool
        ``True`` if the command was handled, ``False`` if it is unknown.
    """
    if cmd in {"/quit", "/exit"}:
        shell.quit()
        return True
    if cmd in {"/new", "/clear"}:
        shell.new_chat()
        return True
    if cmd == "/retry":
        shell.retry()
        return True
    if cmd == "/history":
        shell.history(args_list)
        return True
    if cmd == "/load":
        shell.load(args_list)
        return True
    if cmd == "/download":
        shell.download(args_list)
        return True
    if cmd == "/export":
        shell.export(args_list)
        return True
    if cmd == "/model":
        shell.set_model(args_list[0] if args_list else None)
        return True
    if cmd == "/effort":
        shell.set_effort(args_list[0] if args_list else None)
        return True
    if cmd == "/image":
        shell.attach_image(args_list)
        return True
    if cmd == "/verbosity":
        shell.set_verbosity(args_list)
        return True
    if cmd == "/logfile":
        shell.set_logfile(args_list)
        return True
    if cmd == "/status":
        shell.status()
        return True
    if cmd == "/help":
        shell.help()
        return True
    return False


def _execute_command(shell: ChatShell, raw_input: str) -> None:
    """Run a slash command or send the line as a chat message."""
    if not raw_input.startswith("/"):
        shell.send(raw_input)
        return
    parts = raw_input.split()
    cmd, args_list = parts[0].lower(), parts[1:]
    if not session_dispatch(shell, cmd, args_list):
        print(f"unknown command {cmd}; type /help")


def handle_shell(args: argparse.Namespace, *, http_client: Optional[httpx.Client] = None) -> int:
    """Run the interactive chat shell; returns the exit code."""
    cli_settings = load_settings()
    apply_logging(cli_settings)
    session = build_session(args, cli_settings, http_client=http_client)
    shell = ChatShell(session, cli_settings)
    print("chatstream: type /help for commands.")
    if not session.settings.has_api_key:
        print(shell._color("No API key configured (set OPENAI_API_KEY).", "yellow"))
    try:
        while shell.running:
            try:
                raw = _readline(PROMPT)
            except KeyboardInterrupt:
                print()
                break
            stripped = raw.strip()
            if not stripped:
                continue
            try:
                _execute_command(shell, stripped)
            except KeyboardInterrupt:
                session.cancel()
                print()
    finally:
        with contextlib.suppress(OSError):
            session.close()
    return 0


__all__ = ["ChatShell", "session_dispatch", "handle_shell"]

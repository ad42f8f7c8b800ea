"""Session orchestration: transcript, settings, streaming and history.

Purpose
-------
``SessionState`` owns one conversation. It validates and appends user turns,
injects the system prompt once, runs one streaming request at a time and, on
success, commits the assistant reply and records a snapshot in the chat store.

Lifecycle of a turn
-------------------
1. ``send`` cancels any in-flight turn, ensures the system prompt, appends the
   user message and reserves an assistant placeholder.
2. The returned ``SessionTurn`` is iterated by the caller (the shell); each
   ``StreamDelta`` carries the full text so far.
3. On ``StreamCompleted`` the reply is committed and a ``ChatRecord`` is
   appended to the store. On ``StreamFailed`` the placeholder is discarded and
   the transcript is left exactly as it was after the user message.

Failure semantics
-----------------
- Stream failures never raise; they arrive as ``StreamFailed``.
- ``StorageUnavailable`` from the store is logged and the session switches to
  an in-memory store; the conversation continues unaffected.
- Invalid user input raises ``pydantic.ValidationError`` (a ``ValueError``)
  before anything is mutated.
"""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, Sequence

from ..base.cancellation import CancellationToken
from ..base.dto import build_user_message
from ..base.logging import LogContext, get_logger, log_event
from ..base.models import Message, Settings
from ..base.streaming import (
    StreamCompleted,
    StreamDelta,
    StreamEvent,
    StreamHandle,
    StreamingClient,
    TerminalEvent,
    TokenUsage,
)
from ..config.defaults import HISTORY_LIST_LIMIT
from ..persistence import (
    ChatRecord,
    ChatSummary,
    IChatStore,
    InMemoryChatStore,
    StorageUnavailable,
)
from .transcript import Transcript

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionTurn:
    """One request/response exchange started by ``SessionState``.

    Iterating yields the handle's events unchanged; the terminal event is
    applied to the session (commit or discard) before it is returned.
    """

    def __init__(self, session: "SessionState", handle: StreamHandle, settings: Settings) -> None:
        self._session = session
        self._handle = handle
        self._settings = settings
        self._lock = threading.Lock()
        self._done = False
        self._outcome: Optional[TerminalEvent] = None
        self._record_id: Optional[int] = None

    @property
    def settings(self) -> Settings:
        """Settings captured when the turn started."""
        return self._settings

    @property
    def handle(self) -> StreamHandle:
        return self._handle

    @property
    def token(self) -> CancellationToken:
        return self._handle.token

    @property
    def outcome(self) -> Optional[TerminalEvent]:
        return self._outcome

    @property
    def record_id(self) -> Optional[int]:
        """Id of the stored record after a successful turn."""
        return self._record_id

    @property
    def finished(self) -> bool:
        return self._done

    @property
    def text(self) -> str:
        return self._handle.text

    def __iter__(self) -> "SessionTurn":
        return self

    def __next__(self) -> StreamEvent:
        evt = next(self._handle)
        if not isinstance(evt, StreamDelta):
            self._finish(evt)
        return evt

    def run(self, on_delta: Optional[Callable[[StreamDelta], None]] = None) -> TerminalEvent:
        """Drain the turn, forwarding deltas, and return the terminal event."""
        for evt in self:
            if isinstance(evt, StreamDelta) and on_delta is not None:
                on_delta(evt)
        if self._outcome is None and self._handle.outcome is not None:
            self._finish(self._handle.outcome)
        return self._outcome  # type: ignore[return-value]

    def cancel(self) -> None:
        """Abort the request; the transcript keeps no assistant reply."""
        self._handle.cancel()
        outcome = self._handle.outcome
        if outcome is not None:
            self._finish(outcome)

    def _finish(self, outcome: TerminalEvent) -> None:
        with self._lock:
            if self._done:
                return
            self._done = True
            self._outcome = outcome
        self._record_id = self._session._on_turn_finished(self, outcome)


class SessionState:
    """Owns the live transcript and settings of one conversation.

    Parameters
    ----------
    settings:
        Initial immutable settings.
    client:
        Streaming client; a default one (pooled ``httpx`` client) when omitted.
    store:
        Chat history store; an ``InMemoryChatStore`` when omitted.
    clock:
        Returns the commit timestamp of records (aware UTC).
    """

    def __init__(
        self,
        settings: Settings,
        *,
        client: Optional[StreamingClient] = None,
        store: Optional[IChatStore] = None,
        logger: Optional[logging.Logger] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._settings = settings
        self._client = client or StreamingClient()
        self._store: IChatStore = store if store is not None else InMemoryChatStore()
        self._persistence_available = store is not None
        self._logger = logger or get_logger("chatstream.session")
        self._clock = clock or _utc_now
        self._lock = threading.RLock()
        self._token = CancellationToken()
        self._transcript = Transcript()
        self._system_prompt_injected = False
        self._active: Optional[SessionTurn] = None
        self._last_record_id: Optional[int] = None
        self._last_usage: Optional[TokenUsage] = None
        self.session_id = uuid.uuid4().hex[:8]

    # Views -----------------------------------------------------------------
    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def messages(self) -> tuple[Message, ...]:
        """Snapshot of the committed transcript."""
        return self._transcript.messages

    @property
    def store(self) -> IChatStore:
        return self._store

    @property
    def persistence_available(self) -> bool:
        """False when history is memory-only (disabled or unavailable)."""
        return self._persistence_available

    @property
    def in_flight(self) -> bool:
        turn = self._active
        return turn is not None and not turn.finished

    @property
    def active_turn(self) -> Optional[SessionTurn]:
        return self._active

    @property
    def last_record_id(self) -> Optional[int]:
        return self._last_record_id

    @property
    def last_usage(self) -> Optional[TokenUsage]:
        """Token counts of the last completed reply, when the server sent them."""
        return self._last_usage

    @property
    def system_prompt_injected(self) -> bool:
        return self._system_prompt_injected

    def _ctx(self) -> LogContext:
        return LogContext(model=self._settings.model.value, session_id=self.session_id)

    # Transcript operations -------------------------------------------------
    def ensure_system_prompt(self) -> bool:
        """Insert the configured system prompt at index 0, once per session.

        Returns True only when a message was inserted. A transcript that
        already starts with a system message (e.g. a loaded record) counts
        as injected; a blank prompt inserts nothing.
        """
        with self._lock:
            if self._system_prompt_injected:
                return False
            if self._transcript.has_system:
                self._system_prompt_injected = True
                return False
            prompt = self._settings.system_prompt
            if not prompt.strip():
                return False
            self._transcript.insert_system(prompt)
            self._system_prompt_injected = True
            return True

    def append_user(self, text: str = "", images: Sequence[str] = ()) -> Message:
        """Validate and append a user message (parts when images are given)."""
        message = build_user_message(text, images)
        with self._lock:
            self._transcript.append_user(message)
        return message

    def send(self, text: str = "", images: Sequence[str] = ()) -> SessionTurn:
        """Append a user turn and start streaming the reply.

        Any in-flight turn is cancelled first, so at most one request per
        session is ever outstanding.
        """
        message = build_user_message(text, images)
        with self._lock:
            self._cancel_active_locked()
            self.ensure_system_prompt()
            self._transcript.append_user(message)
            return self._start_turn_locked()

    def retry_last(self) -> Optional[SessionTurn]:
        """Drop a trailing assistant reply and request a new one.

        Returns ``None`` without touching anything when the transcript does
        not end with an assistant message (including while a reply streams).
        """
        with self._lock:
            if self._transcript.pop_assistant() is None:
                log_event(self._logger, "session.retry.noop", self._ctx(), level=logging.DEBUG)
                return None
            return self._start_turn_locked()

    def cancel(self) -> None:
        """Cancel the in-flight turn, if any (idempotent)."""
        with self._lock:
            self._cancel_active_locked()

    def reset(self) -> None:
        """Start a new, empty conversation."""
        with self._lock:
            self._cancel_active_locked()
            self._transcript.reset()
            self._system_prompt_injected = False
            self._last_usage = None

    def load_from_record(self, record: ChatRecord) -> None:
        """Replace the transcript with a stored conversation."""
        with self._lock:
            self._cancel_active_locked()
            self._transcript.load(record.messages)
            self._last_usage = None
            self._system_prompt_injected = self._transcript.has_system
        log_event(self._logger, "session.load", self._ctx(), record_id=record.id, messages=len(record.messages))

    def update_settings(self, **changes: Any) -> Settings:
        """Replace the settings; an in-flight request keeps its own copy."""
        with self._lock:
            self._settings = self._settings.with_changes(**changes)
            return self._settings

    # History ---------------------------------------------------------------
    def history(self, limit: int = HISTORY_LIST_LIMIT) -> List[ChatSummary]:
        """Return recent conversations, newest first."""
        with self._lock:
            try:
                return self._store.list(limit)
            except StorageUnavailable as exc:
                self._degrade(exc)
                return self._store.list(limit)

    def open_record(self, record_id: int) -> ChatRecord:
        """Return a stored conversation (raises ``NotFound``)."""
        with self._lock:
            try:
                return self._store.get(record_id)
            except StorageUnavailable as exc:
                self._degrade(exc)
                return self._store.get(record_id)

    def close(self) -> None:
        """Cancel outstanding work and release the store.

        The session token is cancelled too, so a turn started afterwards is
        aborted before any request is made.
        """
        with self._lock:
            self._cancel_active_locked()
            self._token.cancel("session closed")
            close = getattr(self._store, "close", None)
        if callable(close):
            close()

    # Internals -------------------------------------------------------------
    def _cancel_active_locked(self) -> None:
        turn = self._active
        if turn is not None and not turn.finished:
            turn.cancel()
        self._active = None

    def _start_turn_locked(self) -> SessionTurn:
        self._transcript.append_assistant_placeholder()
        settings = self._settings
        handle = self._client.start(
            self._transcript.messages,
            settings,
            token=self._token.child(),
            session_id=self.session_id,
        )
        turn = SessionTurn(self, handle, settings)
        self._active = turn
        log_event(
            self._logger,
            "session.turn.start",
            self._ctx(),
            request_id=handle.request_id,
            messages=len(self._transcript),
        )
        return turn

    def _on_turn_finished(self, turn: SessionTurn, outcome: TerminalEvent) -> Optional[int]:
        with self._lock:
            self._token.unlink_child(turn.token)
            if self._active is turn:
                self._active = None
            elif self._active is not None:
                return None
            if not isinstance(outcome, StreamCompleted):
                self._transcript.discard_assistant_placeholder()
                log_event(
                    self._logger,
                    "session.turn.failed",
                    self._ctx(),
                    request_id=turn.handle.request_id,
                    error_code=outcome.kind.value,
                    partial_chars=len(outcome.partial_text),
                )
                return None
            self._transcript.commit_assistant(outcome.text)
            self._last_usage = outcome.usage
            record = ChatRecord(
                id=None,
                timestamp=self._clock(),
                model=turn.settings.model,
                messages=self._transcript.messages,
            )
            record_id = self._persist(record)
            self._last_record_id = record_id
        log_event(
            self._logger,
            "session.turn.end",
            self._ctx(),
            request_id=turn.handle.request_id,
            record_id=record_id,
            chars=len(outcome.text),
            total_tokens=outcome.usage.total_tokens if outcome.usage is not None else None,
        )
        return record_id

    def _persist(self, record: ChatRecord) -> int:
        try:
            return self._store.append(record)
        except StorageUnavailable as exc:
            self._degrade(exc)
            return self._store.append(record)

    def _degrade(self, exc: StorageUnavailable) -> None:
        log_event(
            self._logger,
            "store.unavailable",
            self._ctx(),
            error=str(exc),
            level=logging.WARNING,
        )
        self._persistence_available = False
        self._store = InMemoryChatStore()


__all__ = ["SessionState", "SessionTurn"]

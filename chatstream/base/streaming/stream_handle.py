"""Cancellable handle over one streaming request.

A ``StreamHandle`` is a lazy, finite, non-restartable iterator of stream
events produced by ``StreamingClient``. It owns the request's cancellation
token and the live HTTP response so ``cancel()`` can abort a blocked read.

State rules:
    * The terminal event is settled exactly once, either by the producer or
      by ``cancel()``; whichever comes first wins.
    * Once ``cancel()`` returns, no further delta is delivered. Deltas racing
      with a cancel from another thread are dropped in favour of the settled
      ``Failed(transport_error, "aborted")`` outcome.
    * After the terminal event has been delivered, iteration stops for good;
      iterating the handle again yields nothing.
"""
from __future__ import annotations

import threading
from typing import Callable, Iterator, Optional

import httpx

from ..cancellation import CancellationToken
from ..errors import FailureKind
from .streaming import (
    ABORTED_MESSAGE,
    StreamDelta,
    StreamEvent,
    StreamFailed,
    TerminalEvent,
    aborted,
)

Producer = Callable[["StreamHandle"], Iterator[StreamEvent]]


def _no_events(_handle: "StreamHandle") -> Iterator[StreamEvent]:
    return iter(())


class StreamHandle:
    """Iterator of ``StreamEvent`` with cooperative cancellation.

    Parameters
    ----------
    producer:
        Callable returning the event generator. It is invoked immediately but
        a generator body does not run until the first ``next()``.
    token:
        Cancellation token for this request; cancelling it (directly or via a
        parent token) cancels the handle.
    request_id:
        Identifier used in logs.
    """

    def __init__(self, producer: Producer, *, token: Optional[CancellationToken] = None, request_id: str = "") -> None:
        self._token = token or CancellationToken()
        self._request_id = request_id
        self._lock = threading.RLock()
        self._outcome: Optional[TerminalEvent] = None
        self._delivered = False
        self._iterating = False
        self._text = ""
        self._response: Optional[httpx.Response] = None
        self._events: Iterator[StreamEvent] = producer(self)
        self._token.add_callback(self._on_cancel)

    @classmethod
    def settled(
        cls,
        outcome: TerminalEvent,
        *,
        token: Optional[CancellationToken] = None,
        request_id: str = "",
    ) -> "StreamHandle":
        """Return a handle that is already settled to ``outcome``."""
        handle = cls(_no_events, token=token, request_id=request_id)
        handle._outcome = outcome
        return handle

    # Properties ------------------------------------------------------------
    @property
    def token(self) -> CancellationToken:
        return self._token

    @property
    def request_id(self) -> str:
        return self._request_id

    @property
    def outcome(self) -> Optional[TerminalEvent]:
        """The terminal event once settled, else ``None``."""
        return self._outcome

    @property
    def finished(self) -> bool:
        """Whether the terminal event has been delivered to the consumer."""
        return self._delivered

    @property
    def text(self) -> str:
        """Latest accumulated text delivered to the consumer."""
        return self._text

    @property
    def cancelled(self) -> bool:
        return self._token.cancelled

    # Iteration -------------------------------------------------------------
    def __iter__(self) -> "StreamHandle":
        return self

    def __next__(self) -> StreamEvent:
        with self._lock:
            if self._delivered:
                raise StopIteration
            if self._outcome is not None:
                return self._deliver_locked()
            self._iterating = True
        evt: Optional[StreamEvent]
        try:
            evt = next(self._events)
        except StopIteration:
            evt = None
        finally:
            with self._lock:
                self._iterating = False
        with self._lock:
            if self._outcome is None:
                if isinstance(evt, StreamDelta):
                    self._text = evt.text
                    return evt
                self._outcome = evt if evt is not None else StreamFailed(
                    FailureKind.TRANSPORT, "stream ended without a terminal event", self._text
                )
            return self._deliver_locked()

    def _deliver_locked(self) -> TerminalEvent:
        self._delivered = True
        self._close_events_locked()
        return self._outcome  # type: ignore[return-value]

    def _close_events_locked(self) -> None:
        if self._iterating:
            return
        close = getattr(self._events, "close", None)
        if close is not None:
            close()

    def run(self, on_delta: Optional[Callable[[StreamDelta], None]] = None) -> TerminalEvent:
        """Drain the handle, forwarding deltas, and return the terminal event."""
        for evt in self:
            if isinstance(evt, StreamDelta) and on_delta is not None:
                on_delta(evt)
        return self._outcome  # type: ignore[return-value]

    # Cancellation ----------------------------------------------------------
    def cancel(self, reason: str = ABORTED_MESSAGE) -> None:
        """Abort the request. Idempotent and safe after completion."""
        self._token.cancel(reason)

    def _on_cancel(self, _reason: Optional[str]) -> None:
        with self._lock:
            if self._outcome is None:
                self._outcome = aborted(self._text)
            response = self._response
            self._close_events_locked()
        if response is not None:
            response.close()

    # Transport bookkeeping (used by the producer) ---------------------------
    def attach_response(self, response: httpx.Response) -> None:
        """Register the live response; closes it at once if already cancelled."""
        with self._lock:
            self._response = response
        if self._token.cancelled:
            response.close()

    def detach_response(self, response: httpx.Response) -> None:
        with self._lock:
            if self._response is response:
                self._response = None


__all__ = ["StreamHandle"]

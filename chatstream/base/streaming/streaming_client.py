"""Streaming chat-completion client.

Purpose
-------
Run one request/response cycle against a chat-completions endpoint and expose
it as a cancellable :class:`StreamHandle` of incremental text events.

Lifecycle
---------
1. ``start`` validates the preconditions (API key, transcript ending in a user
   message). A violation settles the handle to ``Failed(auth_error)`` and no
   request is made.
2. The first ``next()`` opens a streaming POST and decodes ``data:`` lines.
   Each text fragment yields one ``StreamDelta`` with the accumulated text.
3. If the stream cannot be opened, answers non-2xx, or breaks **before any
   fragment was decoded**, the same payload is sent once more with
   ``stream: false`` and its full text completes the handle. Once a fragment
   has been decoded a failure is final and keeps the partial text.
4. Exactly one terminal event closes the sequence and is logged by
   ``finalize_stream``.

External dependencies
---------------------
``httpx`` for transport. Clients come from the shared pool unless one is
injected (tests inject clients built on ``httpx.MockTransport``).
"""
from __future__ import annotations

import logging
import uuid
from contextlib import closing
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Sequence, Tuple

import httpx

from ..cancellation import CancellationToken
from ..errors import ChatError, FailureKind, classify_exception, extract_error_message
from ..http import get_httpx_client
from ..logging import LogContext, get_logger, normalized_log_event
from ..models import Message, Settings
from .sse_decoder import DecodedLine, LineKind, SseStreamDecoder
from .stream_handle import StreamHandle
from .stream_helpers import (
    build_headers,
    build_payload,
    completions_url,
    describe_exception,
    extract_completion,
)
from .streaming import (
    StreamCompleted,
    StreamDelta,
    StreamEvent,
    StreamFailed,
    TerminalEvent,
    aborted,
)
from .streaming_finalize import finalize_stream
from .streaming_metrics import StreamMetrics


@dataclass(frozen=True)
class _PreparedRequest:
    """Everything needed to issue (and re-issue) one request."""

    url: str
    payload: Dict[str, Any]
    headers: Dict[str, str]
    settings: Settings
    ctx: LogContext

    def fallback_payload(self) -> Dict[str, Any]:
        return {**self.payload, "stream": False}


def _precondition_error(messages: Sequence[Message], settings: Settings) -> Optional[str]:
    if not settings.has_api_key:
        return "missing API key"
    if not messages:
        return "transcript is empty"
    if messages[-1].role != "user":
        return "last message must come from the user"
    return None


class StreamingClient:
    """Issue cancellable streaming completion requests.

    Parameters
    ----------
    client:
        Optional ``httpx.Client`` to use for every request. When omitted, a
        pooled client keyed by ``settings.base_url`` is used.
    logger:
        Optional logger; defaults to ``chatstream.streaming``.
    """

    def __init__(self, *, client: Optional[httpx.Client] = None, logger: Optional[logging.Logger] = None) -> None:
        self._client = client
        self._logger = logger or get_logger("chatstream.streaming")

    # Public API ------------------------------------------------------------
    def start(
        self,
        transcript: Sequence[Message],
        settings: Settings,
        *,
        token: Optional[CancellationToken] = None,
        session_id: Optional[str] = None,
    ) -> StreamHandle:
        """Start a request for ``transcript`` and return its handle.

        The transcript and settings are captured at call time; later changes
        by the caller do not affect this request.
        """
        request_id = uuid.uuid4().hex[:12]
        messages: Tuple[Message, ...] = tuple(transcript)
        ctx = LogContext(model=settings.model.value, request_id=request_id, session_id=session_id)
        problem = _precondition_error(messages, settings)
        if problem is not None:
            normalized_log_event(
                self._logger,
                "stream.rejected",
                ctx,
                phase="start",
                attempt=0,
                error_code=FailureKind.AUTH.value,
                emitted=False,
                error=problem,
                level=logging.WARNING,
            )
            return StreamHandle.settled(
                StreamFailed(FailureKind.AUTH, problem, ""), token=token, request_id=request_id
            )
        prepared = _PreparedRequest(
            url=completions_url(settings),
            payload=build_payload(messages, settings, stream=True),
            headers=build_headers(settings.api_key, stream=True),
            settings=settings,
            ctx=ctx,
        )
        return StreamHandle(
            lambda handle: self._produce(handle, prepared),
            token=token,
            request_id=request_id,
        )

    def cancel(self, handle: StreamHandle) -> None:
        """Cancel ``handle`` (idempotent)."""
        handle.cancel()

    # Internals -------------------------------------------------------------
    def _http(self, settings: Settings) -> httpx.Client:
        return self._client if self._client is not None else get_httpx_client(settings.base_url, "chat")

    def _produce(self, handle: StreamHandle, prepared: _PreparedRequest) -> Iterator[StreamEvent]:
        """Event generator backing a handle."""
        metrics = StreamMetrics()
        normalized_log_event(
            self._logger,
            "stream.start",
            prepared.ctx,
            phase="start",
            attempt=1,
            emitted=False,
            messages=len(prepared.payload["messages"]),
        )
        text = ""
        outcome: TerminalEvent
        try:
            with closing(self._stream_fragments(handle, prepared, metrics)) as fragments:
                for fragment in fragments:
                    text += fragment
                    metrics.mark_delta()
                    yield StreamDelta(text=text, fragment=fragment, index=metrics.emitted - 1)
            outcome = StreamCompleted(text, usage=metrics.usage)
        except Exception as exc:  # transport, status and cancellation paths
            if handle.cancelled:
                outcome = aborted(text)
            elif metrics.emitted == 0:
                outcome = yield from self._fallback(handle, prepared, metrics, exc)
            else:
                outcome = StreamFailed(classify_exception(exc), self._message_for(exc), text)
        yield finalize_stream(logger=self._logger, ctx=prepared.ctx, metrics=metrics, outcome=outcome)

    def _stream_fragments(
        self, handle: StreamHandle, prepared: _PreparedRequest, metrics: StreamMetrics
    ) -> Iterator[str]:
        """Yield text fragments of the streaming response in arrival order.

        Raises ``ChatError`` for a non-2xx status, ``CancelledError`` when the
        token is cancelled between reads, and ``httpx`` errors for transport
        failures.
        """
        token = handle.token
        token.raise_if_cancelled()
        metrics.attempts += 1
        client = self._http(prepared.settings)
        with client.stream("POST", prepared.url, json=prepared.payload, headers=prepared.headers) as response:
            handle.attach_response(response)
            try:
                if not response.is_success:
                    body = response.read()
                    raise ChatError(
                        kind=FailureKind.SERVER,
                        message=extract_error_message(body, response.status_code, response.reason_phrase),
                        status=response.status_code,
                    )
                decoder = SseStreamDecoder()
                for chunk in response.iter_bytes():
                    token.raise_if_cancelled()
                    fragments, done = self._collect(decoder.feed(chunk), prepared.ctx, metrics)
                    for fragment in fragments:
                        token.raise_if_cancelled()
                        yield fragment
                    if done:
                        return
                token.raise_if_cancelled()
                fragments, _ = self._collect(decoder.finish(), prepared.ctx, metrics)
                for fragment in fragments:
                    yield fragment
            finally:
                handle.detach_response(response)

    def _collect(
        self, lines: Iterator[DecodedLine], ctx: LogContext, metrics: StreamMetrics
    ) -> Tuple[list[str], bool]:
        """Return the fragments of ``lines`` and whether the sentinel was seen.

        Reported token usage is kept on ``metrics``; the last report wins.
        """
        fragments: list[str] = []
        for line in lines:
            if line.usage is not None:
                metrics.usage = line.usage
            if line.kind is LineKind.DONE:
                return fragments, True
            if line.kind is LineKind.FRAGMENT and line.fragment:
                fragments.append(line.fragment)
            elif line.kind is LineKind.MALFORMED:
                normalized_log_event(
                    self._logger,
                    "stream.decode.skip",
                    ctx,
                    phase="decode",
                    error_code=FailureKind.DECODE.value,
                    error=line.error,
                    level=logging.DEBUG,
                )
        return fragments, False

    def _fallback(
        self,
        handle: StreamHandle,
        prepared: _PreparedRequest,
        metrics: StreamMetrics,
        cause: Exception,
    ) -> Iterator[StreamEvent]:
        """Retry once without streaming; returns the terminal event."""
        metrics.fallback_used = True
        metrics.attempts += 1
        normalized_log_event(
            self._logger,
            "stream.fallback",
            prepared.ctx,
            phase="fallback",
            attempt=metrics.attempts,
            error_code=classify_exception(cause).value,
            emitted=False,
            cause=self._message_for(cause),
        )
        headers = {**prepared.headers, "Accept": "application/json"}
        try:
            client = self._http(prepared.settings)
            with client.stream("POST", prepared.url, json=prepared.fallback_payload(), headers=headers) as response:
                handle.attach_response(response)
                try:
                    body = response.read()
                finally:
                    handle.detach_response(response)
        except Exception as exc:  # transport failure or cancellation during fallback
            if handle.cancelled:
                return aborted("")
            return StreamFailed(classify_exception(exc), self._message_for(exc), "")
        if handle.cancelled:
            return aborted("")
        if not response.is_success:
            return StreamFailed(
                FailureKind.SERVER,
                extract_error_message(body, response.status_code, response.reason_phrase),
                "",
            )
        try:
            content, usage = extract_completion(body)
        except ValueError as exc:
            return StreamFailed(FailureKind.SERVER, f"invalid completion response: {exc}", "")
        metrics.usage = usage
        if content:
            metrics.mark_delta()
            yield StreamDelta(text=content, fragment=content, index=0)
        return StreamCompleted(content, usage=usage)

    @staticmethod
    def _message_for(exc: BaseException) -> str:
        if isinstance(exc, ChatError):
            return exc.message
        return describe_exception(exc)


__all__ = ["StreamingClient"]

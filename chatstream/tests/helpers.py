"""Fakes for HTTP-level tests.

``FakeEndpoint`` is an ``httpx.MockTransport`` handler standing in for the
chat-completions endpoint. Streaming requests (``"stream": true``) and
non-stream fallback requests are answered by separate callables so a test can
break one and not the other. ``ChunkStream`` delivers a body chunk by chunk
and can drop the connection or block mid-stream.
"""
from __future__ import annotations

import json
import logging
import threading
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

import httpx

BASE_URL = "https://api.test/v1"
COMPLETIONS_URL = BASE_URL + "/chat/completions"
DONE_LINE = b"data: [DONE]\n\n"


def sse_line(fragment: str) -> bytes:
    payload = {"choices": [{"index": 0, "delta": {"content": fragment}}]}
    return f"data: {json.dumps(payload)}\n\n".encode("utf-8")


def sse_body(*fragments: str, done: bool = True) -> bytes:
    body = b"".join(sse_line(f) for f in fragments)
    return body + (DONE_LINE if done else b"")


def usage_line(prompt: int, completion: int) -> bytes:
    usage = {"prompt_tokens": prompt, "completion_tokens": completion, "total_tokens": prompt + completion}
    payload = {"choices": [], "usage": usage}
    return f"data: {json.dumps(payload)}\n\n".encode("utf-8")


def completion_body(content: Optional[str], usage: Optional[Dict[str, int]] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]}
    if usage is not None:
        body["usage"] = usage
    return body


class ChunkStream(httpx.SyncByteStream):
    """Response body delivered chunk by chunk.

    ``error`` is raised after the last chunk (a dropped connection). With a
    ``gate`` the stream blocks before the second chunk until the gate is set
    or the response is closed; a closed stream ends early.
    """

    def __init__(
        self,
        chunks: Iterable[bytes],
        *,
        error: Optional[Exception] = None,
        gate: Optional[threading.Event] = None,
    ) -> None:
        self.chunks = list(chunks)
        self.error = error
        self.gate = gate
        self.closed = False
        self.delivered = 0

    def __iter__(self) -> Iterator[bytes]:
        for i, chunk in enumerate(self.chunks):
            if i == 1 and self.gate is not None:
                self.gate.wait(timeout=5)
            if self.closed:
                return
            self.delivered += 1
            yield chunk
        if self.error is not None:
            raise self.error

    def close(self) -> None:
        self.closed = True
        if self.gate is not None:
            self.gate.set()


def stream_response(
    *fragments: str,
    done: bool = True,
    error: Optional[Exception] = None,
    gate: Optional[threading.Event] = None,
) -> httpx.Response:
    chunks = [sse_line(f) for f in fragments] + ([DONE_LINE] if done else [])
    return httpx.Response(
        200,
        headers={"content-type": "text/event-stream"},
        stream=ChunkStream(chunks, error=error, gate=gate),
    )


def raw_stream_response(chunks: Iterable[bytes]) -> httpx.Response:
    return httpx.Response(200, headers={"content-type": "text/event-stream"}, stream=ChunkStream(chunks))


Handler = Callable[[httpx.Request], httpx.Response]


class FakeEndpoint:
    """Record requests and answer them with configurable handlers."""

    def __init__(self, on_stream: Optional[Handler] = None, on_fallback: Optional[Handler] = None) -> None:
        self.on_stream: Handler = on_stream or (lambda req: stream_response("Hel", "lo"))
        self.on_fallback: Handler = on_fallback or (lambda req: httpx.Response(200, json=completion_body("Hello")))
        self.requests: List[httpx.Request] = []
        self.responses: List[httpx.Response] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    def payloads(self) -> List[Dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.on_stream if json.loads(request.content).get("stream") else self.on_fallback
        response = handler(request)
        self.responses.append(response)
        return response

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))


def refuse(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


class ListHandler(logging.Handler):
    """Collect the decoded JSON payloads of ``log_event`` records."""

    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.events: List[Dict[str, Any]] = []

    def emit(self, record: logging.LogRecord) -> None:
        try:
            data = json.loads(record.getMessage())
        except ValueError:
            data = {"msg": record.getMessage()}
        if not isinstance(data, dict):
            data = {"msg": record.getMessage()}
        data["_level"] = record.levelno
        self.events.append(data)

    def named(self, event: str) -> List[Dict[str, Any]]:
        return [e for e in self.events if e.get("event") == event]


__all__ = [
    "BASE_URL",
    "COMPLETIONS_URL",
    "ChunkStream",
    "FakeEndpoint",
    "ListHandler",
    "completion_body",
    "usage_line",
    "raw_stream_response",
    "refuse",
    "sse_body",
    "sse_line",
    "stream_response",
]

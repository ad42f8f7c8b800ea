"""Cancellation and iteration semantics of ``StreamHandle``.

Each test prints a short description of the scenario, mirroring the streaming
contract tests.
"""
from __future__ import annotations

import threading
import time

import httpx

from chatstream.base.cancellation import CancellationToken
from chatstream.base.errors import FailureKind
from chatstream.base.models import Message
from chatstream.base.streaming import (
    ABORTED_MESSAGE,
    StreamCompleted,
    StreamDelta,
    StreamFailed,
    StreamingClient,
)
from chatstream.tests.helpers import FakeEndpoint, stream_response

HI = [Message(role="user", content="Hi")]


def test_cancel_before_first_next_sends_nothing(settings):
    print("TEST: cancel before iteration settles to aborted without a request")
    endpoint = FakeEndpoint()
    handle = StreamingClient(client=endpoint.client()).start(HI, settings)
    handle.cancel()

    events = list(handle)
    assert events == [StreamFailed(FailureKind.TRANSPORT, ABORTED_MESSAGE, "")]  # nosec B101 - pytest assert in tests
    assert events[0].aborted  # nosec B101 - pytest assert in tests
    assert endpoint.calls == 0  # nosec B101 - pytest assert in tests


def test_cancel_between_deltas_keeps_text_and_stops_stream(settings):
    print("TEST: cancel after one delta yields aborted with the partial text")
    endpoint = FakeEndpoint(on_stream=lambda req: stream_response("Par", "tial", "ly"))
    handle = StreamingClient(client=endpoint.client()).start(HI, settings)

    first = next(handle)
    assert isinstance(first, StreamDelta) and first.text == "Par"  # nosec B101 - pytest assert in tests
    handle.cancel()
    rest = list(handle)

    assert rest == [StreamFailed(FailureKind.TRANSPORT, ABORTED_MESSAGE, "Par")]  # nosec B101 - pytest assert in tests
    assert endpoint.responses[0].is_closed  # nosec B101 - pytest assert in tests
    assert endpoint.calls == 1  # nosec B101 - pytest assert in tests


def test_cancel_from_run_callback(settings):
    print("TEST: cancelling inside the delta callback ends the run as aborted")
    endpoint = FakeEndpoint(on_stream=lambda req: stream_response("a", "b", "c"))
    handle = StreamingClient(client=endpoint.client()).start(HI, settings)
    seen = []

    def on_delta(evt: StreamDelta) -> None:
        seen.append(evt.text)
        if len(seen) == 2:
            handle.cancel()

    outcome = handle.run(on_delta)
    assert seen == ["a", "ab"]  # nosec B101 - pytest assert in tests
    assert outcome.aborted and outcome.partial_text == "ab"  # nosec B101 - pytest assert in tests


def test_cancel_from_another_thread_unblocks_read(settings):
    print("TEST: cancel from a second thread closes the blocked response")
    gate = threading.Event()
    endpoint = FakeEndpoint(on_stream=lambda req: stream_response("one", "two", gate=gate))
    handle = StreamingClient(client=endpoint.client()).start(HI, settings)
    results = []

    def consume() -> None:
        results.append(handle.run())

    worker = threading.Thread(target=consume)
    worker.start()
    deadline = time.monotonic() + 5
    while handle.text != "one" and time.monotonic() < deadline:
        time.sleep(0.01)
    handle.cancel()
    worker.join(timeout=5)

    assert not worker.is_alive()  # nosec B101 - pytest assert in tests
    assert results == [StreamFailed(FailureKind.TRANSPORT, ABORTED_MESSAGE, "one")]  # nosec B101 - pytest assert in tests
    assert handle.outcome == results[0]  # nosec B101 - pytest assert in tests


def test_cancel_after_completion_is_a_noop(settings):
    print("TEST: cancel after the terminal event keeps the completed outcome")
    endpoint = FakeEndpoint(on_stream=lambda req: stream_response("done"))
    handle = StreamingClient(client=endpoint.client()).start(HI, settings)
    outcome = handle.run()
    handle.cancel()
    handle.cancel()

    assert outcome == StreamCompleted("done")  # nosec B101 - pytest assert in tests
    assert handle.outcome == StreamCompleted("done")  # nosec B101 - pytest assert in tests
    assert handle.finished  # nosec B101 - pytest assert in tests


def test_handle_is_not_restartable(settings):
    print("TEST: a drained handle yields nothing on a second pass")
    endpoint = FakeEndpoint()
    handle = StreamingClient(client=endpoint.client()).start(HI, settings)
    assert len(list(handle)) == 3  # nosec B101 - pytest assert in tests
    assert list(handle) == []  # nosec B101 - pytest assert in tests
    assert endpoint.calls == 1  # nosec B101 - pytest assert in tests


def test_parent_token_cancels_handle(settings):
    print("TEST: cancelling a parent token aborts the handle")
    parent = CancellationToken()
    endpoint = FakeEndpoint()
    handle = StreamingClient(client=endpoint.client()).start(HI, settings, token=parent.child())
    parent.cancel("session closed")
    outcome = handle.run()
    assert outcome.aborted  # nosec B101 - pytest assert in tests
    assert endpoint.calls == 0  # nosec B101 - pytest assert in tests


def test_client_cancel_delegates_to_handle(settings):
    client = StreamingClient(client=FakeEndpoint().client())
    handle = client.start(HI, settings)
    client.cancel(handle)
    client.cancel(handle)
    assert handle.cancelled and handle.outcome.aborted  # nosec B101 - pytest assert in tests


def test_cancel_during_fallback_is_aborted(settings):
    print("TEST: cancel while the non-stream retry is pending yields aborted")
    holder = {}

    def fallback(req: httpx.Request) -> httpx.Response:
        holder["handle"].cancel()
        return httpx.Response(200, json={"choices": [{"message": {"content": "late"}}]})

    endpoint = FakeEndpoint(on_stream=lambda req: httpx.Response(500), on_fallback=fallback)
    handle = StreamingClient(client=endpoint.client()).start(HI, settings)
    holder["handle"] = handle
    events = list(handle)

    assert events == [StreamFailed(FailureKind.TRANSPORT, ABORTED_MESSAGE, "")]  # nosec B101 - pytest assert in tests
    assert endpoint.calls == 2  # nosec B101 - pytest assert in tests

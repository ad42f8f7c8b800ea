"""Streaming package.

Exposes the stream event types, the line decoder, the cancellable handle and
the streaming client under a single namespace.
"""

from .streaming import (
    ABORTED_MESSAGE,
    StreamCompleted,
    StreamDelta,
    StreamEvent,
    StreamFailed,
    TerminalEvent,
    TokenUsage,
    aborted,
)
from .sse_decoder import DecodedLine, LineBuffer, LineKind, SseStreamDecoder, decode_line
from .streaming_metrics import StreamMetrics
from .streaming_finalize import finalize_stream
from .stream_handle import StreamHandle
from .streaming_client import StreamingClient

__all__ = [
    "ABORTED_MESSAGE",
    "StreamCompleted",
    "StreamDelta",
    "StreamEvent",
    "StreamFailed",
    "TerminalEvent",
    "TokenUsage",
    "aborted",
    "DecodedLine",
    "LineBuffer",
    "LineKind",
    "SseStreamDecoder",
    "decode_line",
    "StreamMetrics",
    "finalize_stream",
    "StreamHandle",
    "StreamingClient",
]

"""Streaming metrics data structure.

Collected per request and reported once by ``finalize_stream``.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Optional

from .streaming import TokenUsage


@dataclass
class StreamMetrics:
    """Timing and volume of a single request.

    Attributes:
        emitted: Number of delta events produced.
        time_to_first_token_ms: Delay between start and the first delta.
        total_duration_ms: Delay between start and the terminal event.
        fallback_used: Whether the non-stream retry ran.
        attempts: HTTP requests issued (1, or 2 with fallback).
        usage: Latest token counts reported by the server, if any.
    """

    emitted: int = 0
    time_to_first_token_ms: Optional[float] = None
    total_duration_ms: Optional[float] = None
    fallback_used: bool = False
    attempts: int = 0
    usage: Optional[TokenUsage] = None
    started_at: float = field(default_factory=time.monotonic, repr=False)

    def _elapsed_ms(self) -> float:
        return round((time.monotonic() - self.started_at) * 1000.0, 3)

    def mark_delta(self) -> None:
        self.emitted += 1
        if self.time_to_first_token_ms is None:
            self.time_to_first_token_ms = self._elapsed_ms()

    def mark_finished(self) -> None:
        self.total_duration_ms = self._elapsed_ms()


__all__ = ["StreamMetrics"]

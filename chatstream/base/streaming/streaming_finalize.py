"""Finalize stream helper.

Emits the single consolidated log event for a finished request and hands the
terminal event back to the caller.
"""
from __future__ import annotations

import logging

from ..logging import LogContext, normalized_log_event
from .streaming import StreamCompleted, TerminalEvent
from .streaming_metrics import StreamMetrics


def finalize_stream(
    *,
    logger: logging.Logger,
    ctx: LogContext,
    metrics: StreamMetrics,
    outcome: TerminalEvent,
) -> TerminalEvent:
    """Record final metrics and log ``stream.end`` or ``stream.error``."""
    metrics.mark_finished()
    failed = not isinstance(outcome, StreamCompleted)
    normalized_log_event(
        logger,
        "stream.error" if failed else "stream.end",
        ctx,
        phase="finalize",
        attempt=metrics.attempts,
        error_code=outcome.kind.value if failed else None,
        emitted=metrics.emitted > 0,
        tokens=metrics.usage.to_dict() if metrics.usage is not None else None,
        emitted_count=metrics.emitted,
        time_to_first_token_ms=metrics.time_to_first_token_ms,
        total_duration_ms=metrics.total_duration_ms,
        fallback_used=metrics.fallback_used,
        error=outcome.message if failed else None,
        level=logging.WARNING if failed and not outcome.aborted else logging.INFO,
    )
    return outcome


__all__ = ["finalize_stream"]

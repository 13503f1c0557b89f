"""
Request trace ids and timed spans around one-off startup work
(trust-set construction, secret bootstrap).
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from time import monotonic
from uuid import uuid4

from realip.core.logging import get_structured_logger


_trace_id: ContextVar[str | None] = ContextVar("trace_id", default=None)

logger = get_structured_logger("trace")


def set_trace_id(value: str | None) -> None:
    if value:
        _trace_id.set(value)


def get_trace_id() -> str | None:
    return _trace_id.get()


@contextmanager
def trace_span(name: str, **fields):
    """Log one ``span.end`` line with duration and outcome for the block."""
    span_id = uuid4().hex[:16]
    start = monotonic()
    outcome = "ok"
    try:
        yield span_id
    except Exception:
        outcome = "error"
        raise
    finally:
        log = logger.error if outcome == "error" else logger.info
        log(
            "span.end",
            extra={
                "trace_id": get_trace_id(),
                "span_id": span_id,
                "span_name": name,
                "outcome": outcome,
                "duration_ms": round((monotonic() - start) * 1000.0, 2),
                **fields,
            },
        )

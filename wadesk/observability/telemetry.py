"""
Lightweight telemetry helpers.

Nothing is shipped to an external collector; events become structured log
lines and counters/latencies live in memory so tests can assert
instrumentation.

Chat ids and phone numbers identify real people, so event fields carrying
them are masked down to their last four digits before they are logged.
"""

from __future__ import annotations

import contextlib
import logging
import time
from collections.abc import Iterator
from typing import Any

logger = logging.getLogger("wadesk.telemetry")

_COUNTERS: dict[str, int] = {}
_LATENCIES: dict[str, list[float]] = {}

_IDENTIFYING_FIELDS = frozenset({"chat_id", "phone", "phone_number"})


def mask_identifier(value: Any) -> str:
    """
    Mask a chat id or phone number for logs.

    >>> mask_identifier("15551234567@c.us")
    '***4567@c.us'
    >>> mask_identifier("+15551234567")
    '***4567'
    """
    text = str(value)
    local, sep, server = text.partition("@")
    return f"***{local[-4:]}{sep}{server}" if len(local) > 4 else text


def log_event(event_name: str, **fields: Any) -> None:
    """
    Structured log event. Callers must not pass message bodies or note text;
    chat id and phone fields are masked here.

    Side Effects:
        - Writes to logger (info level)
    """
    for key in _IDENTIFYING_FIELDS.intersection(fields):
        if fields[key] is not None:
            fields[key] = mask_identifier(fields[key])
    logger.info("event=%s %s", event_name, fields)


def counter(name: str, increment: int = 1) -> int:
    """
    Increment an in-memory counter and emit a debug log.

    Side Effects:
        - Modifies _COUNTERS dict (in-memory state)
        - Writes to logger (debug level)
    """
    value = _COUNTERS.get(name, 0) + increment
    _COUNTERS[name] = value
    logger.debug("counter=%s value=%s", name, value)
    return value


def get_counter(name: str) -> int:
    return _COUNTERS.get(name, 0)


@contextlib.contextmanager
def time_block(metric_name: str) -> Iterator[None]:
    """
    Context manager for timing code blocks.

    Side Effects:
        - Appends to _LATENCIES dict (in-memory state)
        - Writes to logger (debug level) with timing
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        name = metric_name if metric_name.endswith("_ms") else f"{metric_name}_ms"
        logger.debug("timing=%s value=%.3f", name, elapsed_ms)
        _LATENCIES.setdefault(name, []).append(elapsed_ms)


def get_latency_stats(metric_name: str) -> dict[str, float]:
    """Return count/min/max/avg for a recorded latency metric."""
    name = metric_name if metric_name.endswith("_ms") else f"{metric_name}_ms"
    samples = _LATENCIES.get(name, [])
    if not samples:
        return {"count": 0, "min": 0.0, "max": 0.0, "avg": 0.0}
    return {
        "count": len(samples),
        "min": min(samples),
        "max": max(samples),
        "avg": sum(samples) / len(samples),
    }


def reset() -> None:
    """
    Clear counters and latencies (useful for tests).

    Side Effects:
        - Clears _COUNTERS and _LATENCIES (in-memory state)
    """
    _COUNTERS.clear()
    _LATENCIES.clear()

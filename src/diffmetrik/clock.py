"""Wall-clock helpers.

Times are integer nanoseconds since the Unix epoch so that the
``{"secs": ..., "nanos": ...}`` form written to disk round-trips exactly.
"""

from __future__ import annotations

import time
from typing import Any, Callable

from .errors import ClockError, SerializationError

NANOS_PER_SECOND = 1_000_000_000

Clock = Callable[[], int]


def now_ns() -> int:
    """Return the current wall-clock time in nanoseconds since the epoch."""
    try:
        value = time.time_ns()
    except OSError as exc:
        raise ClockError(f"System time unavailable: {exc}") from exc
    if value < 0:
        raise ClockError("System time is before the Unix epoch")
    return value


def duration_to_dict(nanos: int) -> dict[str, int]:
    secs, rem = divmod(nanos, NANOS_PER_SECOND)
    return {"secs": secs, "nanos": rem}


def duration_from_dict(data: Any) -> int:
    """Parse a ``{"secs", "nanos"}`` mapping back to integer nanoseconds."""
    if not isinstance(data, dict):
        raise SerializationError(f"Expected duration object, got {type(data).__name__}")
    secs = data.get("secs")
    nanos = data.get("nanos", 0)
    # bool is an int subclass; reject it explicitly
    for value in (secs, nanos):
        if not isinstance(value, int) or isinstance(value, bool):
            raise SerializationError(f"Invalid duration field in {data!r}")
    if secs < 0 or not 0 <= nanos < NANOS_PER_SECOND:
        raise SerializationError(f"Duration out of range: {data!r}")
    return secs * NANOS_PER_SECOND + nanos

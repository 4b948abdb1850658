"""Clock readings and nanosecond time conversions."""

from __future__ import annotations

import enum
import time
from typing import Callable

from binderkit.binderlog import fatal_if

_INT_MAX = 2**31 - 1
_NS_PER_SECOND = 1_000_000_000
_NS_PER_MILLISECOND = 1_000_000
_NS_PER_MICROSECOND = 1_000


class Clock(enum.IntEnum):
    """Clocks that :func:`system_time` can read."""

    REALTIME = 0
    MONOTONIC = 1
    PROCESS_CPUTIME = 2
    THREAD_CPUTIME = 3
    BOOTTIME = 4


def _boottime_ns() -> int:
    clock_id = getattr(time, "CLOCK_BOOTTIME", None)
    if clock_id is None:
        return time.monotonic_ns()
    return time.clock_gettime_ns(clock_id)


_READERS: dict[Clock, Callable[[], int]] = {
    Clock.REALTIME: time.time_ns,
    Clock.MONOTONIC: time.monotonic_ns,
    Clock.PROCESS_CPUTIME: time.process_time_ns,
    Clock.THREAD_CPUTIME: time.thread_time_ns,
    Clock.BOOTTIME: _boottime_ns,
}


def _div_toward_zero(value: int, divisor: int) -> int:
    quotient = abs(value) // divisor
    return -quotient if value < 0 else quotient


def seconds_to_nanoseconds(value: int) -> int:
    return value * _NS_PER_SECOND


def milliseconds_to_nanoseconds(value: int) -> int:
    return value * _NS_PER_MILLISECOND


def microseconds_to_nanoseconds(value: int) -> int:
    return value * _NS_PER_MICROSECOND


def nanoseconds_to_seconds(value: int) -> int:
    return _div_toward_zero(value, _NS_PER_SECOND)


def nanoseconds_to_milliseconds(value: int) -> int:
    return _div_toward_zero(value, _NS_PER_MILLISECOND)


def nanoseconds_to_microseconds(value: int) -> int:
    return _div_toward_zero(value, _NS_PER_MICROSECOND)


def system_time(clock: int = Clock.MONOTONIC) -> int:
    """Return the current reading of ``clock`` in nanoseconds."""
    valid = isinstance(clock, int) and 0 <= clock < len(Clock)
    fatal_if(not valid, "clock < 0 || clock >= CLOCK_ID_MAX", "invalid clock id")
    return _READERS[Clock(clock)]()


def uptime_nanos() -> int:
    return system_time(Clock.MONOTONIC)


def uptime_millis() -> int:
    return nanoseconds_to_milliseconds(uptime_nanos())


def to_millisecond_timeout_delay(reference_time: int, timeout_time: int) -> int:
    """Milliseconds from ``reference_time`` to ``timeout_time``, rounded up.

    Returns 0 if the timeout has passed, and -1 (wait forever) if the delay
    exceeds what fits in a millisecond count.
    """
    if timeout_time <= reference_time:
        return 0
    delay = timeout_time - reference_time
    if delay > (_INT_MAX - 1) * _NS_PER_MILLISECOND:
        return -1
    return (delay + _NS_PER_MILLISECOND - 1) // _NS_PER_MILLISECOND
"""Tagged diagnostic logging and fatal consistency checks."""

from __future__ import annotations

import enum
import inspect
import logging
import os
import threading

_logger = logging.getLogger("binderkit")

LOG_BUFSIZE = 512
LOG_TRANSACTIONS_OVER_SIZE = 2 * 1024
LOG_REPLIES_OVER_SIZE = 2 * 1024

_DEFAULT_TAG = "binderkit"


class DebugLevel(enum.IntFlag):
    """Severity bits that select which messages are written."""

    ERROR = 1 << 0
    WARNING = 1 << 1
    INFO = 1 << 2
    VERBOSE = 1 << 3


_DEBUG_MASK = DebugLevel.ERROR | DebugLevel.WARNING


class FatalError(RuntimeError):
    """Raised when a fatal check fails and the process cannot go on."""


def _caller_line(steps: int) -> int:
    frame = inspect.currentframe()
    try:
        for _ in range(steps):
            if frame is None:
                return 0
            frame = frame.f_back
        return frame.f_lineno if frame is not None else 0
    finally:
        del frame


def log_write(tag: str, line: int, message: str) -> str:
    """Write one formatted log line and return it."""
    text = (
        f"[{tag} ({line})][{os.getpid()}:{threading.get_native_id()}]:"
        f"{message[: LOG_BUFSIZE - 1]}"
    )
    _logger.info("%s", text)
    return text


def binder_log(level: DebugLevel, tag: str, message: str) -> str | None:
    """Write ``message`` if ``level`` is enabled; return the written line or None."""
    if not DebugLevel(level) & _DEBUG_MASK:
        return None
    return log_write(tag, _caller_line(2), message)


def check(condition: object, description: str) -> bool:
    """Log a non-fatal failure when ``condition`` holds; return whether it held."""
    failed = bool(condition)
    if failed:
        log_write(_DEFAULT_TAG, _caller_line(2), f"Check failed: {description}")
    return failed


def fatal_if(condition: object, description: str, message: str) -> None:
    """Log and raise :class:`FatalError` when ``condition`` holds."""
    if condition:
        line = _caller_line(2)
        log_write(_DEFAULT_TAG, line, f"Check FATAL_failed: {description}")
        log_write(_DEFAULT_TAG, line, message)
        raise FatalError(message)


def log_assert(condition: object, description: str, message: str) -> None:
    """Raise :class:`FatalError` unless ``condition`` holds."""
    if not condition:
        line = _caller_line(2)
        log_write(_DEFAULT_TAG, line, f"Check FATAL_failed: !({description})")
        log_write(_DEFAULT_TAG, line, message)
        raise FatalError(message)


def fatal(message: str) -> None:
    """Log ``message`` and raise :class:`FatalError` unconditionally."""
    log_write(_DEFAULT_TAG, _caller_line(2), message)
    raise FatalError(message)
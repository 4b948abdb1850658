"""Restartable worker thread with cooperative exit requests."""

from __future__ import annotations

import logging
import os
import threading

from binderkit.binderlog import fatal_if

PRIORITY_DEFAULT = 100

_logger = logging.getLogger("binderkit.threads")
_stack_lock = threading.Lock()


class ThreadError(RuntimeError):
    """Raised when a thread cannot be started, waited on, or failed while running."""


class BinderThread:
    """A thread that calls :meth:`thread_loop` until it returns False or exit is requested.

    Subclasses override :meth:`thread_loop` and optionally :meth:`ready_to_run`.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._exited = threading.Condition(self._lock)
        self._error: BaseException | None = None
        self._exit_pending = False
        self._running = False
        self._ident: int | None = None
        self._tid = -1

    # -- overridable ----------------------------------------------------

    def ready_to_run(self) -> None:
        """Called once in the new thread before the loop; raise to abort."""

    def thread_loop(self) -> bool:
        """One pass of the thread's work; return True to be called again."""
        return False

    # -- control --------------------------------------------------------

    def run(
        self, name: str | None, priority: int = PRIORITY_DEFAULT, stack: int = 0
    ) -> None:
        """Start the thread; ThreadError if it is already running or cannot start."""
        fatal_if(name is None, "name == NULL", "thread name not provided to Thread::run")
        with self._lock:
            if self._running:
                raise ThreadError("thread already started")
            self._error = None
            self._exit_pending = False
            self._ident = None
            self._running = True
            thread = threading.Thread(
                target=self._main, args=(priority,), name=name, daemon=True
            )
            try:
                self._start(thread, stack)
            except (RuntimeError, ValueError) as exc:
                self._running = False
                self._ident = None
                _logger.error("thread %s failed to start: %s", name, exc)
                raise ThreadError(f"could not start thread {name!r}") from exc
            self._ident = thread.ident

    @staticmethod
    def _start(thread: threading.Thread, stack: int) -> None:
        if not stack:
            thread.start()
            return
        with _stack_lock:
            previous = threading.stack_size(stack)
            try:
                thread.start()
            finally:
                threading.stack_size(previous)

    def _main(self, priority: int) -> None:
        with self._lock:
            self._ident = threading.get_ident()
            self._tid = threading.get_native_id()
        if priority != PRIORITY_DEFAULT and hasattr(os, "setpriority"):
            try:
                os.setpriority(os.PRIO_PROCESS, 0, priority)
            except OSError as exc:
                _logger.warning("could not set thread priority %d: %s", priority, exc)

        first = True
        while True:
            try:
                if first:
                    first = False
                    self.ready_to_run()
                    result = not self.exit_pending() and self.thread_loop()
                else:
                    result = self.thread_loop()
            except Exception as exc:  # the thread must always report its exit
                with self._lock:
                    self._error = exc
                result = False

            with self._lock:
                if not result or self._exit_pending:
                    self._exit_pending = True
                    self._running = False
                    self._ident = None
                    self._exited.notify_all()
                    return

    def _raise_if_failed(self) -> None:
        if self._error is not None:
            raise ThreadError("thread failed") from self._error

    def request_exit(self) -> None:
        """Ask the thread to stop after its current pass."""
        with self._lock:
            self._exit_pending = True

    def request_exit_and_wait(self) -> None:
        """Ask the thread to stop and wait until it has."""
        with self._lock:
            if self._ident == threading.get_ident():
                raise ThreadError(
                    "request_exit_and_wait() called from the thread itself would deadlock"
                )
            self._exit_pending = True
            while self._running:
                self._exited.wait()
            self._exit_pending = False
            self._raise_if_failed()

    def join(self) -> None:
        """Wait for the thread to finish; ThreadError if it failed."""
        with self._lock:
            if self._ident == threading.get_ident():
                raise ThreadError("join() called from the thread itself would deadlock")
            while self._running:
                self._exited.wait()
            self._raise_if_failed()

    def is_running(self) -> bool:
        with self._lock:
            return self._running

    def get_tid(self) -> int:
        """Native id of the running thread, or -1 when it is not running."""
        with self._lock:
            if self._running:
                return self._tid
            _logger.error("get_tid() is undefined before run()")
            return -1

    def exit_pending(self) -> bool:
        with self._lock:
            return self._exit_pending
import threading

import pytest

from binderkit.binderlog import FatalError
from binderkit.threads import BinderThread, ThreadError


class CountingThread(BinderThread):
    def __init__(self, limit):
        super().__init__()
        self.limit = limit
        self.calls = 0

    def thread_loop(self):
        self.calls += 1
        return self.calls < self.limit


class BlockingThread(BinderThread):
    def __init__(self):
        super().__init__()
        self.started = threading.Event()
        self.release = threading.Event()
        self.tids = []

    def thread_loop(self):
        self.tids.append(threading.get_native_id())
        self.started.set()
        self.release.wait(5)
        return True


def test_loop_runs_until_false():
    t = CountingThread(limit=3)
    BinderThread.run(t, "counter")
    BinderThread.join(t)
    assert t.calls == 3
    assert BinderThread.is_running(t) is False


def test_get_tid_before_run_is_minus_one():
    assert BinderThread().get_tid() == -1


def test_run_without_name_is_fatal():
    with pytest.raises(FatalError):
        BinderThread().run(None)


def test_run_twice_while_running_raises():
    t = BlockingThread()
    BinderThread.run(t, "blocker")
    assert t.started.wait(5)
    with pytest.raises(ThreadError):
        BinderThread.run(t, "blocker")
    BinderThread.request_exit(t)
    t.release.set()
    BinderThread.join(t)
    assert BinderThread.is_running(t) is False


def test_get_tid_while_running_matches_thread():
    t = BlockingThread()
    BinderThread.run(t, "tid")
    assert t.started.wait(5)
    assert BinderThread.get_tid(t) == t.tids[0]
    BinderThread.request_exit(t)
    t.release.set()
    BinderThread.join(t)


def test_request_exit_and_wait_stops_and_clears_flag():
    t = BlockingThread()
    BinderThread.run(t, "waiter")
    assert t.started.wait(5)
    t.release.set()
    BinderThread.request_exit_and_wait(t)
    assert BinderThread.is_running(t) is False
    assert BinderThread.exit_pending(t) is False


def test_request_exit_sets_pending():
    t = BlockingThread()
    BinderThread.run(t, "pending")
    assert t.started.wait(5)
    BinderThread.request_exit(t)
    assert BinderThread.exit_pending(t) is True
    t.release.set()
    BinderThread.join(t)
    assert BinderThread.is_running(t) is False


def test_join_from_own_thread_raises():
    class SelfJoin(BinderThread):
        def __init__(self):
            super().__init__()
            self.errors = []

        def thread_loop(self):
            try:
                BinderThread.join(self)
            except ThreadError as exc:
                self.errors.append(exc)
            return False

    t = SelfJoin()
    BinderThread.run(t, "selfjoin")
    BinderThread.join(t)
    assert len(t.errors) == 1


def test_ready_to_run_failure_is_reported_by_join():
    class Failing(BinderThread):
        def __init__(self):
            super().__init__()
            self.loops = 0

        def ready_to_run(self):
            raise OSError("not ready")

        def thread_loop(self):
            self.loops += 1
            return False

    t = Failing()
    BinderThread.run(t, "failing")
    with pytest.raises(ThreadError) as info:
        BinderThread.join(t)
    assert isinstance(info.value.__cause__, OSError)
    assert t.loops == 0


def test_thread_can_be_restarted_after_exit():
    t = CountingThread(limit=2)
    BinderThread.run(t, "first")
    BinderThread.join(t)
    t.limit = 4
    BinderThread.run(t, "second")
    BinderThread.join(t)
    assert t.calls == 4
    assert BinderThread.is_running(t) is False
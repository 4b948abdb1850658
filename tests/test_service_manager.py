import pytest

from binderkit.binder_string import BinderString
from binderkit.service_manager import (
    BinderService,
    DumpFlag,
    ServiceManager,
    ServiceManagerError,
    is_valid_service_name,
)


class FakeBinder:
    def __init__(self, fail_link=False):
        self.fail_link = fail_link
        self.recipients = []

    def link_to_death(self, recipient):
        if self.fail_link:
            raise OSError("dead object")
        self.recipients.append(recipient)


class RecordingCallback:
    def __init__(self):
        self.calls = []

    def on_registration(self, name, binder):
        self.calls.append((name, binder))


class StartingManager(ServiceManager):
    def __init__(self):
        super().__init__()
        self.started = []

    def try_start_service(self, name):
        self.started.append(name)


@pytest.mark.parametrize(
    "name", ["manager", "a", "android.os.IFoo/default", "x_y-z.1", "n" * 127]
)
def test_valid_names(name):
    assert is_valid_service_name(name) is True


@pytest.mark.parametrize("name", ["", "n" * 128, "has space", "at@sign", "caf\u00e9"])
def test_invalid_names(name):
    assert is_valid_service_name(name) is False


def test_valid_name_accepts_binder_string():
    assert is_valid_service_name(BinderString("manager")) is True


def test_add_and_get_service():
    sm = ServiceManager()
    binder = FakeBinder()
    sm.add_service("foo", binder)
    assert sm.get_service("foo") is binder
    assert sm.check_service(BinderString("foo")) is binder
    assert binder.recipients == [sm]


def test_missing_service_returns_none():
    sm = ServiceManager()
    assert sm.check_service("absent") is None
    assert sm.get_service("absent") is None


def test_get_service_tries_start_only_when_asked():
    sm = StartingManager()
    assert ServiceManager.check_service(sm, "lazy") is None
    assert sm.started == []
    assert ServiceManager.get_service(sm, "lazy") is None
    assert sm.started == ["lazy"]


def test_found_service_is_guaranteed_client():
    sm = ServiceManager()
    sm.add_service("foo", FakeBinder())
    assert sm.get_service_record("foo").guarantee_client is False
    sm.check_service("foo")
    assert sm.get_service_record("foo").guarantee_client is True


def test_record_holds_registration_details():
    sm = ServiceManager()
    binder = FakeBinder()
    sm.add_service("foo", binder, True, DumpFlag.HIGH, 42)
    record = sm.get_service_record("foo")
    assert record == BinderService(
        binder=binder, allow_isolated=True, dump_priority=DumpFlag.HIGH, debug_pid=42
    )


def test_add_none_binder_is_bad_value():
    sm = ServiceManager()
    with pytest.raises(ServiceManagerError) as info:
        sm.add_service("foo", None)
    assert info.value.code == "BAD_VALUE"


def test_add_invalid_name_is_bad_value():
    sm = ServiceManager()
    with pytest.raises(ServiceManagerError) as info:
        sm.add_service("bad name", FakeBinder())
    assert info.value.code == "BAD_VALUE"
    assert sm.list_services() == []


def test_link_failure_is_bad_type_and_not_added():
    sm = ServiceManager()
    with pytest.raises(ServiceManagerError) as info:
        sm.add_service("foo", FakeBinder(fail_link=True))
    assert info.value.code == "BAD_TYPE"
    assert sm.check_service("foo") is None


def test_local_binder_without_link_is_accepted():
    sm = ServiceManager()
    sm.add_service("manager", sm)
    assert sm.check_service("manager") is sm


def test_add_overwrites_existing():
    sm = ServiceManager()
    first, second = FakeBinder(), FakeBinder()
    sm.add_service("foo", first)
    sm.add_service("foo", second)
    assert sm.check_service("foo") is second
    assert sm.list_services() == ["foo"]


def test_list_services_sorted_and_filtered():
    sm = ServiceManager()
    sm.add_service("zeta", FakeBinder(), dump_priority=DumpFlag.CRITICAL)
    sm.add_service("alpha", FakeBinder(), dump_priority=DumpFlag.DEFAULT)
    sm.add_service("mid", FakeBinder(), dump_priority=DumpFlag.HIGH)
    assert sm.list_services() == ["alpha", "mid", "zeta"]
    assert sm.list_services(DumpFlag.CRITICAL) == ["zeta"]
    assert sm.list_services(DumpFlag.CRITICAL | DumpFlag.DEFAULT) == ["alpha", "zeta"]
    assert sm.list_services(DumpFlag.PROTO) == []


def test_callback_notified_on_later_registration():
    sm = ServiceManager()
    cb = RecordingCallback()
    sm.register_for_notifications("foo", cb)
    assert cb.calls == []
    binder = FakeBinder()
    sm.add_service("foo", binder)
    assert cb.calls == [("foo", binder)]


def test_callback_notified_at_once_if_present():
    sm = ServiceManager()
    binder = FakeBinder()
    sm.add_service("foo", binder)
    cb = RecordingCallback()
    sm.register_for_notifications("foo", cb)
    assert cb.calls == [("foo", binder)]


def test_register_none_callback_is_null_pointer():
    sm = ServiceManager()
    with pytest.raises(ServiceManagerError) as info:
        sm.register_for_notifications("foo", None)
    assert info.value.code == "NULL_POINTER"


def test_register_invalid_name_is_illegal_argument():
    sm = ServiceManager()
    with pytest.raises(ServiceManagerError) as info:
        sm.register_for_notifications("", RecordingCallback())
    assert info.value.code == "ILLEGAL_ARGUMENT"


def test_unregister_stops_notifications():
    sm = ServiceManager()
    cb = RecordingCallback()
    sm.register_for_notifications("foo", cb)
    sm.unregister_for_notifications("foo", cb)
    sm.add_service("foo", FakeBinder())
    assert cb.calls == []


def test_unregister_unknown_is_illegal_state():
    sm = ServiceManager()
    sm.register_for_notifications("foo", RecordingCallback())
    with pytest.raises(ServiceManagerError) as info:
        sm.unregister_for_notifications("foo", RecordingCallback())
    assert info.value.code == "ILLEGAL_STATE"


def test_binder_died_removes_its_services():
    sm = ServiceManager()
    dead, alive = FakeBinder(), FakeBinder()
    sm.add_service("a", dead)
    sm.add_service("b", alive)
    sm.add_service("c", dead)
    sm.binder_died(dead)
    assert sm.list_services() == ["b"]
    assert sm.check_service("a") is None


def test_binder_died_removes_dead_callbacks():
    sm = ServiceManager()
    cb = RecordingCallback()
    sm.register_for_notifications("foo", cb)
    sm.binder_died(cb)
    sm.add_service("foo", FakeBinder())
    assert cb.calls == []
    with pytest.raises(ServiceManagerError):
        sm.unregister_for_notifications("foo", cb)


def test_non_string_name_rejected():
    sm = ServiceManager()
    with pytest.raises(TypeError):
        sm.check_service(17)
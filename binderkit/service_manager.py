"""Name registry that hands out service binders to clients."""

from __future__ import annotations

import enum
import logging
import os
import re
from dataclasses import dataclass
from typing import Any

from binderkit.binder_string import BinderString
from binderkit.binderlog import DebugLevel, binder_log
from binderkit.hashmap import InsertStrategy, StringHashMap

_TAG = "ServiceManager"
_logger = logging.getLogger("binderkit.service_manager")

_MAX_NAME_LENGTH = 127
_NAME_PATTERN = re.compile(r"[A-Za-z0-9_\-./]+")


class DumpFlag(enum.IntFlag):
    """Dump priorities a service can be registered with."""

    CRITICAL = 1 << 0
    HIGH = 1 << 1
    NORMAL = 1 << 2
    DEFAULT = 1 << 3
    ALL = CRITICAL | HIGH | NORMAL | DEFAULT
    PROTO = 1 << 4


class ServiceManagerError(Exception):
    """A request to the service manager was refused.

    ``code`` names the reason: ``BAD_VALUE``, ``BAD_TYPE``, ``NULL_POINTER``,
    ``ILLEGAL_ARGUMENT`` or ``ILLEGAL_STATE``.
    """

    def __init__(self, message: str, code: str) -> None:
        super().__init__(message)
        self.code = code


@dataclass
class BinderService:
    """One registered service and what is known about it."""

    binder: Any
    allow_isolated: bool = False
    dump_priority: int = DumpFlag.DEFAULT
    has_clients: bool = False
    guarantee_client: bool = False
    debug_pid: int = 0


def _name_text(name: BinderString | str) -> str:
    if isinstance(name, BinderString):
        return name.data
    if isinstance(name, str):
        return name
    raise TypeError(f"service name must be a string, got {type(name).__name__}")


def is_valid_service_name(name: BinderString | str) -> bool:
    """Return whether ``name`` is 1 to 127 characters of ``[A-Za-z0-9_-./]``."""
    text = _name_text(name)
    if not 0 < len(text) <= _MAX_NAME_LENGTH:
        return False
    return _NAME_PATTERN.fullmatch(text) is not None


class ServiceManager:
    """Keeps the name-to-binder table and notifies watchers of registrations.

    The manager is also the death recipient of every remote binder it holds:
    binders offering ``link_to_death`` are linked to it, and
    :meth:`binder_died` drops whatever belonged to a dead binder.
    """

    def __init__(self) -> None:
        self._services = StringHashMap()
        self._registration_callbacks = StringHashMap()

    # -- lookup ---------------------------------------------------------

    def get_service_record(self, name: BinderString | str) -> BinderService | None:
        """Return the record registered under ``name``, or None."""
        return self._services.get(_name_text(name))

    def try_get_service(
        self, name: BinderString | str, start_if_not_found: bool
    ) -> Any | None:
        """Return the binder registered as ``name``, starting it on demand if asked."""
        text = _name_text(name)
        service: BinderService | None = self._services.get(text)
        binder = service.binder if service is not None else None

        if binder is None and start_if_not_found:
            self.try_start_service(text)
        if binder is not None and service is not None:
            service.guarantee_client = True
        return binder

    def get_service(self, name: BinderString | str) -> Any | None:
        """Return the binder for ``name``, trying to start the service if absent."""
        return self.try_get_service(name, True)

    def check_service(self, name: BinderString | str) -> Any | None:
        """Return the binder for ``name`` without trying to start it."""
        return self.try_get_service(name, False)

    # -- registration ---------------------------------------------------

    def add_service(
        self,
        name: BinderString | str,
        binder: Any,
        allow_isolated: bool = False,
        dump_priority: int = DumpFlag.DEFAULT,
        calling_pid: int | None = None,
    ) -> None:
        """Register ``binder`` as ``name``, replacing any earlier registration."""
        text = _name_text(name)
        if binder is None:
            raise ServiceManagerError("service binder must not be None", "BAD_VALUE")

        if not is_valid_service_name(text):
            binder_log(DebugLevel.ERROR, _TAG, f"Invalid service name: {text}")
            raise ServiceManagerError(f"invalid service name: {text!r}", "BAD_VALUE")

        link = getattr(binder, "link_to_death", None)
        if callable(link):
            try:
                link(self)
            except Exception as exc:
                binder_log(
                    DebugLevel.ERROR, _TAG, f"Could not linkToDeath when adding {text}"
                )
                raise ServiceManagerError(
                    f"could not link to death of {text!r}", "BAD_TYPE"
                ) from exc

        service = BinderService(
            binder=binder,
            allow_isolated=allow_isolated,
            dump_priority=dump_priority,
            debug_pid=os.getpid() if calling_pid is None else calling_pid,
        )
        self._services.insert_entry(text, service, InsertStrategy.SET)

        for callback in list(self._registration_callbacks.get(text) or ()):
            callback.on_registration(text, binder)

    def list_services(self, dump_priority: int = DumpFlag.ALL) -> list[str]:
        """Return the sorted names of services sharing a flag with ``dump_priority``."""
        return sorted(
            name
            for name, service in self._services.items()
            if int(dump_priority) & int(service.dump_priority)
        )

    # -- notifications --------------------------------------------------

    def register_for_notifications(self, name: BinderString | str, callback: Any) -> None:
        """Call ``callback.on_registration`` whenever ``name`` is registered.

        If the service is already present the callback is notified at once.
        """
        text = _name_text(name)
        if not is_valid_service_name(text):
            binder_log(DebugLevel.ERROR, _TAG, f"Invalid service name: {text}")
            raise ServiceManagerError(f"invalid service name: {text!r}", "ILLEGAL_ARGUMENT")
        if callback is None:
            raise ServiceManagerError("callback must not be None", "NULL_POINTER")

        link = getattr(callback, "link_to_death", None)
        if callable(link):
            try:
                link(self)
            except Exception as exc:
                binder_log(DebugLevel.ERROR, _TAG, f"Could not linkToDeath for {text}")
                raise ServiceManagerError(
                    f"could not link to death of callback for {text!r}", "ILLEGAL_STATE"
                ) from exc

        listeners: list[Any] | None = self._registration_callbacks.get(text)
        if listeners is None:
            listeners = []
            self._registration_callbacks.put(text, listeners)
        listeners.append(callback)

        service: BinderService | None = self._services.get(text)
        if service is not None:
            callback.on_registration(text, service.binder)

    def unregister_for_notifications(self, name: BinderString | str, callback: Any) -> None:
        """Stop notifying ``callback``; ILLEGAL_STATE if it was not registered."""
        text = _name_text(name)
        listeners: list[Any] | None = self._registration_callbacks.get(text)
        if listeners is not None:
            for position, listener in enumerate(listeners):
                if listener is callback:
                    del listeners[position]
                    if not listeners:
                        self._registration_callbacks.erase(text)
                    return
        binder_log(DebugLevel.ERROR, _TAG, f"Trying to unregister callback, but none exists {text}")
        raise ServiceManagerError(
            f"no such callback registered for {text!r}", "ILLEGAL_STATE"
        )

    # -- lifecycle ------------------------------------------------------

    def try_start_service(self, name: BinderString | str) -> None:
        """Hook called when a requested service is missing; subclasses may start it."""
        _logger.info(
            "Since '%s' could not be found, it may be started on demand", _name_text(name)
        )

    def binder_died(self, who: Any) -> None:
        """Forget every service and notification callback that was ``who``."""
        for name, service in self._services.items():
            if service.binder is who:
                self._services.erase(name)

        for name, listeners in self._registration_callbacks.items():
            listeners[:] = [cb for cb in listeners if cb is not who]
            if not listeners:
                self._registration_callbacks.erase(name)
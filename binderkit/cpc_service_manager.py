"""Service registry shared between processors, keyed by service name."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, NoReturn

from binderkit.service_manager import DumpFlag

_logger = logging.getLogger("binderkit.cpc_service_manager")


class ExceptionCode(enum.IntEnum):
    """Exception codes a service call can fail with."""

    NONE = 0
    SECURITY = -1
    BAD_PARCELABLE = -2
    ILLEGAL_ARGUMENT = -3
    NULL_POINTER = -4
    ILLEGAL_STATE = -5
    NETWORK_MAIN_THREAD = -6
    UNSUPPORTED_OPERATION = -7
    SERVICE_SPECIFIC = -8
    PARCELABLE = -9
    HAS_REPLY_HEADER = -128
    TRANSACTION_FAILED = -129


class ServiceStatusError(Exception):
    """A service manager call failed with an :class:`ExceptionCode`."""

    def __init__(self, code: ExceptionCode, message: str = "") -> None:
        super().__init__(message or code.name)
        self.code = code


@dataclass
class CpcService:
    """A registered service and the processor it lives on."""

    binder: Any
    cpuname: str


def _unsupported(operation: str) -> NoReturn:
    raise ServiceStatusError(
        ExceptionCode.UNSUPPORTED_OPERATION, f"{operation} is not supported"
    )


class CpcServiceManager:
    """Maps service names to binders registered as ``"<cpu>/<service>"``.

    The manager is the death recipient of every binder it holds and passes
    itself as the binder in registration notifications.
    """

    def __init__(self) -> None:
        self._services: dict[str, CpcService] = {}
        self._callbacks: dict[str, list[Any]] = {}

    # -- lookup ---------------------------------------------------------

    def get_service(self, name: str) -> Any | None:
        """Return the binder registered under ``name``, or None."""
        service = self._services.get(name)
        binder = service.binder if service is not None else None
        _logger.info("getService name: %s, return %r", name, binder)
        return binder

    def check_service(self, name: str) -> Any | None:
        """Same as :meth:`get_service`."""
        return self.get_service(name)

    # -- registration ---------------------------------------------------

    def add_service(
        self,
        name: str,
        binder: Any,
        allow_isolated: bool = False,
        dump_priority: int = DumpFlag.DEFAULT,
    ) -> None:
        """Register ``binder``; ``name`` is ``"<cpu>/<service>"``.

        A name without a slash is used as both the processor and service name.
        """
        _logger.info("addService name: %s", name)

        if not self._link(binder):
            _logger.error("Could not linkToDeath when adding %s", name)

        cpuname, sep, servname = name.partition("/")
        if not sep:
            servname = name

        previous = self._services.get(servname)
        if previous is not None:
            self._unlink(previous.binder)

        self._services[servname] = CpcService(binder=binder, cpuname=cpuname)

        for callback in list(self._callbacks.get(servname, ())):
            callback.on_registration(servname, self)

    def _link(self, binder: Any) -> bool:
        link = getattr(binder, "link_to_death", None)
        if not callable(link):
            return False
        try:
            result = link(self)
        except Exception:  # a remote failure only costs the death notice
            return False
        return result is None or result is True or result == 0

    def _unlink(self, binder: Any) -> None:
        unlink = getattr(binder, "unlink_to_death", None)
        if callable(unlink):
            try:
                unlink(self)
            except Exception:
                _logger.warning("Could not unlinkToDeath %r", binder)

    def list_services(self, dump_priority: int = DumpFlag.ALL) -> list[str]:
        """Return ``"<cpu>/<service>"`` for every service, ordered by service name."""
        return [
            f"{self._services[servname].cpuname}/{servname}"
            for servname in sorted(self._services)
        ]

    # -- notifications --------------------------------------------------

    def register_for_notifications(self, name: str, callback: Any) -> None:
        """Notify ``callback`` on each registration of ``name``, and now if present."""
        if callback is None:
            raise ServiceStatusError(ExceptionCode.NULL_POINTER, "callback must not be None")
        self._callbacks.setdefault(name, []).append(callback)
        if name in self._services:
            callback.on_registration(name, self)

    def unregister_for_notifications(self, name: str, callback: Any) -> None:
        """Remove one registration of ``callback``; ILLEGAL_STATE if there is none."""
        listeners = self._callbacks.get(name)
        if listeners is not None:
            for position, listener in enumerate(listeners):
                if listener is callback:
                    del listeners[position]
                    return
        raise ServiceStatusError(
            ExceptionCode.ILLEGAL_STATE, f"no such callback registered for {name!r}"
        )

    # -- lifecycle ------------------------------------------------------

    def binder_died(self, who: Any) -> None:
        """Forget every service whose binder is ``who``."""
        _logger.debug("binderDied: %r", who)
        for servname in [n for n, s in self._services.items() if s.binder is who]:
            del self._services[servname]

    # -- unsupported ----------------------------------------------------

    def is_declared(self, name: str) -> bool:
        _unsupported("isDeclared")

    def get_declared_instances(self, interface: str) -> list[str]:
        _unsupported("getDeclaredInstances")

    def updatable_via_apex(self, name: str) -> str | None:
        _unsupported("updatableViaApex")

    def get_updatable_names(self, apex_name: str) -> list[str]:
        _unsupported("getUpdatableNames")

    def get_connection_info(self, name: str) -> Any:
        _unsupported("getConnectionInfo")

    def register_client_callback(self, name: str, service: Any, callback: Any) -> None:
        _unsupported("registerClientCallback")

    def try_unregister_service(self, name: str, binder: Any) -> None:
        _unsupported("tryUnregisterService")

    def get_service_debug_info(self) -> list[Any]:
        _unsupported("getServiceDebugInfo")
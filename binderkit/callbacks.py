"""Callback interfaces used by service managers to notify clients."""

from __future__ import annotations

import abc

FIRST_CALL_TRANSACTION = 0x00000001

_defaults: dict[type, object] = {}


class IServiceCallback(abc.ABC):
    """Notified when a service is registered under a watched name."""

    DESCRIPTOR = "android.os.IServiceCallback"
    TRANSACTION_ON_REGISTRATION = FIRST_CALL_TRANSACTION + 0

    def get_interface_descriptor(self) -> str:
        """Return the interface descriptor."""
        return self.DESCRIPTOR

    @abc.abstractmethod
    def on_registration(self, name: str, binder: object) -> None:
        """Called when ``binder`` is registered as ``name``."""


class IClientCallback(abc.ABC):
    """Notified when a service gains or loses its clients."""

    DESCRIPTOR = "android.os.IClientCallback"
    TRANSACTION_ON_CLIENTS = FIRST_CALL_TRANSACTION + 0

    def get_interface_descriptor(self) -> str:
        """Return the interface descriptor."""
        return self.DESCRIPTOR

    @abc.abstractmethod
    def on_clients(self, registered: object, has_clients: bool) -> None:
        """Called when ``registered`` changes between having and lacking clients."""


def _set_default(kind: type, impl: object) -> bool:
    if impl is None or kind in _defaults:
        return False
    if not isinstance(impl, kind):
        raise TypeError(f"default implementation must be a {kind.__name__}")
    _defaults[kind] = impl
    return True


def set_default_service_callback(impl: IServiceCallback | None) -> bool:
    """Install the process-wide default; only the first non-None call succeeds."""
    return _set_default(IServiceCallback, impl)


def get_default_service_callback() -> IServiceCallback | None:
    """Return the default service callback, if one was installed."""
    return _defaults.get(IServiceCallback)  # type: ignore[return-value]


def set_default_client_callback(impl: IClientCallback | None) -> bool:
    """Install the process-wide default; only the first non-None call succeeds."""
    return _set_default(IClientCallback, impl)


def get_default_client_callback() -> IClientCallback | None:
    """Return the default client callback, if one was installed."""
    return _defaults.get(IClientCallback)  # type: ignore[return-value]
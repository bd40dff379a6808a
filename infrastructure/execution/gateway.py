"""Adapters around the gateway client library (discord.py by default)."""

import importlib
from types import ModuleType
from typing import Any, Dict, Iterable, Optional

from infrastructure.logging import get_logger

logger = get_logger(__name__)


class DeferredRunMixin:
    """Makes ``client.run(token)`` non-blocking inside the host.

    ``discord.Client.run`` starts its own event loop and blocks until the
    bot stops. Inside the host the runtime performs the login itself, so
    ``run`` only records what the bot asked for.
    """

    requested_credential: Optional[str] = None

    def run(self, token: Any = None, *args: Any, **kwargs: Any) -> None:
        self.requested_credential = token


def load_gateway_library(name: str) -> ModuleType:
    """Import the real gateway client library by name."""
    return importlib.import_module(name)


def public_api(base: ModuleType) -> Dict[str, Any]:
    """Public non-module attributes of ``base``, limited to ``__all__`` when declared."""
    names = getattr(base, "__all__", None)
    if names is None:
        names = [attr for attr in vars(base) if not attr.startswith("_")]

    exported = {}
    for attr in names:
        value = getattr(base, attr, None)
        if value is None or isinstance(value, ModuleType):
            continue
        exported[attr] = value
    return exported


def build_gateway_module(base: ModuleType, name: Optional[str] = None) -> ModuleType:
    """
    Build the module object bot code receives for ``import discord``.

    The facade re-exports the library's public API and swaps ``Client``
    for a subclass with a deferred ``run``. Submodules are never exported:
    they lead back to ``sys`` and ``os``. A fresh facade per start keeps
    one bot's attribute assignments away from the others.
    """
    facade = ModuleType(name or base.__name__, getattr(base, "__doc__", None))
    for attr, value in public_api(base).items():
        setattr(facade, attr, value)

    base_client = getattr(base, "Client")
    facade.Client = type("Client", (DeferredRunMixin, base_client), {
        "__module__": facade.__name__,
        "__qualname__": "Client",
    })
    return facade


def is_gateway_client(candidate: Any) -> bool:
    """Duck-type check for the login/close contract the runtime relies on."""
    return (
        candidate is not None
        and not isinstance(candidate, type)
        and callable(getattr(candidate, "login", None))
        and callable(getattr(candidate, "connect", None))
        and callable(getattr(candidate, "close", None))
    )


def default_intents(gateway: ModuleType, names: Iterable[str]) -> Any:
    """Build the intents descriptor with the configured flags enabled."""
    intents = gateway.Intents.default()
    for flag in names:
        if not hasattr(intents, flag):
            logger.warning(f"Ignoring unknown intent flag {flag!r}")
            continue
        setattr(intents, flag, True)
    return intents


def create_default_client(gateway: ModuleType, intent_names: Iterable[str]) -> Any:
    """Create the client used when bot code does not provide one."""
    return gateway.Client(intents=default_intents(gateway, intent_names))

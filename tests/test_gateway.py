import os
import sys
from types import ModuleType

from conftest import make_gateway
from infrastructure.execution.gateway import (
    DeferredRunMixin,
    build_gateway_module,
    create_default_client,
    default_intents,
    is_gateway_client,
    public_api,
)


def test_facade_client_defers_run():
    gateway = make_gateway()
    facade = build_gateway_module(gateway, "discord")

    client = facade.Client(intents=facade.Intents.default())
    client.run("secret-1")

    assert isinstance(client, DeferredRunMixin)
    assert isinstance(client, gateway.Client)
    assert client.requested_credential == "secret-1"


def test_facade_reexports_public_names_and_isolates_assignments():
    gateway = make_gateway()
    first = build_gateway_module(gateway, "discord")
    second = build_gateway_module(gateway, "discord")

    first.Intents = None

    assert second.Intents is gateway.Intents
    assert gateway.Intents is not None
    assert first.LoginFailure is gateway.LoginFailure


def test_default_intents_enable_configured_flags():
    gateway = make_gateway()
    intents = default_intents(gateway, ["message_content", "not_a_flag"])
    assert intents.message_content is True
    assert intents.guilds is True
    assert not hasattr(intents, "not_a_flag")


def test_default_client_uses_configured_intents():
    gateway = make_gateway()
    client = create_default_client(gateway, ["guild_messages"])
    assert client.intents.guild_messages is True


def test_is_gateway_client():
    gateway = make_gateway()
    assert is_gateway_client(gateway.Client())
    assert not is_gateway_client(gateway.Client)
    assert not is_gateway_client(None)
    assert not is_gateway_client(object())


def _gateway_with_submodules():
    gateway = make_gateway()
    gateway.utils = ModuleType("discord.utils")
    gateway.utils.sys = sys
    gateway.http = ModuleType("discord.http")
    gateway.http.os = os
    return gateway


def test_facade_never_exports_submodules():
    gateway = _gateway_with_submodules()

    facade = build_gateway_module(gateway, "discord")

    assert not any(isinstance(value, ModuleType) for value in vars(facade).values())
    assert not hasattr(facade, "utils")
    assert not hasattr(facade, "http")
    assert facade.Intents is gateway.Intents


def test_public_api_honours_all():
    gateway = _gateway_with_submodules()
    gateway.__all__ = ["Client", "Intents", "utils"]

    exported = public_api(gateway)

    assert set(exported) == {"Client", "Intents"}
    assert not hasattr(build_gateway_module(gateway, "discord"), "LoginFailure")

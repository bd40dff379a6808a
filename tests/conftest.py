import asyncio
import os
import sys
import types

import pytest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))

from infrastructure.config import ExecutionLimits, SecurityConfig, SystemConfig
from infrastructure.execution import InstanceRuntime, LifecycleRegistry, PatternCodeValidator
from infrastructure.persistence import InMemoryInstanceStore

VALID_TOKEN = "secret-1"

SIMPLE_BOT = '''import discord

intents = discord.Intents.default()
client = discord.Client(intents=intents)


@client.event
async def on_ready():
    console.log("ready")


client.run("YOUR_BOT_TOKEN")
'''


class LoginFailure(Exception):
    """Raised by the fake gateway for credentials it does not know."""


def make_gateway(valid_tokens=(VALID_TOKEN,), login_delay=0.0, connect_error=None):
    """Build a stand-in for the gateway library with the same client surface."""
    gateway = types.ModuleType("discord")
    clients = []

    class Intents:
        def __init__(self):
            self.guilds = False
            self.guild_messages = False
            self.message_content = False

        @classmethod
        def default(cls):
            intents = cls()
            intents.guilds = True
            return intents

    class Client:
        def __init__(self, *, intents=None, **options):
            self.intents = intents
            self.options = options
            self.handlers = {}
            self.login_calls = []
            self.close_calls = 0
            self._closed = asyncio.Event()
            clients.append(self)

        def event(self, coro):
            self.handlers[coro.__name__] = coro
            return coro

        async def login(self, token):
            self.login_calls.append(token)
            if login_delay:
                await asyncio.sleep(login_delay)
            if token not in valid_tokens:
                raise LoginFailure("Improper token has been passed.")

        async def connect(self, *, reconnect=True):
            if connect_error is not None:
                raise connect_error
            await self._closed.wait()

        async def close(self):
            self.close_calls += 1
            self._closed.set()

        def run(self, token, **kwargs):
            raise RuntimeError("run() blocks and must never be reached inside the host")

    gateway.Intents = Intents
    gateway.Client = Client
    gateway.LoginFailure = LoginFailure
    gateway.clients = clients
    return gateway


def make_config(**security):
    config = SystemConfig()
    config.security_settings = SecurityConfig(**security)
    config.execution_limits = ExecutionLimits(
        max_execution_time=1.0,
        login_timeout=0.5,
        teardown_timeout=0.5,
        shutdown_timeout=1.0,
    )
    return config


def make_runtime(gateway=None, store=None, **security):
    config = make_config(**security)
    store = store or InMemoryInstanceStore()
    return InstanceRuntime(
        store=store,
        registry=LifecycleRegistry(),
        validator=PatternCodeValidator(config.security_settings),
        config=config,
        gateway_library=gateway or make_gateway(),
    )


@pytest.fixture
def gateway():
    return make_gateway()


@pytest.fixture
def store():
    return InMemoryInstanceStore()


@pytest.fixture
def runtime(gateway, store):
    return make_runtime(gateway=gateway, store=store)

import logging
import types
from unittest.mock import Mock

import pytest

from domain.exceptions import ModuleNotAvailable
from infrastructure.execution.security import (
    BOT_MODULE_NAME,
    BotConsole,
    ExecutionEnvironmentBuilder,
    SecurityIsolator,
)


@pytest.fixture
def gateway_module():
    return types.ModuleType("discord")


def _run(code, namespace):
    exec(compile(code, "<test>", "exec"), namespace)
    return namespace


def test_namespace_exposes_only_the_binding_surface(gateway_module):
    namespace = ExecutionEnvironmentBuilder().build("alpha", "discord", gateway_module)

    assert set(namespace) == {"__builtins__", "__name__", "__file__", "console", "exports"}
    assert namespace["__name__"] == BOT_MODULE_NAME
    assert namespace["__file__"] == "main.py"
    assert namespace["exports"] == {}
    assert isinstance(namespace["console"], BotConsole)


def test_each_build_is_fresh(gateway_module):
    builder = ExecutionEnvironmentBuilder()
    first = builder.build("alpha", "discord", gateway_module)
    second = builder.build("beta", "discord", gateway_module)

    first["exports"]["shared"] = True

    assert second["exports"] == {}
    assert first["console"] is not second["console"]


def test_gateway_import_resolves_to_the_given_module(gateway_module):
    namespace = ExecutionEnvironmentBuilder().build("alpha", "discord", gateway_module)
    _run("import discord\nresult = discord\n", namespace)
    assert namespace["result"] is gateway_module


@pytest.mark.parametrize("statement", ["import os", "import sys", "from discord.ext import commands", "import discordx"])
def test_other_imports_are_not_available(gateway_module, statement):
    namespace = ExecutionEnvironmentBuilder().build("alpha", "discord", gateway_module)
    with pytest.raises(ModuleNotAvailable):
        _run(statement, namespace)


def test_module_not_available_is_an_import_error():
    error = ModuleNotAvailable("os")
    assert isinstance(error, ImportError)
    assert str(error) == "Module os not available"


@pytest.mark.parametrize("name", ["open", "eval", "exec", "compile", "globals", "vars", "input", "breakpoint"])
def test_dangerous_builtins_are_absent(gateway_module, name):
    namespace = ExecutionEnvironmentBuilder().build("alpha", "discord", gateway_module)
    with pytest.raises(NameError):
        _run(f"{name}", namespace)


def test_classes_and_async_handlers_can_be_defined(gateway_module):
    namespace = ExecutionEnvironmentBuilder().build("alpha", "discord", gateway_module)
    code = (
        "class Greeter:\n"
        "    def __init__(self, name):\n"
        "        self.name = name\n"
        "\n"
        "async def on_message(message):\n"
        "    return message\n"
        "\n"
        "greeting = Greeter('alpha').name\n"
    )
    _run(code, namespace)
    assert namespace["greeting"] == "alpha"


def test_print_goes_to_the_bot_console(gateway_module):
    bot_logger = Mock()
    builder = ExecutionEnvironmentBuilder()
    namespace = builder.build("alpha", "discord", gateway_module)
    namespace["__builtins__"]["print"] = BotConsole("alpha", bot_logger=bot_logger).print

    _run("print('hello', 42)", namespace)

    bot_logger.log.assert_called_once_with(logging.INFO, "[alpha] hello 42")


def test_console_prefixes_and_levels():
    bot_logger = Mock()
    console = BotConsole("alpha", bot_logger=bot_logger)

    console.log("ready")
    console.warn("slow", 2)
    console.error("boom")

    assert bot_logger.log.call_args_list[0].args == (logging.INFO, "[alpha] ready")
    assert bot_logger.log.call_args_list[1].args == (logging.WARNING, "[alpha] slow 2")
    assert bot_logger.log.call_args_list[2].args == (logging.ERROR, "[alpha] boom")


def test_custom_allowlist():
    isolator = SecurityIsolator(allowed_builtins={"len"})
    safe = isolator.create_safe_builtins(import_hook=Mock(), print_hook=Mock())
    assert set(safe) == {"len", "__import__", "print"}

"""Domain service interface definitions."""

from .bot_runtime import BotRuntime
from .code_validator import CodeValidator
from .instance_store import InstanceStore

__all__ = [
    "BotRuntime",
    "CodeValidator",
    "InstanceStore",
]

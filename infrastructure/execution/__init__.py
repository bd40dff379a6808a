"""Execution infrastructure bindings."""

from .gateway import DeferredRunMixin, build_gateway_module, create_default_client
from .registry import LifecycleRegistry, LiveHandle
from .resources import ExecutionDeadline
from .runtime import InstanceRuntime
from .security import BotConsole, ExecutionEnvironmentBuilder, SecurityIsolator
from .validator import PatternCodeValidator

# Default bindings used by application; injected at runtime
runtime: InstanceRuntime | None = None
validator: PatternCodeValidator | None = None

__all__ = [
    "runtime",
    "validator",
    "InstanceRuntime",
    "LifecycleRegistry",
    "LiveHandle",
    "PatternCodeValidator",
    "ExecutionEnvironmentBuilder",
    "SecurityIsolator",
    "BotConsole",
    "ExecutionDeadline",
    "DeferredRunMixin",
    "build_gateway_module",
    "create_default_client",
]

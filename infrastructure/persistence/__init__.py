"""Persistence layer bindings."""

from domain.services import InstanceStore

from .in_memory_instance_store import InMemoryInstanceStore
from .json_instance_store import JsonFileInstanceStore

# Default store binding used across the application; injected at runtime
instance_store: InstanceStore | None = None

__all__ = [
    "InstanceStore",
    "instance_store",
    "InMemoryInstanceStore",
    "JsonFileInstanceStore",
]

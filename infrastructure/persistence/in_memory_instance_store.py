import copy
from typing import Any, Dict, List, Optional

from domain.entities import BotInstance
from domain.services import InstanceStore

from .records import apply_changes, new_record


class InMemoryInstanceStore(InstanceStore):
    """Simple in-memory instance storage."""

    def __init__(self) -> None:
        self._instances: Dict[str, BotInstance] = {}

    async def get_instance(self, instance_id: str) -> Optional[BotInstance]:
        stored = self._instances.get(instance_id)
        return copy.deepcopy(stored) if stored else None

    async def list_instances(self) -> List[BotInstance]:
        return [copy.deepcopy(i) for i in self._instances.values()]

    async def create_instance(self, data: Dict[str, Any]) -> BotInstance:
        instance = new_record(data)
        # Store a deep copy so callers cannot mutate the stored record
        self._instances[instance.instance_id] = copy.deepcopy(instance)
        return instance

    async def update_instance(
        self, instance_id: str, changes: Dict[str, Any]
    ) -> Optional[BotInstance]:
        stored = self._instances.get(instance_id)
        if stored is None:
            return None
        updated = apply_changes(stored, copy.deepcopy(changes))
        self._instances[instance_id] = updated
        return copy.deepcopy(updated)

    async def delete_instance(self, instance_id: str) -> bool:
        return self._instances.pop(instance_id, None) is not None

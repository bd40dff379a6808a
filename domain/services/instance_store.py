from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from domain.entities import BotInstance


class InstanceStore(ABC):
    """Abstract persistence interface for bot instance records."""

    @abstractmethod
    async def get_instance(self, instance_id: str) -> Optional[BotInstance]:
        """Retrieve an instance by its identifier."""
        raise NotImplementedError

    @abstractmethod
    async def list_instances(self) -> List[BotInstance]:
        """Return all stored instances."""
        raise NotImplementedError

    @abstractmethod
    async def create_instance(self, data: Dict[str, Any]) -> BotInstance:
        """Store a new instance and return it with id and timestamps set."""
        raise NotImplementedError

    @abstractmethod
    async def update_instance(
        self, instance_id: str, changes: Dict[str, Any]
    ) -> Optional[BotInstance]:
        """Merge ``changes`` into a stored instance and refresh ``updated_at``."""
        raise NotImplementedError

    @abstractmethod
    async def delete_instance(self, instance_id: str) -> bool:
        """Remove an instance from storage."""
        raise NotImplementedError

from abc import ABC, abstractmethod
from typing import List, Optional

from domain.entities import FailureReason, ValidationVerdict


class BotRuntime(ABC):
    """Interface for starting and stopping bot instances."""

    @abstractmethod
    async def start(self, instance_id: str) -> bool:
        """Run the instance's code and connect it; False if nothing is running."""
        raise NotImplementedError

    @abstractmethod
    async def stop(self, instance_id: str) -> bool:
        """Close the instance's live connection, if any."""
        raise NotImplementedError

    @abstractmethod
    async def restart(self, instance_id: str) -> bool:
        """Stop then start the instance."""
        raise NotImplementedError

    @abstractmethod
    def status(self, instance_id: str) -> bool:
        """Return True iff a live handle is registered for the instance."""
        raise NotImplementedError

    @abstractmethod
    async def stop_all(self) -> None:
        """Stop every running instance and wait for all of them."""
        raise NotImplementedError

    @abstractmethod
    def last_failure(self, instance_id: str) -> Optional[FailureReason]:
        """Return why the last lifecycle call for the instance failed."""
        raise NotImplementedError

    @abstractmethod
    async def sync_persisted_state(self) -> List[str]:
        """Correct persisted active flags to match what is running."""
        raise NotImplementedError

    @abstractmethod
    def review(self, code: str) -> ValidationVerdict:
        """Validate code without touching runtime state."""
        raise NotImplementedError

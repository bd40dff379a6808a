"""Use case for starting and stopping bot instances."""

from typing import List, Optional

from domain.entities import FailureReason
from domain.services import BotRuntime


class InstanceLifecycleUseCase:
    """Start, stop and restart instances through the runtime."""

    def __init__(self, runtime: BotRuntime) -> None:
        """Initialize with the runtime interface.

        Args:
            runtime: Interface running bot code and owning live connections.
        """
        self._runtime = runtime

    async def start(self, instance_id: str) -> bool:
        return await self._runtime.start(instance_id)

    async def stop(self, instance_id: str) -> bool:
        return await self._runtime.stop(instance_id)

    async def restart(self, instance_id: str) -> bool:
        return await self._runtime.restart(instance_id)

    async def start_many(self, instance_ids: List[str]) -> dict:
        """Start several instances, one after another, and report each outcome."""
        return {instance_id: await self.start(instance_id) for instance_id in instance_ids}

    def status(self, instance_id: str) -> bool:
        return self._runtime.status(instance_id)

    def last_failure(self, instance_id: str) -> Optional[FailureReason]:
        return self._runtime.last_failure(instance_id)

    async def stop_all(self) -> None:
        await self._runtime.stop_all()

    async def sync_persisted_state(self) -> List[str]:
        return await self._runtime.sync_persisted_state()

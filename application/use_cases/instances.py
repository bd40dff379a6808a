"""Use case for managing stored bot instances and their files."""

from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from domain.entities import BotInstance, InstanceStatus
from domain.exceptions import InstanceNotFound, InvalidInstanceData, LastFileError
from domain.schemas import InstanceUpdate
from domain.services import BotRuntime, InstanceStore
from infrastructure.logging import get_logger

logger = get_logger(__name__)


class InstanceManagementUseCase:
    """CRUD over instance records, keeping them consistent with the runtime."""

    def __init__(self, store: InstanceStore, runtime: BotRuntime) -> None:
        """Initialize with required service interfaces.

        Args:
            store: Persistence collaborator for instance records.
            runtime: Runtime consulted for the authoritative running state.
        """
        self._store = store
        self._runtime = runtime

    async def create_instance(self, data: Dict[str, Any]) -> BotInstance:
        instance = await self._store.create_instance(data)
        logger.info(f"Created bot {instance.name} ({instance.instance_id})")
        return instance

    async def get_instance(self, instance_id: str) -> BotInstance:
        instance = await self._store.get_instance(instance_id)
        if instance is None:
            raise InstanceNotFound(instance_id)
        instance.is_active = self._runtime.status(instance_id)
        return instance

    async def list_instances(self) -> List[BotInstance]:
        """List instances with ``is_active`` reflecting what is actually running."""
        instances = await self._store.list_instances()
        for instance in instances:
            instance.is_active = self._runtime.status(instance.instance_id)
        return instances

    async def status_report(self) -> List[InstanceStatus]:
        return [
            InstanceStatus(
                instance_id=i.instance_id,
                name=i.name,
                running=self._runtime.status(i.instance_id),
                persisted_active=i.is_active,
                last_failure=self._runtime.last_failure(i.instance_id),
            )
            for i in await self._store.list_instances()
        ]

    async def update_instance(self, instance_id: str, changes: Dict[str, Any]) -> BotInstance:
        """Apply user edits. The active flag is not user-editable."""
        try:
            payload = InstanceUpdate(**changes)
        except ValidationError as e:
            raise InvalidInstanceData(str(e)) from e

        updated = await self._store.update_instance(
            instance_id, payload.model_dump(exclude_unset=True)
        )
        if updated is None:
            raise InstanceNotFound(instance_id)
        logger.info(f"Updated bot {updated.name}")
        return updated

    async def delete_instance(self, instance_id: str) -> bool:
        """Stop the instance if it runs, then delete its record."""
        await self._runtime.stop(instance_id)
        return await self._store.delete_instance(instance_id)

    async def save_file(self, instance_id: str, file_name: str, content: str) -> BotInstance:
        if not file_name or not isinstance(content, str):
            raise InvalidInstanceData("file name and content are required")

        instance = await self._store.get_instance(instance_id)
        if instance is None:
            raise InstanceNotFound(instance_id)

        files = dict(instance.files)
        files[file_name] = content
        updated = await self._store.update_instance(instance_id, {"files": files})
        logger.info(f"Saved {file_name} ({len(content)} characters) for bot {instance.name}")
        return updated

    async def delete_file(self, instance_id: str, file_name: str) -> Optional[BotInstance]:
        instance = await self._store.get_instance(instance_id)
        if instance is None:
            raise InstanceNotFound(instance_id)
        if file_name not in instance.files:
            return instance
        if len(instance.files) == 1:
            raise LastFileError(instance_id, file_name)

        files = {name: src for name, src in instance.files.items() if name != file_name}
        return await self._store.update_instance(instance_id, {"files": files})

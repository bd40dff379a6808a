"""Controller coordinating bot requests between interfaces and use cases."""
from typing import Any, Dict, List, Optional

from domain.entities import BotInstance, FailureReason, InstanceStatus, ValidationVerdict

from application.use_cases import (
    CodeReviewUseCase,
    InstanceLifecycleUseCase,
    InstanceManagementUseCase,
)


class BotController:
    """Application-level API for bot hosting operations."""

    def __init__(
        self,
        lifecycle: InstanceLifecycleUseCase,
        instances: InstanceManagementUseCase,
        review: CodeReviewUseCase,
    ) -> None:
        self._lifecycle = lifecycle
        self._instances = instances
        self._review = review

    async def start(self, instance_id: str) -> bool:
        """Start an instance; False means nothing is running for it."""
        return await self._lifecycle.start(instance_id)

    async def stop(self, instance_id: str) -> bool:
        return await self._lifecycle.stop(instance_id)

    async def restart(self, instance_id: str) -> bool:
        return await self._lifecycle.restart(instance_id)

    def status(self, instance_id: str) -> bool:
        return self._lifecycle.status(instance_id)

    def last_failure(self, instance_id: str) -> Optional[FailureReason]:
        return self._lifecycle.last_failure(instance_id)

    async def start_many(self, instance_ids: List[str]) -> Dict[str, bool]:
        return await self._lifecycle.start_many(instance_ids)

    async def stop_all(self) -> None:
        await self._lifecycle.stop_all()

    async def sync_persisted_state(self) -> List[str]:
        return await self._lifecycle.sync_persisted_state()

    def review_code(self, code: str) -> ValidationVerdict:
        """Return a verdict for code without affecting runtime state."""
        return self._review.review(code)

    async def review_instance(self, instance_id: str) -> ValidationVerdict:
        return await self._review.review_instance(instance_id)

    def sanitize_code(self, code: str) -> str:
        return self._review.sanitize(code)

    async def create_instance(self, data: Dict[str, Any]) -> BotInstance:
        return await self._instances.create_instance(data)

    async def get_instance(self, instance_id: str) -> BotInstance:
        return await self._instances.get_instance(instance_id)

    async def list_instances(self) -> List[BotInstance]:
        return await self._instances.list_instances()

    async def update_instance(self, instance_id: str, changes: Dict[str, Any]) -> BotInstance:
        return await self._instances.update_instance(instance_id, changes)

    async def delete_instance(self, instance_id: str) -> bool:
        return await self._instances.delete_instance(instance_id)

    async def save_file(self, instance_id: str, file_name: str, content: str) -> BotInstance:
        return await self._instances.save_file(instance_id, file_name, content)

    async def delete_file(self, instance_id: str, file_name: str) -> Optional[BotInstance]:
        return await self._instances.delete_file(instance_id, file_name)

    async def status_report(self) -> List[InstanceStatus]:
        return await self._instances.status_report()

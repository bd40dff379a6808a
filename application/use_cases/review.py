"""Use case for reviewing bot code without running it."""

from domain.entities import DEFAULT_ENTRY_FILE, ValidationVerdict
from domain.exceptions import InstanceNotFound
from domain.services import CodeValidator, InstanceStore


class CodeReviewUseCase:
    """Advisory code review: returns a verdict, never touches runtime state."""

    def __init__(
        self,
        validator: CodeValidator,
        store: InstanceStore,
        entry_file: str = DEFAULT_ENTRY_FILE,
    ) -> None:
        self._validator = validator
        self._store = store
        self._entry_file = entry_file

    def review(self, code: str) -> ValidationVerdict:
        return self._validator.validate(code)

    async def review_instance(self, instance_id: str) -> ValidationVerdict:
        """Validate the file an instance would run when started."""
        instance = await self._store.get_instance(instance_id)
        if instance is None:
            raise InstanceNotFound(instance_id)
        return self._validator.validate(instance.main_file(self._entry_file))

    def sanitize(self, code: str) -> str:
        return self._validator.sanitize(code)

from abc import ABC, abstractmethod

from domain.entities import ValidationVerdict


class CodeValidator(ABC):
    """Interface for reviewing bot source before it is executed."""

    @abstractmethod
    def validate(self, code: str) -> ValidationVerdict:
        """Scan the given code and return a risk verdict."""

    @abstractmethod
    def sanitize(self, code: str) -> str:
        """Return ``code`` with literal credentials replaced by a placeholder."""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

DEFAULT_ENTRY_FILE = "main.py"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RiskLevel(Enum):
    """Risk classification produced by the code validator."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _RISK_ORDER.index(self)

    def escalate(self, other: "RiskLevel") -> "RiskLevel":
        """Return the higher of the two levels; risk never downgrades."""
        return other if other.rank > self.rank else self


_RISK_ORDER = [RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH]


class ErrorKind(Enum):
    """Failure categories reported by lifecycle operations."""

    NOT_FOUND = "not_found"
    VALIDATION_FAILURE = "validation_failure"
    MODULE_NOT_AVAILABLE = "module_not_available"
    EXECUTION_ERROR = "execution_error"
    AUTHENTICATION_FAILURE = "authentication_failure"
    TIMEOUT = "timeout"
    TEARDOWN_FAILURE = "teardown_failure"


@dataclass
class ValidationVerdict:
    """Result of scanning bot source code before it is run."""

    risk_level: RiskLevel = RiskLevel.LOW
    issues: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.risk_level is not RiskLevel.HIGH

    def flag(self, issue: str, level: RiskLevel) -> None:
        self.issues.append(issue)
        self.risk_level = self.risk_level.escalate(level)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "risk_level": self.risk_level.value,
            "issues": list(self.issues),
        }


@dataclass
class FailureReason:
    """Why the last lifecycle call for an instance failed.

    Only the category and a short message are kept; tracebacks stay in the
    server log.
    """

    kind: ErrorKind
    message: str
    step: str = ""
    verdict: Optional[ValidationVerdict] = None
    occurred_at: datetime = field(default_factory=utcnow)


@dataclass
class BotInstance:
    """A stored unit of bot code plus the credential it logs in with."""

    instance_id: str
    name: str
    token: str
    files: Dict[str, str]
    description: Optional[str] = None
    is_active: bool = False
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def main_file(self, entry_file: str = DEFAULT_ENTRY_FILE) -> str:
        """Return the source of the entry file, else the first file, else ''."""
        if entry_file in self.files:
            return self.files[entry_file]
        for content in self.files.values():
            return content
        return ""

    def main_file_name(self, entry_file: str = DEFAULT_ENTRY_FILE) -> str:
        if entry_file in self.files or not self.files:
            return entry_file
        return next(iter(self.files))

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        data["updated_at"] = self.updated_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BotInstance":
        values = dict(data)
        for key in ("created_at", "updated_at"):
            if isinstance(values.get(key), str):
                values[key] = datetime.fromisoformat(values[key])
        return cls(**values)


@dataclass
class InstanceStatus:
    """Row of the status report: registry truth next to the persisted flag."""

    instance_id: str
    name: str
    running: bool
    persisted_active: bool
    last_failure: Optional[FailureReason] = None

    @property
    def in_sync(self) -> bool:
        return self.running == self.persisted_active

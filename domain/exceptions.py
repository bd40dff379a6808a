"""Error taxonomy for the bot execution core."""

from typing import Optional

from domain.entities import ErrorKind, ValidationVerdict


class BotHostError(Exception):
    """Base class for failures raised while managing bot instances."""

    kind: ErrorKind = ErrorKind.EXECUTION_ERROR


class InstanceNotFound(BotHostError):
    """No stored record exists for the requested instance id."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, instance_id: str):
        super().__init__(f"Instance {instance_id} not found")
        self.instance_id = instance_id


class ValidationFailure(BotHostError):
    """The validator rated the code as high risk."""

    kind = ErrorKind.VALIDATION_FAILURE

    def __init__(self, verdict: ValidationVerdict):
        summary = "; ".join(verdict.issues) or "code rejected"
        super().__init__(f"Code failed validation ({verdict.risk_level.value} risk): {summary}")
        self.verdict = verdict


class ModuleNotAvailable(BotHostError, ImportError):
    """Bot code tried to import a module outside the allowlist."""

    kind = ErrorKind.MODULE_NOT_AVAILABLE

    def __init__(self, module_name: str):
        super().__init__(f"Module {module_name} not available")
        self.module_name = module_name


class ExecutionError(BotHostError):
    """Evaluating the bot source raised, or produced no usable client."""

    kind = ErrorKind.EXECUTION_ERROR


class AuthenticationFailure(BotHostError):
    """The gateway rejected the credential or the handshake failed."""

    kind = ErrorKind.AUTHENTICATION_FAILURE


class ExecutionTimeout(BotHostError):
    """The bot's top-level body overran its execution deadline."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, seconds: float, detail: Optional[str] = None):
        message = f"Bot code execution timed out after {seconds} seconds"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.seconds = seconds


class TeardownFailure(BotHostError):
    """Closing a live connection failed."""

    kind = ErrorKind.TEARDOWN_FAILURE


class InvalidInstanceData(ValueError):
    """Instance create/update payload is malformed."""


class LastFileError(InvalidInstanceData):
    """An instance must always keep at least one file."""

    def __init__(self, instance_id: str, file_name: str):
        super().__init__(
            f"Cannot delete {file_name}: it is the last file of instance {instance_id}"
        )
        self.instance_id = instance_id
        self.file_name = file_name

"""Runs stored bot code and manages each instance's live connection."""

import asyncio
import re
from types import ModuleType
from typing import Any, Dict, List, Optional

from domain.entities import BotInstance, ErrorKind, FailureReason, ValidationVerdict
from domain.exceptions import (
    AuthenticationFailure,
    BotHostError,
    ExecutionError,
    InstanceNotFound,
    TeardownFailure,
    ValidationFailure,
)
from domain.services import BotRuntime, CodeValidator, InstanceStore
from infrastructure.config import SystemConfig
from infrastructure.logging import get_logger

from .gateway import build_gateway_module, create_default_client, is_gateway_client, load_gateway_library
from .registry import LifecycleRegistry, LiveHandle
from .resources import ExecutionDeadline
from .security import ExecutionEnvironmentBuilder

logger = get_logger(__name__)


class InstanceRuntime(BotRuntime):
    """
    Starts, stops and restarts bot instances inside the host process.

    Every failure inside a lifecycle call is caught here, logged with the
    instance and the step that failed, recorded as a :class:`FailureReason`
    and turned into ``False``. Nothing raised by bot code reaches the caller.
    """

    def __init__(
        self,
        store: InstanceStore,
        registry: LifecycleRegistry,
        validator: CodeValidator,
        config: Optional[SystemConfig] = None,
        gateway_library: Optional[ModuleType] = None,
        environment_builder: Optional[ExecutionEnvironmentBuilder] = None,
    ):
        """
        Initialize the runtime.

        Args:
            store: Persistence collaborator holding instance records
            registry: Registry owning the live handles
            validator: Validator consulted before code is run
            config: System configuration
            gateway_library: Gateway client library; imported by name when omitted
            environment_builder: Builder for the bot namespace
        """
        self.store = store
        self.registry = registry
        self.validator = validator
        self.config = config or SystemConfig()
        self.limits = self.config.execution_limits
        self.security = self.config.security_settings
        self.environment_builder = environment_builder or ExecutionEnvironmentBuilder()
        self._gateway_library = gateway_library
        self._failures: Dict[str, FailureReason] = {}
        self._background: set = set()
        self._placeholder_pattern = self._compile_placeholders(self.security.placeholder_tokens)

    @property
    def gateway_library(self) -> ModuleType:
        if self._gateway_library is None:
            self._gateway_library = load_gateway_library(self.security.gateway_module)
        return self._gateway_library

    # ------------------------------------------------------------------
    # Lifecycle operations
    # ------------------------------------------------------------------

    async def start(self, instance_id: str) -> bool:
        async with self.registry.lock_for(instance_id):
            return await self._start_locked(instance_id)

    async def stop(self, instance_id: str) -> bool:
        async with self.registry.lock_for(instance_id):
            return await self._stop_locked(instance_id)

    async def restart(self, instance_id: str) -> bool:
        """Stop then start. Not atomic: a failed start leaves the instance stopped."""
        if not await self.stop(instance_id):
            return False
        return await self.start(instance_id)

    def status(self, instance_id: str) -> bool:
        return self.registry.status(instance_id)

    async def stop_all(self) -> None:
        await self.registry.stop_all(self.stop, timeout=self.limits.shutdown_timeout)

    def last_failure(self, instance_id: str) -> Optional[FailureReason]:
        return self._failures.get(instance_id)

    def review(self, code: str) -> ValidationVerdict:
        return self.validator.validate(code)

    async def sync_persisted_state(self) -> List[str]:
        """Correct persisted ``is_active`` flags that disagree with the registry."""
        corrected = []
        for instance in await self.store.list_instances():
            running = self.registry.status(instance.instance_id)
            if instance.is_active != running:
                await self.store.update_instance(instance.instance_id, {"is_active": running})
                corrected.append(instance.instance_id)
        if corrected:
            logger.info(f"Corrected persisted state of {len(corrected)} instance(s)")
        return corrected

    # ------------------------------------------------------------------
    # Start
    # ------------------------------------------------------------------

    async def _start_locked(self, instance_id: str) -> bool:
        name = instance_id
        step = "load"
        client = None
        try:
            instance = await self.store.get_instance(instance_id)
            if instance is None:
                raise InstanceNotFound(instance_id)
            name = instance.name
            logger.info(f"Starting bot {name} ({instance_id})")

            if self.registry.status(instance_id):
                step = "replace"
                logger.info(f"Bot {name} is already running; stopping it first")
                await self._teardown(instance_id)

            step = "validate"
            source = instance.main_file(self.security.entry_file)
            if self.security.enable_code_scanning:
                verdict = self.validator.validate(source)
                if not verdict.is_valid:
                    raise ValidationFailure(verdict)

            step = "prepare"
            source = self.inject_credential(source, instance)

            step = "execute"
            client = self._execute(instance, source)

            step = "authenticate"
            await self._authenticate(client, instance)

            step = "register"
            handle = LiveHandle(instance_id=instance_id, client=client)
            handle.session = self._open_session(handle, name)
            displaced = self.registry.set(instance_id, handle)
            if displaced is not None:
                await displaced.close(self.limits.teardown_timeout)
            await self.store.update_instance(instance_id, {"is_active": True})

        except Exception as e:
            await self._abort_start(instance_id, name, step, client, e)
            return False

        self._failures.pop(instance_id, None)
        logger.info(f"Bot {name} started", extra={"instance_id": instance_id})
        return True

    def inject_credential(self, source: str, instance: BotInstance) -> str:
        """
        Replace placeholder markers with the credential as a string literal.

        A marker already wrapped in matching quotes is replaced together with
        its quotes. Other spellings are left untouched.
        """
        literal = repr(instance.token)
        replaced, count = self._placeholder_pattern.subn(literal, source)
        if count == 0:
            logger.warning(f"No credential placeholder found in bot {instance.name}; "
                           f"the host will still log in with the stored credential")
        return replaced

    def _execute(self, instance: BotInstance, source: str) -> Any:
        """Run the bot's top-level body and return the client it produced."""
        entry_file = instance.main_file_name(self.security.entry_file)
        gateway = build_gateway_module(self.gateway_library, self.security.gateway_module)
        namespace = self.environment_builder.build(
            instance.name, self.security.gateway_module, gateway, entry_file
        )

        try:
            code = compile(source, f"<bot:{instance.name}/{entry_file}>", "exec")
        except SyntaxError as e:
            raise ExecutionError(f"Syntax error at line {e.lineno}: {e.msg}") from e

        try:
            with ExecutionDeadline(self.limits.max_execution_time) as deadline:
                exec(code, namespace)
                client = self._harvest_client(namespace, gateway)
        except BotHostError:
            raise
        except Exception as e:
            raise ExecutionError(f"{type(e).__name__}: {e}") from e

        logger.debug(f"Bot {instance.name} body ran in {deadline.elapsed:.3f}s")
        return client

    def _harvest_client(self, namespace: Dict[str, Any], gateway: ModuleType) -> Any:
        """Entry-point factory first, then the client variable, then a default client."""
        factory = namespace.get(self.security.entry_point)
        if callable(factory):
            client = factory()
            if not is_gateway_client(client):
                raise ExecutionError(
                    f"{self.security.entry_point}() must return a client, got {type(client).__name__}"
                )
            return client

        candidate = namespace.get(self.security.client_variable)
        if candidate is not None:
            if not is_gateway_client(candidate):
                raise ExecutionError(
                    f"{self.security.client_variable!r} is not a client ({type(candidate).__name__})"
                )
            return candidate

        logger.info("Bot code defined no client; using a default client")
        return create_default_client(gateway, self.config.gateway_settings.intents)

    async def _authenticate(self, client: Any, instance: BotInstance) -> None:
        requested = getattr(client, "requested_credential", None)
        if requested is not None and requested != instance.token:
            logger.warning(f"Bot {instance.name} asked to run with a credential other than "
                           f"the stored one; logging in with the stored credential")
        try:
            await asyncio.wait_for(client.login(instance.token), self.limits.login_timeout)
        except asyncio.TimeoutError as e:
            raise AuthenticationFailure(f"Login timed out after {self.limits.login_timeout}s") from e
        except Exception as e:
            raise AuthenticationFailure(f"Login rejected: {type(e).__name__}: {e}") from e

    def _open_session(self, handle: LiveHandle, name: str) -> "asyncio.Task[Any]":
        session = asyncio.create_task(handle.client.connect(), name=f"bot-session:{handle.instance_id}")
        session.add_done_callback(lambda task: self._on_session_end(handle, name, task))
        return session

    def _on_session_end(self, handle: LiveHandle, name: str, task: "asyncio.Task[Any]") -> None:
        if task.cancelled() or task.exception() is None:
            return
        logger.error(f"Session of bot {name} ended with an error: {task.exception()!r}")
        if self.registry.get(handle.instance_id) is handle:
            self.registry.remove(handle.instance_id)
            self._failures[handle.instance_id] = FailureReason(
                kind=ErrorKind.AUTHENTICATION_FAILURE, message=str(task.exception()), step="session"
            )
            cleanup = asyncio.ensure_future(self._mark_inactive(handle.instance_id))
            self._background.add(cleanup)
            cleanup.add_done_callback(self._background.discard)

    async def _abort_start(
        self, instance_id: str, name: str, step: str, client: Any, error: Exception
    ) -> None:
        kind = error.kind if isinstance(error, BotHostError) else ErrorKind.EXECUTION_ERROR
        verdict = error.verdict if isinstance(error, ValidationFailure) else None
        self._failures[instance_id] = FailureReason(kind=kind, message=str(error), step=step, verdict=verdict)

        if isinstance(error, BotHostError):
            logger.error(f"Failed to start bot {name} ({instance_id}) at step {step}: {error}",
                         extra={"instance_id": instance_id})
        else:
            logger.error(f"Failed to start bot {name} ({instance_id}) at step {step}: {error}",
                         exc_info=True, extra={"instance_id": instance_id})

        handle = self.registry.get(instance_id)
        if handle is not None and handle.client is client:
            self.registry.remove(instance_id)
            await self._close_quietly(handle.client, name, handle)
        elif client is not None:
            await self._close_quietly(client, name)

        if kind is not ErrorKind.NOT_FOUND:
            await self._mark_inactive(instance_id)

    # ------------------------------------------------------------------
    # Stop
    # ------------------------------------------------------------------

    async def _stop_locked(self, instance_id: str) -> bool:
        try:
            if self.registry.status(instance_id):
                await self._teardown(instance_id)
            else:
                logger.info(f"Bot {instance_id} is not running")
            await self.store.update_instance(instance_id, {"is_active": False})
        except Exception as e:
            self._failures[instance_id] = FailureReason(
                kind=ErrorKind.TEARDOWN_FAILURE, message=str(e), step="stop"
            )
            logger.error(f"Failed to stop bot {instance_id}: {e}", exc_info=True)
            return False

        logger.info(f"Bot {instance_id} stopped")
        return True

    async def _teardown(self, instance_id: str) -> None:
        handle = self.registry.remove(instance_id)
        if handle is None:
            return
        try:
            await handle.close(self.limits.teardown_timeout)
        except Exception as e:
            raise TeardownFailure(f"Closing the connection of {instance_id} failed: {e}") from e

    async def _close_quietly(self, client: Any, name: str, handle: Optional[LiveHandle] = None) -> None:
        try:
            if handle is not None:
                await handle.close(self.limits.teardown_timeout)
            else:
                await client.close()
        except Exception as e:
            logger.warning(f"Cleanup of bot {name} after a failed start raised {e!r}")

    async def _mark_inactive(self, instance_id: str) -> None:
        try:
            await self.store.update_instance(instance_id, {"is_active": False})
        except Exception as e:
            logger.error(f"Could not persist inactive state of {instance_id}: {e}")

    @staticmethod
    def _compile_placeholders(placeholders: List[str]) -> "re.Pattern[str]":
        # Longest first so YOUR_BOT_TOKEN_HERE is not split by YOUR_BOT_TOKEN
        names = "|".join(re.escape(p) for p in sorted(placeholders, key=len, reverse=True))
        return re.compile(rf"\"(?:{names})\"|'(?:{names})'|(?:{names})")

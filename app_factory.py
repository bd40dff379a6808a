"""Application factory for creating fully wired controllers and services."""

from __future__ import annotations

from types import ModuleType
from typing import Optional

from infrastructure.config import SystemConfig, get_config


def _create_config():
    """Create system configuration instance."""
    return get_config()


def _create_store(config: SystemConfig):
    from infrastructure.persistence import InMemoryInstanceStore, JsonFileInstanceStore

    if config.storage_settings.backend == "json":
        return JsonFileInstanceStore(base_path=config.storage_settings.base_path)
    return InMemoryInstanceStore()


def _bind_services(config: SystemConfig, store=None, gateway_library: Optional[ModuleType] = None):
    """Instantiate and bind service implementations."""
    import infrastructure.execution as execution_module
    import infrastructure.persistence as persistence_module
    from infrastructure.execution import InstanceRuntime, LifecycleRegistry, PatternCodeValidator

    store = store or _create_store(config)
    validator = PatternCodeValidator(config.security_settings)
    registry = LifecycleRegistry()
    runtime = InstanceRuntime(
        store=store,
        registry=registry,
        validator=validator,
        config=config,
        gateway_library=gateway_library,
    )

    persistence_module.instance_store = store
    execution_module.runtime = runtime
    execution_module.validator = validator

    return {
        "store": store,
        "validator": validator,
        "registry": registry,
        "runtime": runtime,
    }


def create_bot_controller(
    config: Optional[SystemConfig] = None,
    store=None,
    gateway_library: Optional[ModuleType] = None,
):
    """Create a fully wired :class:`BotController`."""
    config = config or _create_config()
    services = _bind_services(config, store=store, gateway_library=gateway_library)

    from application.controllers import BotController
    from application.use_cases import (
        CodeReviewUseCase,
        InstanceLifecycleUseCase,
        InstanceManagementUseCase,
    )

    runtime = services["runtime"]
    return BotController(
        lifecycle=InstanceLifecycleUseCase(runtime),
        instances=InstanceManagementUseCase(services["store"], runtime),
        review=CodeReviewUseCase(
            services["validator"], services["store"], config.security_settings.entry_file
        ),
    )

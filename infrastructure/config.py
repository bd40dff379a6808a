"""Configuration management for the bot host."""
import os
from typing import List, Optional
from pydantic import BaseModel, Field

# Centralized constants
DEFAULT_GATEWAY_MODULE = "discord"
DEFAULT_PLACEHOLDERS = ["YOUR_BOT_TOKEN_HERE", "YOUR_BOT_TOKEN"]


class ExecutionLimits(BaseModel):
    """Configuration for bot execution and connection limits."""
    max_execution_time: float = Field(default=5.0, description="Deadline for the bot's top-level body in seconds")
    login_timeout: float = Field(default=30.0, description="Maximum time for the gateway login handshake in seconds")
    teardown_timeout: float = Field(default=10.0, description="Maximum wait for a session to finish after close")
    shutdown_timeout: float = Field(default=30.0, description="Maximum time to stop one instance during shutdown")


class SecurityConfig(BaseModel):
    """Security configuration settings."""
    enable_code_scanning: bool = Field(default=True, description="Refuse to start code the validator rates high risk")
    gateway_module: str = Field(default=DEFAULT_GATEWAY_MODULE, description="The only module bot code may import")
    entry_file: str = Field(default="main.py", description="File run when an instance starts")
    entry_point: str = Field(default="create_client", description="Optional factory returning the bot's client")
    client_variable: str = Field(default="client", description="Module-level name holding the bot's client")
    placeholder_tokens: List[str] = Field(
        default_factory=lambda: list(DEFAULT_PLACEHOLDERS),
        description="Markers replaced with the instance credential before execution"
    )
    max_code_length: int = Field(default=50000, description="Code longer than this is flagged as medium risk")


class GatewayConfig(BaseModel):
    """Gateway client settings."""
    intents: List[str] = Field(
        default=["guilds", "guild_messages", "message_content"],
        description="Intent flags enabled on clients the host creates"
    )


class StorageConfig(BaseModel):
    """Instance record storage settings."""
    backend: str = Field(default="memory", description="Storage backend: memory or json")
    base_path: str = Field(default="instances", description="Directory for the json backend")


class LoggingConfig(BaseModel):
    """Logging configuration settings."""
    level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format string"
    )
    file_path: str = Field(default="logs/bot_host.log", description="Main log file path")
    console_output: bool = Field(default=True, description="Enable console output")
    file_output: bool = Field(default=False, description="Enable file output")
    json_format: bool = Field(default=False, description="Emit JSON log lines")


class SystemConfig(BaseModel):
    """Main system configuration."""
    execution_limits: ExecutionLimits = Field(default_factory=ExecutionLimits)
    security_settings: SecurityConfig = Field(default_factory=SecurityConfig)
    gateway_settings: GatewayConfig = Field(default_factory=GatewayConfig)
    storage_settings: StorageConfig = Field(default_factory=StorageConfig)
    logging_settings: LoggingConfig = Field(default_factory=LoggingConfig)
    environment: str = Field(default_factory=lambda: os.getenv("APP_ENV", "development"), description="Deployment environment")

    def __init__(self, **kwargs):
        # Environment overrides for the settings operators touch most
        storage = kwargs.get('storage_settings', {})
        if not isinstance(storage, dict):
            storage = storage.model_dump()
        if os.getenv('BOT_HOST_STORAGE_DIR'):
            storage.setdefault('backend', 'json')
            storage.setdefault('base_path', os.getenv('BOT_HOST_STORAGE_DIR'))
        kwargs['storage_settings'] = StorageConfig(**storage)

        logging_settings = kwargs.get('logging_settings', {})
        if not isinstance(logging_settings, dict):
            logging_settings = logging_settings.model_dump()
        if os.getenv('BOT_HOST_LOG_LEVEL'):
            logging_settings.setdefault('level', os.getenv('BOT_HOST_LOG_LEVEL'))
        kwargs['logging_settings'] = LoggingConfig(**logging_settings)

        super().__init__(**kwargs)


class DevelopmentConfig(SystemConfig):
    """Configuration for development environment."""


class ProductionConfig(SystemConfig):
    """Configuration for production environment."""

    def __init__(self, **kwargs):
        logging_settings = kwargs.get('logging_settings', {})
        if isinstance(logging_settings, dict):
            logging_settings.setdefault('json_format', True)
            logging_settings.setdefault('file_output', True)
            kwargs['logging_settings'] = logging_settings
        super().__init__(**kwargs)


_CONFIG_MAP = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
}


def get_config(environment: Optional[str] = None) -> SystemConfig:
    """Load configuration based on the deployment environment."""
    env = (environment or os.getenv("APP_ENV", "development")).lower()
    config_cls = _CONFIG_MAP.get(env, DevelopmentConfig)
    return config_cls(environment=env)

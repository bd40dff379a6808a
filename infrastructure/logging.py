"""Centralized logging configuration for the bot host."""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

from .config import LoggingConfig

# Global flag to ensure logging is only configured once
_logging_configured = False

BOT_LOGGER_PREFIX = "bot"


class JsonFormatter(logging.Formatter):
    """Simple JSON formatter for structured logs."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        log_record = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        instance_id = getattr(record, "instance_id", None)
        if instance_id:
            log_record["instance_id"] = instance_id
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_record)


def setup_logging(
    logging_config: Optional[LoggingConfig] = None,
    debug: bool = False,
    log_file: Optional[str] = None,
    force: bool = False,
) -> None:
    """Setup centralized logging configuration."""
    global _logging_configured

    if _logging_configured and not force:
        return

    logging_config = logging_config or LoggingConfig()

    log_file = log_file or logging_config.file_path or "logs/bot_host.log"
    log_level = (
        logging.DEBUG if debug else getattr(logging, logging_config.level.upper())
    )
    log_format = logging_config.format

    # Create handlers based on config
    handlers = []

    if logging_config.console_output:
        handlers.append(logging.StreamHandler(sys.stderr))

    if logging_config.file_output:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, mode="a", encoding="utf-8"))

    # Ensure we have at least one handler
    if not handlers:
        handlers.append(logging.StreamHandler(sys.stderr))

    formatter: logging.Formatter
    if logging_config.json_format:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(log_format)

    for handler in handlers:
        handler.setFormatter(formatter)

    # Configure logging with force=True to override any existing config
    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    # The gateway library is chatty at INFO
    logging.getLogger("discord").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    # Mark as configured
    _logging_configured = True

    logger = logging.getLogger(__name__)
    logger.debug(f"Logging initialized: level={logging.getLevelName(log_level)}, "
                 f"file={log_file if logging_config.file_output else 'disabled'}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module, ensuring logging is configured.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    # Ensure logging is configured with defaults if not already done
    if not _logging_configured:
        setup_logging()

    return logging.getLogger(name)


def get_bot_logger(display_name: str) -> logging.Logger:
    """Logger that receives the output of one bot instance."""
    return get_logger(f"{BOT_LOGGER_PREFIX}.{display_name}")

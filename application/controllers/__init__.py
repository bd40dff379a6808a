"""Application controllers."""

from .bot_controller import BotController

__all__ = ["BotController"]

"""Orchestrators for coordinating the host lifecycle."""

from .bot_host import BotHost

__all__ = ["BotHost"]

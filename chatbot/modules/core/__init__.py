"""Core module: ping, help, tell and whoami."""

from chatbot.modules.core.commands import registry

__all__ = ["registry"]

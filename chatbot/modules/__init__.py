"""Feature modules contributing commands to the bot."""

from chatbot.infrastructure.commands import CommandRegistry
from chatbot.modules import core


def build_registry() -> CommandRegistry:
    """Single registry holding the commands of every module.

    Raises:
        ValueError: If two modules register the same selector
    """
    registry = CommandRegistry("chatbot")
    registry.merge(core.registry)
    return registry


__all__ = ["build_registry"]

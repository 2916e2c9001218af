"""Feature settings __init__ - exports all feature settings."""

from chatbot.infrastructure.configuration.features.commands import CommandsSettings

__all__ = ["CommandsSettings"]

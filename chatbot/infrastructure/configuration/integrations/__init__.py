"""Integration settings __init__ - exports all integration settings."""

from chatbot.infrastructure.configuration.integrations.slack import SlackSettings

__all__ = ["SlackSettings"]

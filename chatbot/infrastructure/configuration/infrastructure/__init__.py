"""Infrastructure settings __init__ - exports all infrastructure settings."""

from chatbot.infrastructure.configuration.infrastructure.strategies import (
    StrategySettings,
)

__all__ = ["StrategySettings"]

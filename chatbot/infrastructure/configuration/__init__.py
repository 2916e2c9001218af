"""Infrastructure configuration module - public API.

Centralized configuration management using Pydantic BaseSettings with
domain-based organization.

Exports:
    Settings: Main settings class
    SlackSettings, CommandsSettings, StrategySettings: section classes

Example:
    ```python
    from chatbot.infrastructure.services import get_settings

    settings = get_settings()

    if settings.is_production:
        ...
    ```
"""

from chatbot.infrastructure.configuration.settings import Settings
from chatbot.infrastructure.configuration.integrations import SlackSettings
from chatbot.infrastructure.configuration.features import CommandsSettings
from chatbot.infrastructure.configuration.infrastructure import StrategySettings

__all__ = ["Settings", "SlackSettings", "CommandsSettings", "StrategySettings"]

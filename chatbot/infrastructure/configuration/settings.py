"""Chatbot configuration settings - main aggregator."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from chatbot.infrastructure.configuration.integrations import SlackSettings
from chatbot.infrastructure.configuration.features import CommandsSettings
from chatbot.infrastructure.configuration.infrastructure import StrategySettings


class Settings(BaseSettings):
    """Chatbot configuration settings - main aggregator.

    Aggregates the domain-specific settings into a single configuration object:

    - **Integrations**: chat platform configuration (Slack)
    - **Features**: command recognition and interactive prompting
    - **Infrastructure**: strategy wait/retry policy

    Environment Variables:
        PREFIX: Environment prefix for non-production deployments
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
        GIT_SHA: Git commit SHA for deployment tracking

    Example:
        ```python
        from chatbot.infrastructure.services import get_settings

        settings = get_settings()

        slack_token = settings.slack.SLACK_TOKEN
        prefix = settings.commands.prefix
        max_attempts = settings.strategies.max_attempts
        ```
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    PREFIX: str = ""
    LOG_LEVEL: str = "INFO"
    GIT_SHA: str = "Unknown"

    slack: SlackSettings
    commands: CommandsSettings
    strategies: StrategySettings

    @property
    def is_production(self) -> bool:
        """Check if the application is running in production.

        Returns:
            True if PREFIX is empty (production), False otherwise.
        """
        return not bool(self.PREFIX)

    def __init__(self, **kwargs):
        """Initialize Settings with automatic subsettings instantiation.

        Args:
            **kwargs: Optional overrides for specific settings sections.
        """
        settings_map = {
            "slack": SlackSettings,
            "commands": CommandsSettings,
            "strategies": StrategySettings,
        }

        for setting_name, setting_class in settings_map.items():
            if setting_name not in kwargs:
                kwargs[setting_name] = setting_class()

        super().__init__(**kwargs)

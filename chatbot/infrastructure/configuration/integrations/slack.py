"""Slack integration settings."""

from pydantic import Field

from chatbot.infrastructure.configuration.base import IntegrationSettings


class SlackSettings(IntegrationSettings):
    """Slack API and bot configuration.

    Environment Variables:
        SLACK_TOKEN: Slack bot token (xoxb-*)
        APP_TOKEN: Slack app-level token used by Socket Mode (xapp-*)
        SLACK_API_BASE_URL: Web API base url

    Example:
        ```python
        from chatbot.infrastructure.services import get_settings

        settings = get_settings()

        slack_token = settings.slack.SLACK_TOKEN
        ```
    """

    SLACK_TOKEN: str = ""
    APP_TOKEN: str = ""
    SLACK_API_BASE_URL: str = Field(default="https://slack.com/api/")

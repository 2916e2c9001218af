"""Slack integration: Web API client, transport and messaging strategies."""

from chatbot.integrations.slack.client import SlackWebClient
from chatbot.integrations.slack.transport import SlackTransport

__all__ = ["SlackTransport", "SlackWebClient"]

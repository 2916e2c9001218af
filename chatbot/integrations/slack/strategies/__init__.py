"""Slack messaging strategies."""

from chatbot.integrations.slack.strategies.phases import (
    GET_CONVERSATION,
    SEND_MESSAGE,
    WAIT_CONVERSATION,
    GetConversationPhase,
    SendMessagePhase,
    WaitConversationPhase,
)
from chatbot.integrations.slack.strategies.send_channel import SendChannelStrategy
from chatbot.integrations.slack.strategies.send_user import SendUserStrategy

__all__ = [
    "GET_CONVERSATION",
    "SEND_MESSAGE",
    "WAIT_CONVERSATION",
    "GetConversationPhase",
    "SendChannelStrategy",
    "SendMessagePhase",
    "SendUserStrategy",
    "WaitConversationPhase",
]

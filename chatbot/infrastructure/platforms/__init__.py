"""Platform abstractions: inbound messages and the transport contract."""

from chatbot.infrastructure.platforms.models import Message
from chatbot.infrastructure.platforms.transport import MessageHandler, Transport

__all__ = ["Message", "MessageHandler", "Transport"]

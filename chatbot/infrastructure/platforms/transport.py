"""Transport contract consumed by the engine.

A transport sends messages, opens direct conversations and pushes inbound
messages to a registered handler. Remote outcomes are reported as
OperationResult: SUCCESS, PENDING when a remote precondition is not met
yet, or an error status.
"""

from typing import Any, Awaitable, Callable, Protocol, runtime_checkable

from chatbot.infrastructure.operations import OperationResult
from chatbot.infrastructure.platforms.models import Message

MessageHandler = Callable[[Message], Awaitable[None]]


@runtime_checkable
class Transport(Protocol):
    """Narrow contract of a chat platform transport."""

    async def send_message(
        self, destination_id: str, text: str, **options: Any
    ) -> OperationResult:
        """Post ``text`` into a conversation; data carries the message ts."""
        ...

    async def open_conversation(self, user_id: str) -> OperationResult:
        """Open a direct conversation; data carries the conversation id."""
        ...

    async def conversation_status(self, conversation_id: str) -> OperationResult:
        """SUCCESS when the conversation accepts messages, PENDING if not yet."""
        ...

    def set_message_handler(self, handler: MessageHandler) -> None: ...

    async def start(self) -> None: ...

    async def stop(self) -> None: ...

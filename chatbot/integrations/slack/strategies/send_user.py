"""Deliver a message to a user by direct message."""

from typing import Any, Dict, Optional

from chatbot.infrastructure.commands.destination import UserDestination
from chatbot.infrastructure.platforms.transport import Transport
from chatbot.infrastructure.strategies import Strategy
from chatbot.integrations.slack.strategies.phases import (
    GetConversationPhase,
    SendMessagePhase,
    WaitConversationPhase,
)


class SendUserStrategy(Strategy):
    """getconversation -> waitconversation -> sendmessage.

    The direct conversation may not be usable right after it is opened, so
    ``waitconversation`` re-polls it under its wait policy before posting.
    """

    name = "senduser"
    phases = (GetConversationPhase(), WaitConversationPhase(), SendMessagePhase())

    def __init__(
        self,
        transport: Transport,
        destination: UserDestination,
        user_id: str,
        text: str,
        options: Optional[Dict[str, Any]] = None,
        **kwargs: Any,
    ):
        super().__init__(
            transport,
            destination,
            params={
                "user_id": user_id,
                "text": text,
                "options": dict(options or {}),
            },
            **kwargs,
        )

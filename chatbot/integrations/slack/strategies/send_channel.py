"""Post a message into an existing channel or conversation."""

from typing import Any, Dict, Optional

from chatbot.infrastructure.commands.destination import UserDestination
from chatbot.infrastructure.platforms.transport import Transport
from chatbot.infrastructure.strategies import Strategy
from chatbot.integrations.slack.strategies.phases import SendMessagePhase


class SendChannelStrategy(Strategy):
    name = "sendchannel"
    phases = (SendMessagePhase(),)

    def __init__(
        self,
        transport: Transport,
        destination: UserDestination,
        channel_id: str,
        text: str,
        options: Optional[Dict[str, Any]] = None,
        **kwargs: Any,
    ):
        super().__init__(
            transport,
            destination,
            params={
                "channel_id": channel_id,
                "text": text,
                "options": dict(options or {}),
            },
            **kwargs,
        )

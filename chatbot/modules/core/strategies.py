"""Strategies of the core commands."""

from typing import Any, Dict, Optional

from chatbot.infrastructure.commands.destination import UserDestination
from chatbot.infrastructure.operations import OperationResult
from chatbot.infrastructure.platforms.transport import Transport
from chatbot.infrastructure.strategies import Phase, Strategy
from chatbot.integrations.slack.strategies import SendUserStrategy

CONFIRM_REQUESTER = "confirmrequester"


class ConfirmRequesterPhase(Phase):
    """Tell the requester their message went out.

    Artifact: the ts of the confirmation.
    """

    name = CONFIRM_REQUESTER

    async def execute(self, strategy: Strategy) -> OperationResult:
        params = strategy.context.params
        result = await strategy.transport.send_message(
            params["reply_channel_id"], params["confirmation"]
        )
        if result.is_success:
            return OperationResult.success(data=(result.data or {}).get("ts"))
        return result


class TellStrategy(SendUserStrategy):
    """Relay a message to a user by direct message, then confirm it to the
    requester in the conversation the command came from."""

    name = "tell"
    phases = SendUserStrategy.phases + (ConfirmRequesterPhase(),)

    def __init__(
        self,
        transport: Transport,
        destination: UserDestination,
        user_id: str,
        text: str,
        reply_channel_id: str,
        confirmation: str,
        options: Optional[Dict[str, Any]] = None,
        **kwargs: Any,
    ):
        super().__init__(
            transport, destination, user_id, text, options=options, **kwargs
        )
        self.context.params.update(
            reply_channel_id=reply_channel_id, confirmation=confirmation
        )

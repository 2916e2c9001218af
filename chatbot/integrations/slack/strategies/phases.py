"""Phases shared by the Slack messaging strategies."""

from chatbot.infrastructure.operations import OperationResult
from chatbot.infrastructure.strategies import Phase, Strategy

GET_CONVERSATION = "getconversation"
WAIT_CONVERSATION = "waitconversation"
SEND_MESSAGE = "sendmessage"


class GetConversationPhase(Phase):
    """Open the direct conversation with the target user.

    Artifact: the conversation id.
    """

    name = GET_CONVERSATION

    async def execute(self, strategy: Strategy) -> OperationResult:
        return await strategy.transport.open_conversation(
            strategy.context.params["user_id"]
        )


class WaitConversationPhase(Phase):
    """Poll until the opened conversation accepts messages.

    Artifact: the conversation id, once usable.
    """

    name = WAIT_CONVERSATION

    async def execute(self, strategy: Strategy) -> OperationResult:
        conversation_id = strategy.context.artifact(GET_CONVERSATION)
        result = await strategy.transport.conversation_status(conversation_id)
        if result.is_success:
            return OperationResult.success(data=conversation_id)
        return result


class SendMessagePhase(Phase):
    """Post the text into the conversation opened earlier, or into the
    strategy's channel when no conversation was opened.

    Artifact: the posted message ts.
    """

    name = SEND_MESSAGE

    async def execute(self, strategy: Strategy) -> OperationResult:
        context = strategy.context
        if context.has_artifact(GET_CONVERSATION):
            target = context.artifact(GET_CONVERSATION)
        else:
            target = context.params["channel_id"]
        result = await strategy.transport.send_message(
            target, context.params["text"], **context.params.get("options", {})
        )
        if result.is_success:
            return OperationResult.success(data=(result.data or {}).get("ts"))
        return result

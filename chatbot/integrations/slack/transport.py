"""Slack transport: outbound calls through SlackWebClient, inbound messages
through a slack_bolt AsyncApp running in Socket Mode."""

from typing import Any, Dict, Optional

from slack_bolt.adapter.socket_mode.async_handler import AsyncSocketModeHandler
from slack_bolt.async_app import AsyncApp

from chatbot.infrastructure.logging import get_module_logger
from chatbot.infrastructure.operations import OperationResult
from chatbot.infrastructure.platforms import Message, MessageHandler
from chatbot.integrations.slack.client import SlackWebClient

logger = get_module_logger()

IGNORED_SUBTYPES = frozenset(
    {
        "message_changed",
        "message_deleted",
        "message_replied",
        "channel_join",
        "channel_leave",
        "channel_topic",
        "channel_purpose",
        "group_join",
        "group_leave",
    }
)


class SlackTransport:
    """Transport implementation for Slack.

    Args:
        client: SlackWebClient used for every outbound call
        app: Bolt app receiving events; required for ``start``
        app_token: App-level token (xapp-) for Socket Mode

    Example:
        transport = SlackTransport(client, app=AsyncApp(client=client.sdk_client),
                                   app_token=settings.slack.APP_TOKEN)
        transport.set_message_handler(orchestrator.handle_message)
        await transport.start()
    """

    def __init__(
        self,
        client: SlackWebClient,
        app: Optional[AsyncApp] = None,
        app_token: str = "",
    ):
        self.client = client
        self._app = app
        self._app_token = app_token
        self._handler: Optional[MessageHandler] = None
        self._socket_handler: Optional[AsyncSocketModeHandler] = None
        if app is not None:
            app.event("message")(self._on_message_event)

    def set_message_handler(self, handler: MessageHandler) -> None:
        self._handler = handler

    async def start(self) -> None:
        """Connect to Slack over Socket Mode."""
        if self._app is None:
            raise RuntimeError("SlackTransport needs an AsyncApp to receive events")
        self._socket_handler = AsyncSocketModeHandler(self._app, self._app_token)
        await self._socket_handler.connect_async()
        logger.info("socket_mode_started")

    async def stop(self) -> None:
        if self._socket_handler is None:
            return
        await self._socket_handler.close_async()
        self._socket_handler = None
        logger.info("socket_mode_stopped")

    async def _on_message_event(self, event: Dict[str, Any]) -> None:
        if event.get("subtype") in IGNORED_SUBTYPES:
            return
        await self.deliver(Message.from_slack_event(event))

    async def deliver(self, message: Message) -> None:
        """Push one inbound message to the registered handler."""
        if self._handler is None:
            logger.warning("inbound_message_dropped", reason="no_handler")
            return
        await self._handler(message)

    async def send_message(
        self, destination_id: str, text: str, **options: Any
    ) -> OperationResult:
        result = await self.client.chat_post_message(destination_id, text, **options)
        if not result.is_success:
            return result
        data = result.data or {}
        return OperationResult.success(
            data={
                "ts": data.get("ts"),
                "channel": data.get("channel", destination_id),
            },
            message="Message posted",
        )

    async def open_conversation(self, user_id: str) -> OperationResult:
        result = await self.client.conversations_open(user_id)
        if not result.is_success:
            return result
        conversation_id = (result.data or {}).get("id")
        if not conversation_id:
            return OperationResult.pending(
                f"Conversation with {user_id} not created yet"
            )
        return OperationResult.success(data=conversation_id)

    async def conversation_status(self, conversation_id: str) -> OperationResult:
        result = await self.client.conversations_info(conversation_id)
        if not result.is_success:
            return result
        channel = result.data or {}
        if channel.get("is_archived"):
            return OperationResult.permanent_error(
                f"Conversation {conversation_id} is archived",
                error_code="SLACK_IS_ARCHIVED",
            )
        if channel.get("is_im") and channel.get("is_open") is False:
            return OperationResult.pending(
                f"Conversation {conversation_id} not open yet"
            )
        return OperationResult.success(data=channel)

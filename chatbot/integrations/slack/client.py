"""Slack Web API client facade.

Wraps ``slack_sdk.web.async_client.AsyncWebClient`` with OperationResult
returns so callers never handle SDK exceptions. Every ``ok: false`` is
logged at error level, every ``warning`` at warning level.
"""

import json
from typing import Any, Dict, List, Optional

from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from chatbot.infrastructure.logging import get_module_logger, mask_token
from chatbot.infrastructure.operations import (
    OperationResult,
    classify_slack_api_error,
    classify_slack_error,
)

logger = get_module_logger()

DEFAULT_BASE_URL = "https://slack.com/api/"
PAGE_LIMIT = 200


def _payload(response: Any) -> Dict[str, Any]:
    data = getattr(response, "data", response)
    return data if isinstance(data, dict) else {}


class SlackWebClient:
    """Async facade over the Slack Web API with OperationResult returns.

    Args:
        token: Slack bot token (starts with xoxb-)
        base_url: Web API base url
        client: Pre-built AsyncWebClient (tests, shared sessions)

    Example:
        >>> client = SlackWebClient(token="xoxb-...")
        >>> result = await client.chat_post_message("C123", "Hello")
        >>> if result.is_success:
        ...     print(result.data["ts"])
    """

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_BASE_URL,
        client: Optional[AsyncWebClient] = None,
    ):
        self._client = client or AsyncWebClient(token=token, base_url=base_url)
        self._log = logger.bind(component="slack_web_client")
        self._log.info(
            "slack_web_client_initialized",
            base_url=base_url,
            key_hint=mask_token(token),
        )

    @property
    def sdk_client(self) -> AsyncWebClient:
        return self._client

    async def _call(self, method: str, **kwargs: Any) -> OperationResult:
        log = self._log.bind(method=method)
        log.debug("slack_api_call")
        try:
            response = await getattr(self._client, method)(**kwargs)
        except SlackApiError as e:
            result = classify_slack_error(e)
            log.error(
                "slack_api_error",
                error=result.message,
                error_code=result.error_code,
                retry_after=result.retry_after,
            )
            return result
        except Exception as e:
            log.exception("slack_client_error", error=str(e))
            return classify_slack_error(e)

        data = _payload(response)
        if data.get("ok") is False:
            error = data.get("error") or "unknown_error"
            log.error("slack_api_error", error=error, body=data)
            return classify_slack_api_error(error, retryable=False)

        if data.get("warning"):
            log.warning("slack_api_warning", warning=data["warning"], body=data)

        return OperationResult.success(data=data)

    async def _paginate(self, method: str, key: str, **kwargs: Any) -> OperationResult:
        items: List[Dict[str, Any]] = []
        cursor = ""
        while True:
            result = await self._call(
                method, cursor=cursor, limit=PAGE_LIMIT, **kwargs
            )
            if not result.is_success:
                return result
            page = result.data or {}
            items.extend(page.get(key) or [])
            cursor = (page.get("response_metadata") or {}).get("next_cursor") or ""
            if not cursor:
                break
        self._log.debug(
            "slack_pagination_completed", method=method, count=len(items)
        )
        return OperationResult.success(data=items)

    async def auth_test(self) -> OperationResult:
        """Identity of the token: user_id, bot_id, team_id."""
        return await self._call("auth_test")

    async def users_info(self, user: str) -> OperationResult:
        """Profile of one user; data is the ``user`` object."""
        result = await self._call("users_info", user=user)
        if result.is_success:
            result.data = (result.data or {}).get("user") or {}
        return result

    async def users_list(self) -> OperationResult:
        """Every member of the workspace, following cursor pagination."""
        return await self._paginate("users_list", "members")

    async def conversations_open(self, user: str) -> OperationResult:
        """Open (or fetch) the direct conversation with ``user``.

        Data is the ``channel`` object; its id may be absent while Slack is
        still creating the conversation.
        """
        result = await self._call("conversations_open", users=user)
        if result.is_success:
            result.data = (result.data or {}).get("channel") or {}
        return result

    async def conversations_info(self, channel: str) -> OperationResult:
        """Details of one conversation; data is the ``channel`` object.

        A ``channel_not_found`` is reported as PENDING: a direct conversation
        that was just opened may not be visible yet.
        """
        result = await self._call("conversations_info", channel=channel)
        if result.error_code == "SLACK_CHANNEL_NOT_FOUND":
            return OperationResult.pending(
                f"Conversation {channel} is not available yet",
                retry_after=result.retry_after,
            )
        if result.is_success:
            result.data = (result.data or {}).get("channel") or {}
        return result

    async def conversations_list(self, archived: bool = False) -> OperationResult:
        """Public and private channels visible to the bot."""
        return await self._paginate(
            "conversations_list",
            "channels",
            types="public_channel,private_channel",
            exclude_archived=not archived,
        )

    async def conversations_close(self, channel: str) -> OperationResult:
        return await self._call("conversations_close", channel=channel)

    async def chat_post_message(
        self,
        channel: str,
        text: str,
        attachments: Optional[List[Dict[str, Any]]] = None,
        **options: Any,
    ) -> OperationResult:
        """Post a message.

        Caller options (``thread_ts``, ``blocks``, ``unfurl_links``...) are
        merged under the fixed channel and text.

        Returns:
            OperationResult with the response, including 'ts' and 'channel'
        """
        payload: Dict[str, Any] = dict(options)
        if attachments:
            payload["attachments"] = json.dumps(attachments)
        payload.update(channel=channel, text=text)
        return await self._call("chat_postMessage", **payload)

    async def chat_me_message(self, channel: str, text: str) -> OperationResult:
        return await self._call("chat_meMessage", channel=channel, text=text)

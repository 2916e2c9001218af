"""User identity resolution.

Resolves platform user ids to normalized User records through the Slack
Web API, caching results for the lifetime of the process. All dependencies
are injected via constructor.
"""

import asyncio
from typing import Any, Dict, Optional

from chatbot.infrastructure.identity.models import BotUser, IdentitySource, User
from chatbot.infrastructure.logging import get_module_logger

logger = get_module_logger()


class IdentityResolutionError(Exception):
    """Raised when a platform id cannot be resolved to a user."""


class IdentityResolver:
    """Resolve and cache user identities.

    Concurrent lookups for the same id share one in-flight request.

    Args:
        client: A SlackWebClient (anything exposing async ``users_info`` and
            ``auth_test`` returning OperationResult).

    Example:
        resolver = IdentityResolver(client)
        user = await resolver.resolve_user("U123ABC")
    """

    def __init__(self, client):
        self._client = client
        self._cache: Dict[str, User] = {}
        self._inflight: Dict[str, asyncio.Future] = {}
        self._log = logger.bind(component="identity_resolver")

    def get_cached(self, platform_id: str) -> Optional[User]:
        return self._cache.get(platform_id)

    def clear_cache(self) -> None:
        self._cache.clear()

    async def resolve_user(self, platform_id: str) -> User:
        """Resolve a Slack user id to a User.

        Raises:
            IdentityResolutionError: If the lookup fails.
        """
        cached = self._cache.get(platform_id)
        if cached is not None:
            return cached

        inflight = self._inflight.get(platform_id)
        if inflight is not None:
            return await asyncio.shield(inflight)

        future = asyncio.get_running_loop().create_future()
        self._inflight[platform_id] = future
        try:
            user = await self._fetch_user(platform_id)
        except Exception as exc:
            future.set_exception(exc)
            # Consumed here so an unawaited future does not warn.
            future.exception()
            raise
        else:
            self._cache[platform_id] = user
            future.set_result(user)
            return user
        finally:
            self._inflight.pop(platform_id, None)

    async def resolve_bot_user(self) -> BotUser:
        """Resolve the identity the bot token acts as.

        Raises:
            IdentityResolutionError: If ``auth.test`` or ``users.info`` fails.
        """
        auth = await self._client.auth_test()
        if not auth.is_success:
            self._log.error("bot_identity_auth_failed", error=auth.message)
            raise IdentityResolutionError(f"auth.test failed: {auth.message}")

        data = auth.data or {}
        user_id = data.get("user_id", "")
        profile = await self._users_info(user_id)
        bot = BotUser(
            user_id=user_id,
            platform_id=user_id,
            display_name=_display_name(profile) or data.get("user", ""),
            real_name=profile.get("real_name", ""),
            team_id=data.get("team_id", ""),
            bot_id=data.get("bot_id", "")
            or profile.get("profile", {}).get("bot_id", ""),
            metadata={"team": data.get("team", ""), "url": data.get("url", "")},
        )
        self._cache[user_id] = bot
        self._log.info("bot_identity_resolved", bot_user_id=user_id, bot_id=bot.bot_id)
        return bot

    async def _fetch_user(self, platform_id: str) -> User:
        log = self._log.bind(platform_id=platform_id)
        log.debug("resolving_slack_user")
        info = await self._users_info(platform_id)
        profile = info.get("profile", {})
        user = User(
            user_id=platform_id,
            platform_id=platform_id,
            display_name=_display_name(info),
            real_name=info.get("real_name", "") or profile.get("real_name", ""),
            email=profile.get("email", ""),
            source=IdentitySource.SLACK,
            is_bot=bool(info.get("is_bot", False)),
            team_id=info.get("team_id", ""),
            metadata={"slack_user_name": info.get("name", "")},
        )
        log.info("slack_user_resolved", display_name=user.display_name)
        return user

    async def _users_info(self, platform_id: str) -> Dict[str, Any]:
        result = await self._client.users_info(platform_id)
        if not result.is_success:
            self._log.warning(
                "slack_user_fetch_failed",
                platform_id=platform_id,
                error=result.message,
                error_code=result.error_code,
            )
            raise IdentityResolutionError(
                f"Failed to fetch Slack user {platform_id}: {result.message}"
            )
        return result.data or {}


def _display_name(info: Dict[str, Any]) -> str:
    profile = info.get("profile", {})
    return profile.get("display_name") or info.get("name", "")

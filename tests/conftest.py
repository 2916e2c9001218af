"""Shared fixtures: identities, messages and an in-memory transport."""

from typing import Any, Dict, List, Optional, Tuple
from unittest.mock import AsyncMock

import pytest

from chatbot.infrastructure.commands import Destination, UserDestination
from chatbot.infrastructure.identity import BotUser, User
from chatbot.infrastructure.logging import configure_logging
from chatbot.infrastructure.operations import OperationResult
from chatbot.infrastructure.platforms import Message

configure_logging()


class RecordingTransport:
    """Transport double recording every call.

    Scripted results are consumed first; once a script runs out the call
    succeeds.
    """

    def __init__(self):
        self.sent: List[Tuple[str, str, Dict[str, Any]]] = []
        self.opened: List[str] = []
        self.polled: List[str] = []
        self.send_results: List[OperationResult] = []
        self.open_results: List[OperationResult] = []
        self.status_results: List[OperationResult] = []
        self.handler = None
        self.started = False

    async def send_message(
        self, destination_id: str, text: str, **options: Any
    ) -> OperationResult:
        self.sent.append((destination_id, text, options))
        if self.send_results:
            return self.send_results.pop(0)
        return OperationResult.success(
            data={"ts": f"{len(self.sent)}.000100", "channel": destination_id}
        )

    async def open_conversation(self, user_id: str) -> OperationResult:
        self.opened.append(user_id)
        if self.open_results:
            return self.open_results.pop(0)
        return OperationResult.success(data=f"D{user_id}")

    async def conversation_status(self, conversation_id: str) -> OperationResult:
        self.polled.append(conversation_id)
        if self.status_results:
            return self.status_results.pop(0)
        return OperationResult.success(data={"id": conversation_id})

    def set_message_handler(self, handler) -> None:
        self.handler = handler

    async def start(self) -> None:
        self.started = True

    async def stop(self) -> None:
        self.started = False

    def texts_to(self, destination_id: str) -> List[str]:
        return [text for target, text, _ in self.sent if target == destination_id]


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def make_user():
    """Factory for creating User instances."""

    def _make(
        platform_id: str = "U123ABC",
        display_name: str = "Test User",
        real_name: str = "Test User",
        email: str = "test@example.com",
        **kwargs,
    ) -> User:
        return User(
            user_id=platform_id,
            platform_id=platform_id,
            display_name=display_name,
            real_name=real_name,
            email=email,
            **kwargs,
        )

    return _make


@pytest.fixture
def bot_user():
    return BotUser(
        user_id="U0BOT",
        platform_id="U0BOT",
        display_name="chatbot",
        bot_id="B0BOT",
        team_id="T0TEAM",
    )


@pytest.fixture
def make_message():
    """Factory for creating inbound Message instances."""

    def _make(
        text: str = "!ping",
        user_id: str = "U123ABC",
        channel_id: str = "C0GENERAL",
        ts: str = "1700000000.000100",
        bot_id: Optional[str] = None,
        subtype: Optional[str] = None,
    ) -> Message:
        return Message(
            text=text,
            user_id=user_id,
            channel_id=channel_id,
            ts=ts,
            bot_id=bot_id,
            subtype=subtype,
        )

    return _make


@pytest.fixture
def make_user_destination(make_user):
    """Factory for creating UserDestination instances."""

    def _make(
        platform_id: str = "U123ABC", channel_id: str = "C0GENERAL"
    ) -> UserDestination:
        return UserDestination(
            user=make_user(platform_id=platform_id),
            destination=Destination.for_channel(channel_id),
        )

    return _make


@pytest.fixture
def user_destination(make_user_destination):
    return make_user_destination()


@pytest.fixture
def fake_sleep():
    """Sleep double that returns immediately; delays are in ``await_args_list``."""
    return AsyncMock(return_value=None)

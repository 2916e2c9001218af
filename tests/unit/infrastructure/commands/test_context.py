"""Unit tests for CommandContext."""

import pytest

from chatbot.infrastructure.commands import CommandContext
from chatbot.infrastructure.operations import OperationResult
from chatbot.infrastructure.strategies import PolicySet, WaitPolicy

pytestmark = pytest.mark.unit


class TestCommandContext:
    """Test suite for CommandContext."""

    def test_identifiers(self, transport, user_destination):
        ctx = CommandContext(transport=transport, destination=user_destination)

        assert ctx.channel_id == "C0GENERAL"
        assert ctx.user_id == "U123ABC"

    @pytest.mark.asyncio
    async def test_respond_posts_to_origin(self, transport, user_destination):
        ctx = CommandContext(transport=transport, destination=user_destination)

        result = await ctx.respond("pong", thread_ts="1.0")

        assert result.is_success
        assert transport.sent == [("C0GENERAL", "pong", {"thread_ts": "1.0"})]

    @pytest.mark.asyncio
    async def test_respond_returns_failures(self, transport, user_destination):
        transport.send_results.append(
            OperationResult.permanent_error("no", "SLACK_NOT_IN_CHANNEL")
        )
        ctx = CommandContext(transport=transport, destination=user_destination)

        result = await ctx.respond("pong")

        assert not result.is_success
        assert result.error_code == "SLACK_NOT_IN_CHANNEL"

    def test_policy_for(self, transport, user_destination):
        override = WaitPolicy(max_attempts=9)
        ctx = CommandContext(
            transport=transport,
            destination=user_destination,
            policies=PolicySet(overrides={"sendmessage": override}),
        )

        assert ctx.policy_for("sendmessage") is override
        assert ctx.policy_for("other") == WaitPolicy()

    def test_policy_for_without_policies(self, transport, user_destination):
        ctx = CommandContext(transport=transport, destination=user_destination)

        assert ctx.policy_for("sendmessage") is None

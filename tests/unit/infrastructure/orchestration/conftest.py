"""Fixtures for orchestration tests."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from chatbot.infrastructure.commands import Argument, ArgumentType, CommandRegistry
from chatbot.infrastructure.events import EventDispatcher, names
from chatbot.infrastructure.operations import OperationResult
from chatbot.infrastructure.orchestration import CommandOrchestrator
from chatbot.infrastructure.strategies import Phase, Strategy
from chatbot.integrations.slack.strategies import SendChannelStrategy, SendUserStrategy

ALL_EVENTS = (
    names.CHATBOT_READY,
    names.CHATBOT_STOPPED,
    names.COMMAND_READY,
    names.COMMAND_EXECUTING,
    names.COMMAND_COMPLETED,
    names.COMMAND_FAILED,
    names.COMMAND_ABANDONED,
)


class GatePhase(Phase):
    """Blocks until the test releases it."""

    name = "gate"

    async def execute(self, strategy):
        gate = strategy.context.params["gate"]
        gate.started.set()
        await gate.release.wait()
        return OperationResult.success(data="opened")


class GatedStrategy(Strategy):
    name = "gated"
    phases = (GatePhase(),)


@pytest.fixture
def gate():
    return SimpleNamespace(started=asyncio.Event(), release=asyncio.Event())


@pytest.fixture
def registry(gate):
    registry = CommandRegistry("test")

    @registry.command(name="ping", description="Reply with pong")
    async def ping(command, ctx):
        return SendChannelStrategy(
            ctx.transport, ctx.destination, ctx.channel_id, "pong"
        )

    @registry.command(
        name="tell",
        args=[
            Argument("user", type=ArgumentType.USER, description="who to tell"),
            Argument("message", greedy=True, description="what to tell them"),
        ],
    )
    async def tell(command, ctx):
        args = command.arguments
        return SendUserStrategy(
            ctx.transport, ctx.destination, args["user"], args["message"]
        )

    @registry.command(name="note", description="Answer without a strategy")
    async def note(command, ctx):
        await ctx.respond("noted")

    @registry.command(name="boom")
    async def boom(command, ctx):
        raise RuntimeError("kaboom")

    @registry.command(name="slow")
    async def slow(command, ctx):
        return GatedStrategy(ctx.transport, ctx.destination, params={"gate": gate})

    return registry


@pytest.fixture
def identity(make_user):
    """Resolver double building a User for any id."""
    resolver = MagicMock()

    async def resolve(platform_id):
        return make_user(platform_id=platform_id, display_name=f"user-{platform_id}")

    resolver.resolve_user = AsyncMock(side_effect=resolve)
    return resolver


@pytest.fixture
def events():
    """Dispatcher recording every lifecycle event it publishes."""
    dispatcher = EventDispatcher()
    received = []
    for event_type in ALL_EVENTS:
        dispatcher.subscribe(event_type, received.append)
    dispatcher.received = received
    return dispatcher


class FakeClock:
    """Settable monotonic clock."""

    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_orchestrator(registry, transport, identity, bot_user, events, fake_sleep):
    """Factory for creating CommandOrchestrator instances."""

    def _make(**kwargs):
        kwargs.setdefault("sleep", fake_sleep)
        return CommandOrchestrator(
            registry=registry,
            transport=transport,
            identity=identity,
            bot_user=bot_user,
            events=events,
            **kwargs,
        )

    return _make

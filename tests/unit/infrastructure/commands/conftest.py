"""Fixtures for command framework tests."""

import pytest

from chatbot.infrastructure.commands import (
    Argument,
    ArgumentType,
    CommandDefinition,
    TextParser,
)


async def noop_handler(command, ctx):
    return None


@pytest.fixture
def make_definition():
    """Factory for creating CommandDefinition instances."""

    def _make(name="ping", args=None, aliases=None, interactive=False, **kwargs):
        return CommandDefinition(
            name=name,
            handler=kwargs.pop("handler", noop_handler),
            args=args or [],
            aliases=aliases or [],
            interactive=interactive,
            **kwargs,
        )

    return _make


@pytest.fixture
def tell_definition(make_definition):
    return make_definition(
        name="tell",
        description="Send a direct message",
        args=[
            Argument("user", type=ArgumentType.USER, description="who to tell"),
            Argument("message", greedy=True, description="what to tell them"),
        ],
        aliases=["dm"],
    )


@pytest.fixture
def make_parser(make_message, bot_user):
    """Factory building a TextParser for a text."""

    def _make(text, channel_id="C0GENERAL", prefix="!"):
        return TextParser(
            make_message(text=text, channel_id=channel_id),
            bot_user=bot_user,
            prefix=prefix,
        )

    return _make

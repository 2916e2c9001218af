"""Unit tests for the command registry."""

import pytest

from chatbot.infrastructure.commands import (
    Argument,
    CommandDefinition,
    CommandRegistry,
    InteractiveCommand,
    SimpleCommand,
)

pytestmark = pytest.mark.unit


async def handler(command, ctx):
    return None


class TestCommandDefinition:
    """Test suite for CommandDefinition."""

    def test_names_are_lower_cased(self):
        definition = CommandDefinition(name="Ping", handler=handler, aliases=["P"])

        assert definition.name == "ping"
        assert definition.selectors == ["ping", "p"]

    def test_greedy_argument_must_be_last(self):
        with pytest.raises(ValueError, match="Greedy argument"):
            CommandDefinition(
                name="tell",
                handler=handler,
                args=[Argument("message", greedy=True), Argument("user")],
            )

    def test_create_simple_command(self, user_destination):
        command = CommandDefinition(name="ping", handler=handler).create(
            user_destination
        )

        assert isinstance(command, SimpleCommand)
        assert command.get_user_destination() is user_destination

    def test_create_interactive_command(self, tell_definition, user_destination):
        command = tell_definition.create(user_destination)

        assert isinstance(command, InteractiveCommand)
        assert command.definition is tell_definition
        assert command.aliases == ("dm",)

    def test_usage(self, tell_definition):
        assert tell_definition.usage("!") == "!tell <user> <message...>"

    def test_usage_with_optional_and_flag(self):
        definition = CommandDefinition(
            name="help",
            handler=handler,
            args=[
                Argument("command", required=False),
                Argument("--verbose", flag=True, required=False),
            ],
        )

        assert definition.usage() == "help [command] [--verbose]"


class TestCommandRegistry:
    """Test suite for CommandRegistry."""

    def test_decorator_registers_command(self):
        registry = CommandRegistry("core")

        @registry.command(name="ping", description="Check", aliases=["hello"])
        async def ping(command, ctx):
            return None

        definition = registry.get_command("ping")
        assert definition.handler is ping
        assert definition.description == "Check"
        assert "ping" in registry
        assert len(registry) == 1

    def test_lookup_by_alias_is_case_insensitive(self, tell_definition):
        registry = CommandRegistry("core")
        registry.register(tell_definition)

        assert registry.get_command("DM") is tell_definition
        assert "Tell" in registry
        assert registry.get_command("unknown") is None
        assert 42 not in registry

    def test_duplicate_name_is_rejected(self):
        registry = CommandRegistry("core")
        registry.register(CommandDefinition(name="ping", handler=handler))

        with pytest.raises(ValueError, match="already registered"):
            registry.register(CommandDefinition(name="PING", handler=handler))

    def test_alias_clash_is_rejected(self, tell_definition):
        registry = CommandRegistry("core")
        registry.register(tell_definition)

        with pytest.raises(ValueError):
            registry.register(CommandDefinition(name="dm", handler=handler))

    def test_list_commands_in_registration_order(self):
        registry = CommandRegistry("core")
        for name in ("whoami", "ping", "help"):
            registry.register(CommandDefinition(name=name, handler=handler))

        assert [d.name for d in registry.list_commands()] == ["whoami", "ping", "help"]

    def test_merge(self, tell_definition):
        core = CommandRegistry("core")
        core.register(tell_definition)
        combined = CommandRegistry("chatbot")

        assert combined.merge(core) is combined
        assert combined.get_command("dm") is tell_definition

    def test_empty_registry(self):
        registry = CommandRegistry("empty")

        assert len(registry) == 0
        assert registry.list_commands() == []

"""Command registry for registration and discovery."""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from chatbot.infrastructure.commands.command import (
    AbstractCommand,
    InteractiveCommand,
    SimpleCommand,
)
from chatbot.infrastructure.commands.destination import UserDestination
from chatbot.infrastructure.commands.models import Argument
from chatbot.infrastructure.logging import get_module_logger

logger = get_module_logger()

# async def handler(command, ctx) -> Optional[Strategy]
CommandHandler = Callable[..., Awaitable[Any]]


@dataclass
class CommandDefinition:
    """Registered command with metadata for help and prompting.

    Attributes:
        name: Selector token
        handler: Coroutine function ``(command, ctx) -> Strategy | None``
        description: Human-readable description
        args: Argument definitions in positional order
        aliases: Alternative selectors
        interactive: Create an InteractiveCommand even without arguments
        examples: Usage examples shown by help
    """

    name: str
    handler: CommandHandler
    description: str = ""
    args: List[Argument] = field(default_factory=list)
    aliases: List[str] = field(default_factory=list)
    interactive: bool = False
    examples: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.name = self.name.lower()
        self.aliases = [alias.lower() for alias in self.aliases]
        positional = [arg for arg in self.args if not arg.flag]
        for arg in positional[:-1]:
            if arg.greedy:
                raise ValueError(
                    f"Greedy argument must be the last positional one: {arg.name}"
                )

    @property
    def selectors(self) -> List[str]:
        return [self.name, *self.aliases]

    def create(self, user_destination: Optional[UserDestination]) -> AbstractCommand:
        """Create a fresh command instance for ``user_destination``."""
        if self.interactive or self.args:
            return InteractiveCommand(user_destination, definition=self)
        return SimpleCommand(self.name, user_destination, definition=self)

    def usage(self, prefix: str = "") -> str:
        parts = [f"{prefix}{self.name}", *(arg.usage() for arg in self.args)]
        return " ".join(parts)


class CommandRegistry:
    """Registry for command registration and discovery.

    Attributes:
        namespace: Module namespace for the registry (e.g., "core")

    Example:
        registry = CommandRegistry("core")

        @registry.command(name="ping", description="Check that the bot is alive")
        async def ping(command, ctx):
            ...
    """

    def __init__(self, namespace: str):
        self.namespace = namespace
        self._commands: Dict[str, CommandDefinition] = {}
        self._aliases: Dict[str, str] = {}

    def command(
        self,
        name: str,
        description: str = "",
        args: Optional[List[Argument]] = None,
        aliases: Optional[List[str]] = None,
        interactive: bool = False,
        examples: Optional[List[str]] = None,
    ) -> Callable:
        """Decorator to register a command handler.

        Raises:
            ValueError: If the name or an alias is already registered
        """

        def decorator(handler: CommandHandler) -> CommandHandler:
            self.register(
                CommandDefinition(
                    name=name,
                    handler=handler,
                    description=description,
                    args=args or [],
                    aliases=aliases or [],
                    interactive=interactive,
                    examples=examples or [],
                )
            )
            return handler

        return decorator

    def register(self, definition: CommandDefinition) -> CommandDefinition:
        """Register a definition.

        Raises:
            ValueError: If the name or an alias is already registered
        """
        for selector in definition.selectors:
            if selector in self._commands or selector in self._aliases:
                raise ValueError(
                    f"Command '{selector}' already registered in {self.namespace}"
                )
        self._commands[definition.name] = definition
        for alias in definition.aliases:
            self._aliases[alias] = definition.name
        logger.debug(
            "registered_command",
            namespace=self.namespace,
            name=definition.name,
            aliases=definition.aliases,
        )
        return definition

    def get_command(self, name: str) -> Optional[CommandDefinition]:
        """Get a command by name or alias (case-insensitive)."""
        key = name.lower()
        return self._commands.get(key) or self._commands.get(
            self._aliases.get(key, "")
        )

    def list_commands(self) -> List[CommandDefinition]:
        """All registered commands in registration order."""
        return list(self._commands.values())

    def merge(self, other: "CommandRegistry") -> "CommandRegistry":
        """Register every command of ``other`` into this registry."""
        for definition in other.list_commands():
            self.register(definition)
        return self

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get_command(name) is not None

    def __len__(self) -> int:
        return len(self._commands)

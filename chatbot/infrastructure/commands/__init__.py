"""Command framework: parsing, command instances, registry and context."""

from chatbot.infrastructure.commands.command import (
    AbstractCommand,
    InteractiveCommand,
    SimpleCommand,
)
from chatbot.infrastructure.commands.context import CommandContext
from chatbot.infrastructure.commands.destination import (
    Destination,
    DestinationRegistry,
    DestinationType,
    UserDestination,
)
from chatbot.infrastructure.commands.exceptions import (
    CommandError,
    CommandParseError,
    ConstructionError,
    InvalidStateTransition,
)
from chatbot.infrastructure.commands.models import (
    Argument,
    ArgumentType,
    CommandState,
    MatchResult,
    ParseResult,
)
from chatbot.infrastructure.commands.parser import TextParser
from chatbot.infrastructure.commands.registry import (
    CommandDefinition,
    CommandHandler,
    CommandRegistry,
)

__all__ = [
    "AbstractCommand",
    "Argument",
    "ArgumentType",
    "CommandContext",
    "CommandDefinition",
    "CommandError",
    "CommandHandler",
    "CommandParseError",
    "CommandRegistry",
    "CommandState",
    "ConstructionError",
    "Destination",
    "DestinationRegistry",
    "DestinationType",
    "InteractiveCommand",
    "InvalidStateTransition",
    "MatchResult",
    "ParseResult",
    "SimpleCommand",
    "TextParser",
    "UserDestination",
]

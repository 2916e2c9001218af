"""Command instances and their lifecycle.

A command is one invocation of a registered operation, bound to the
UserDestination it was issued from. It accumulates parsed messages until it
is ready, then moves through execution to a terminal state:

    PENDING -> READY -> EXECUTING -> COMPLETED | FAILED
    PENDING | READY | EXECUTING -> ABANDONED
    READY -> COMPLETED (no remote side effects)
    READY -> FAILED (handler raised before attaching a strategy)
"""

import time
import uuid
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from chatbot.infrastructure.commands.destination import UserDestination
from chatbot.infrastructure.commands.exceptions import (
    CommandError,
    ConstructionError,
    InvalidStateTransition,
)
from chatbot.infrastructure.commands.models import (
    TERMINAL_COMMAND_STATES,
    Argument,
    CommandState,
    ParseResult,
)
from chatbot.infrastructure.logging import get_module_logger

if TYPE_CHECKING:
    from chatbot.infrastructure.commands.parser import TextParser
    from chatbot.infrastructure.commands.registry import CommandDefinition

logger = get_module_logger()

ALLOWED_TRANSITIONS = {
    CommandState.PENDING: frozenset({CommandState.READY, CommandState.ABANDONED}),
    CommandState.READY: frozenset(
        {
            CommandState.EXECUTING,
            CommandState.COMPLETED,
            CommandState.FAILED,
            CommandState.ABANDONED,
        }
    ),
    CommandState.EXECUTING: frozenset(
        {CommandState.COMPLETED, CommandState.FAILED, CommandState.ABANDONED}
    ),
}


class AbstractCommand(ABC):
    """Base class of command instances.

    Attributes:
        command: Selector token naming the command
        definition: Registry definition the command was created from
        correlation_id: Identifier carried by every log line and event of
            this command
        error: Failure or abandon reason, once terminal
    """

    def __init__(
        self,
        command: str,
        user_destination: Optional[UserDestination] = None,
        definition: Optional["CommandDefinition"] = None,
        initial_state: CommandState = CommandState.PENDING,
    ):
        self.command = command.lower()
        self.definition = definition
        self.correlation_id = str(uuid.uuid4())
        self.error: Optional[str] = None
        self.created_at = time.monotonic()
        self.updated_at = self.created_at
        self._user_destination = user_destination
        self._state = initial_state
        self._parsed: List["TextParser"] = []
        self._arguments: Dict[str, Any] = {}

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(command={self.command!r}, "
            f"state={self._state.name}, correlation_id={self.correlation_id!r})"
        )

    @property
    def state(self) -> CommandState:
        return self._state

    @property
    def parsed(self) -> Tuple["TextParser", ...]:
        """Ingested parsers in arrival order."""
        return tuple(self._parsed)

    @property
    def args(self) -> List[Argument]:
        return list(self.definition.args) if self.definition else []

    @property
    def aliases(self) -> Tuple[str, ...]:
        return tuple(self.definition.aliases) if self.definition else ()

    @property
    def bound_arguments(self) -> Dict[str, Any]:
        """Values supplied by ingested messages only."""
        return dict(self._arguments)

    @property
    def arguments(self) -> Dict[str, Any]:
        """Bound argument values, with defaults for unbound optional ones."""
        values = {
            arg.key: arg.default
            for arg in self.args
            if not arg.required and arg.key not in self._arguments
        }
        values.update(self._arguments)
        return values

    @property
    def is_retired(self) -> bool:
        return self._state in TERMINAL_COMMAND_STATES

    def matches_selector(self, token: str) -> bool:
        token = token.lower()
        return token == self.command or token in (a.lower() for a in self.aliases)

    def missing_arguments(self) -> List[Argument]:
        """Required positional arguments not bound yet, in declaration order."""
        return [
            arg
            for arg in self.args
            if arg.required and not arg.flag and arg.key not in self._arguments
        ]

    @abstractmethod
    def is_ready(self) -> bool:
        """True once the command is fully specified. Never reverts."""

    @abstractmethod
    def ingest_message(self, parser: "TextParser") -> ParseResult:
        """Analyze ``parser`` for this command and accumulate what it adds."""

    def get_user_destination(self) -> Optional[UserDestination]:
        return self._user_destination

    def set_user_destination(self, user_destination: UserDestination) -> None:
        if self.is_retired:
            raise CommandError(f"{self!r} is retired")
        self._user_destination = user_destination

    def mark_executing(self) -> None:
        self._transition(CommandState.EXECUTING)

    def mark_completed(self) -> None:
        self._transition(CommandState.COMPLETED)

    def mark_failed(self, error: str) -> None:
        self._transition(CommandState.FAILED)
        self.error = error

    def abandon(self, reason: str = "abandoned") -> None:
        self._transition(CommandState.ABANDONED)
        self.error = reason

    def _transition(self, target: CommandState) -> None:
        if target not in ALLOWED_TRANSITIONS.get(self._state, frozenset()):
            raise InvalidStateTransition(repr(self), self._state, target)
        logger.debug(
            "command_state_changed",
            command=self.command,
            correlation_id=self.correlation_id,
            previous=self._state.value,
            state=target.value,
        )
        self._state = target
        self.updated_at = time.monotonic()


class SimpleCommand(AbstractCommand):
    """Command that is ready as soon as it exists.

    It has a fixed selector and takes no arguments. Ingesting a message
    reports whether the message names it but accumulates nothing.
    """

    def __init__(
        self,
        method: str,
        user_destination: Optional[UserDestination] = None,
        definition: Optional["CommandDefinition"] = None,
    ):
        super().__init__(
            method,
            user_destination=user_destination,
            definition=definition,
            initial_state=CommandState.READY,
        )

    def is_ready(self) -> bool:
        return True

    def ingest_message(self, parser: "TextParser") -> ParseResult:
        return parser.analyze_for(self)


class InteractiveCommand(AbstractCommand):
    """Command assembled from one or more messages of a single user.

    Becomes ready once at least one message matched and every required
    argument is bound. Bound to its UserDestination for its whole life.

    Raises:
        ConstructionError: If built without a UserDestination or without a
            selector
    """

    def __init__(
        self,
        user_destination: Optional[UserDestination],
        definition: Optional["CommandDefinition"] = None,
        command: Optional[str] = None,
    ):
        if user_destination is None:
            raise ConstructionError(
                "InteractiveCommand requires a UserDestination at construction"
            )
        selector = command or (definition.name if definition else None)
        if not selector:
            raise ConstructionError("InteractiveCommand requires a command selector")
        super().__init__(
            selector, user_destination=user_destination, definition=definition
        )
        self._ready = False

    def is_ready(self) -> bool:
        return self._ready

    def ingest_message(self, parser: "TextParser") -> ParseResult:
        if self._ready or self.is_retired:
            return ParseResult.no_match()

        result = parser.analyze_for(self)
        if not result.matched:
            return result

        self._parsed.append(parser)
        self._arguments.update(result.arguments)
        self.updated_at = time.monotonic()
        if not self.missing_arguments():
            self._ready = True
            self._transition(CommandState.READY)
        return result

    def next_prompt(self) -> Optional[str]:
        """Question asking for the next missing argument, if any."""
        missing = self.missing_arguments()
        if not missing:
            return None
        arg = missing[0]
        hint = arg.description or arg.key
        return f"Please provide {hint} for `{self.command}`."

    def set_user_destination(self, user_destination: UserDestination) -> None:
        if user_destination != self._user_destination:
            raise CommandError(
                f"{self!r} is bound to {self._user_destination!r} and cannot be rebound"
            )

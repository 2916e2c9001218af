"""Command framework data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ArgumentType(Enum):
    """Supported argument types."""

    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    FLOAT = "float"
    EMAIL = "email"
    USER = "user"
    CHANNEL = "channel"


@dataclass
class Argument:
    """Command argument definition.

    Attributes:
        name: Argument name (e.g., "user" or "--silent")
        type: ArgumentType for validation and coercion
        required: Whether argument is required
        flag: True for flag arguments (e.g., --silent)
        greedy: Swallow every remaining token (positional only, must be last)
        default: Default value if not provided
        description: Human-readable description, also used as the prompt
            when the argument is missing
        choices: List of valid values

    Examples:
        Positional: Argument("user", type=ArgumentType.USER)
        Greedy: Argument("message", greedy=True)
        Flag: Argument("--silent", type=ArgumentType.BOOLEAN, flag=True)
    """

    name: str
    type: ArgumentType = ArgumentType.STRING
    required: bool = True
    flag: bool = False
    greedy: bool = False
    default: Any = None
    description: str = ""
    choices: Optional[List[Any]] = None

    def __post_init__(self):
        """Validate argument configuration."""
        if self.flag and not self.name.startswith("--"):
            raise ValueError(f"Flag arguments must start with '--': {self.name}")
        if self.flag and self.required:
            raise ValueError(f"Flag arguments cannot be required: {self.name}")
        if self.flag and self.greedy:
            raise ValueError(f"Flag arguments cannot be greedy: {self.name}")

    @property
    def key(self) -> str:
        """Name without the leading dashes of a flag."""
        return self.name[2:] if self.flag else self.name

    def usage(self) -> str:
        label = self.key + ("..." if self.greedy else "")
        if self.flag:
            return f"[{self.name}]"
        return f"<{label}>" if self.required else f"[{label}]"


class MatchResult(Enum):
    """Outcome of analyzing one message for one command."""

    MATCH = "match"
    PARTIAL = "partial"
    NO_MATCH = "no_match"


@dataclass(frozen=True)
class ParseResult:
    """What a message contributed to a command.

    Attributes:
        status: MATCH when the command is fully specified afterwards, PARTIAL
            when the message contributed but arguments are still missing,
            NO_MATCH when the message is irrelevant or invalid for it
        arguments: Argument values extracted from this message only
        error: Human-readable reason for a NO_MATCH on a recognized command
    """

    status: MatchResult
    arguments: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.status != MatchResult.NO_MATCH

    @property
    def complete(self) -> bool:
        return self.status == MatchResult.MATCH

    @classmethod
    def no_match(cls, error: Optional[str] = None) -> "ParseResult":
        return cls(status=MatchResult.NO_MATCH, error=error)


class CommandState(Enum):
    """Lifecycle states of a command instance."""

    PENDING = "pending"
    READY = "ready"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"
    ABANDONED = "abandoned"


TERMINAL_COMMAND_STATES = frozenset(
    {CommandState.COMPLETED, CommandState.FAILED, CommandState.ABANDONED}
)

"""Commands feature settings."""

import json
from typing import Annotated, Any, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import NoDecode

from chatbot.infrastructure.configuration.base import FeatureSettings


class CommandsSettings(FeatureSettings):
    """Configuration for command recognition and interactive prompting.

    Environment Variables:
        COMMAND_PREFIX: Prefix marking a message as a command (default: "!")
        COMMAND_CANCEL_WORDS: JSON list or comma separated words that abandon
            a pending interactive command
        INTERACTIVE_TIMEOUT_SECONDS: Idle time after which a pending
            interactive command is abandoned (default: 300)
        RESPOND_TO_UNKNOWN: Reply with a hint when the bot is addressed but no
            command matched (default: True)

    Example:
        ```python
        from chatbot.infrastructure.services import get_settings

        settings = get_settings()

        prefix = settings.commands.prefix
        ```
    """

    prefix: str = Field(
        default="!",
        alias="COMMAND_PREFIX",
        description="Prefix marking a message as a command",
    )
    cancel_words: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["cancel", "nevermind"],
        alias="COMMAND_CANCEL_WORDS",
        description="Words that abandon a pending interactive command",
    )
    interactive_timeout_seconds: float = Field(
        default=300.0,
        alias="INTERACTIVE_TIMEOUT_SECONDS",
        description="Idle seconds before a pending interactive command expires",
    )
    respond_to_unknown: bool = Field(
        default=True,
        alias="RESPOND_TO_UNKNOWN",
        description="Reply with a hint when addressed without a known command",
    )

    @field_validator("cancel_words", mode="before")
    @classmethod
    def _parse_cancel_words(cls, v: Optional[Any]) -> Any:
        """Parse COMMAND_CANCEL_WORDS from JSON list or comma separated string."""
        if v is None:
            return []
        if isinstance(v, (list, tuple)):
            return [str(word).strip().lower() for word in v if str(word).strip()]
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("["):
                try:
                    parsed = json.loads(s)
                except (json.JSONDecodeError, ValueError) as e:
                    raise ValueError(
                        f"Invalid COMMAND_CANCEL_WORDS JSON: {e} (value: {s[:80]}...)"
                    ) from e
                return [str(word).strip().lower() for word in parsed]
            return [word.strip().lower() for word in s.split(",") if word.strip()]
        raise ValueError("COMMAND_CANCEL_WORDS must be a JSON list or a string")

"""User identity models and enums.

Normalized identity records for chat participants. The engine only reads
them; they are produced and cached by the IdentityResolver.
"""

from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class IdentitySource(str, Enum):
    """Source of identity information."""

    SLACK = "slack"
    SYSTEM = "system"


class User(BaseModel):
    """Normalized chat participant identity."""

    model_config = ConfigDict(use_enum_values=False, frozen=True)

    user_id: str = Field(..., description="Canonical user identifier")
    platform_id: str = Field(..., description="Platform-specific ID (Slack user ID)")
    display_name: str = Field(default="", description="User's display name")
    real_name: str = Field(default="", description="User's full name")
    email: str = Field(default="", description="User's email address")
    source: IdentitySource = Field(
        default=IdentitySource.SLACK, description="Source of identity information"
    )
    is_bot: bool = Field(default=False, description="Whether the user is a bot")
    team_id: str = Field(default="", description="Workspace/team ID")
    metadata: Dict[str, Any] = Field(
        default_factory=dict, description="Platform-specific metadata"
    )

    @property
    def name(self) -> str:
        """Best human-readable name available."""
        return self.display_name or self.real_name or self.platform_id


class BotUser(User):
    """The identity the bot itself acts as.

    Used to filter out self-authored messages and to recognize when a
    message addresses the bot through a mention.
    """

    bot_id: str = Field(default="", description="Slack bot ID (B...)")
    is_bot: bool = True

    @property
    def mention(self) -> str:
        """Mention markup addressing the bot, e.g. ``<@U0BOT>``."""
        return f"<@{self.platform_id}>"

    def is_self(self, user_id: str = "", bot_id: str = "") -> bool:
        """True when a message author (user or bot id) is this bot."""
        return bool(
            (user_id and user_id == self.platform_id)
            or (bot_id and self.bot_id and bot_id == self.bot_id)
        )

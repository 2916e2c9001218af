"""Identity module - user identity resolution."""

from chatbot.infrastructure.identity.models import BotUser, IdentitySource, User
from chatbot.infrastructure.identity.resolver import (
    IdentityResolutionError,
    IdentityResolver,
)

__all__ = [
    "BotUser",
    "IdentityResolutionError",
    "IdentityResolver",
    "IdentitySource",
    "User",
]

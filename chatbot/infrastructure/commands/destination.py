"""Delivery targets of command effects.

A Destination names where effects go (a user, a channel or a direct
conversation). A UserDestination ties a Destination to the User acting on
it; it is the unit commands are scoped to.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple

from chatbot.infrastructure.identity.models import User


class DestinationType(Enum):
    USER = "user"
    CHANNEL = "channel"
    CONVERSATION = "conversation"


@dataclass(frozen=True)
class Destination:
    """Platform-specific addressable target."""

    type: DestinationType
    id: str

    @classmethod
    def for_channel(cls, channel_id: str) -> "Destination":
        """Classify a Slack id: D... is a direct conversation, U.../W... a
        user, anything else (C..., G...) a channel."""
        prefix = channel_id[:1].upper()
        if prefix == "D":
            return cls(DestinationType.CONVERSATION, channel_id)
        if prefix in ("U", "W"):
            return cls(DestinationType.USER, channel_id)
        return cls(DestinationType.CHANNEL, channel_id)

    @property
    def is_direct(self) -> bool:
        return self.type == DestinationType.CONVERSATION


UserDestinationKey = Tuple[str, str]


@dataclass(frozen=True)
class UserDestination:
    """A user acting within one destination."""

    user: User
    destination: Destination

    @property
    def key(self) -> UserDestinationKey:
        return (self.user.platform_id, self.destination.id)

    def __hash__(self) -> int:
        return hash(self.key)


class DestinationRegistry:
    """Owns the UserDestination instances shared by commands and strategies.

    Lookups are plain dictionary reads performed on the event loop, so any
    number of concurrent tasks may read it. Identities are never mutated
    here; a changed User yields a fresh UserDestination.
    """

    def __init__(self):
        self._entries: Dict[UserDestinationKey, UserDestination] = {}

    def get_or_create(self, user: User, destination: Destination) -> UserDestination:
        key = (user.platform_id, destination.id)
        existing = self._entries.get(key)
        if existing is not None and existing.user == user:
            return existing
        entry = UserDestination(user=user, destination=destination)
        self._entries[key] = entry
        return entry

    def get(self, key: UserDestinationKey) -> Optional[UserDestination]:
        return self._entries.get(key)

    def remove(self, key: UserDestinationKey) -> Optional[UserDestination]:
        return self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[UserDestination]:
        return iter(list(self._entries.values()))

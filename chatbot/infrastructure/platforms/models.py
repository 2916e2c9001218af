"""Platform-agnostic inbound message model.

Transports translate their native events into Message instances; the engine
never sees platform payloads.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Message:
    """One inbound chat message.

    Attributes:
        text: Raw message text
        user_id: Platform id of the sender
        channel_id: Conversation the message arrived on
        ts: Platform timestamp string (e.g. "1700000000.000100")
        thread_ts: Parent message timestamp when posted in a thread
        bot_id: Set when the message was posted by a bot integration
        subtype: Platform message subtype (edits, joins, bot messages)
        team_id: Workspace the message belongs to
        metadata: Platform-specific extras not normalized
    """

    text: str
    user_id: str
    channel_id: str
    ts: str = ""
    thread_ts: Optional[str] = None
    bot_id: Optional[str] = None
    subtype: Optional[str] = None
    team_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def is_direct(self) -> bool:
        """True for direct message conversations (Slack IM ids start with D)."""
        return self.channel_id.startswith("D")

    @property
    def is_bot_message(self) -> bool:
        return bool(self.bot_id) or self.subtype == "bot_message"

    @property
    def timestamp(self) -> float:
        try:
            return float(self.ts)
        except (TypeError, ValueError):
            return 0.0

    @classmethod
    def from_slack_event(cls, event: Dict[str, Any]) -> "Message":
        """Build a Message from a Slack ``message`` event payload."""
        return cls(
            text=event.get("text") or "",
            user_id=event.get("user") or "",
            channel_id=event.get("channel") or "",
            ts=event.get("ts") or "",
            thread_ts=event.get("thread_ts"),
            bot_id=event.get("bot_id"),
            subtype=event.get("subtype"),
            team_id=event.get("team"),
            metadata={"channel_type": event.get("channel_type", "")},
        )

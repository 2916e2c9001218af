"""Event models for the lifecycle event system."""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Dict
from uuid import uuid4


@dataclass
class Event:
    """Immutable record of a lifecycle milestone.

    Events announce things like "ready to accept commands" or "strategy
    aborted" to unrelated subsystems. Publishers never depend on subscriber
    behavior.
    """

    event_type: str
    """The type of event (e.g., 'command.completed')."""

    timestamp: datetime = field(default_factory=datetime.now)
    """When the event occurred."""

    correlation_id: str = field(default_factory=lambda: str(uuid4()))
    """Identifier tying the event to the command that caused it."""

    user_id: str = ""
    """Platform id of the user on whose behalf the event happened."""

    metadata: Dict[str, Any] = field(default_factory=dict)
    """Custom metadata for this event type."""

    def to_dict(self) -> Dict[str, Any]:
        """Serialize event to a dictionary with an ISO format timestamp."""
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Event":
        """Deserialize event from dictionary.

        Raises:
            ValueError: If required fields are missing or invalid.
        """
        try:
            timestamp = data.get("timestamp") or datetime.now()
            if isinstance(timestamp, str):
                timestamp = datetime.fromisoformat(timestamp)

            return cls(
                event_type=data["event_type"],
                timestamp=timestamp,
                correlation_id=str(data.get("correlation_id") or uuid4()),
                user_id=data.get("user_id", ""),
                metadata=data.get("metadata", {}),
            )
        except (KeyError, ValueError) as e:
            raise ValueError(f"Invalid event data: {e}") from e

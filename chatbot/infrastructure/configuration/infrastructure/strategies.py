"""Strategy engine settings."""

import json
from typing import Any, Dict, Optional

from pydantic import Field, field_validator

from chatbot.infrastructure.configuration.base import InfrastructureSettings


class StrategySettings(InfrastructureSettings):
    """Wait and retry policy for strategy phases.

    Phases reporting a pending remote precondition or a transient error are
    re-polled with exponential backoff until either bound is reached:

        delay(attempt) = min(base_delay * (2 ^ (attempt - 1)), max_delay)

    Environment Variables:
        STRATEGY_MAX_ATTEMPTS: Maximum invocations of one phase (default: 5)
        STRATEGY_BASE_DELAY_SECONDS: First re-poll delay (default: 0.5s)
        STRATEGY_MAX_DELAY_SECONDS: Backoff cap (default: 8s)
        STRATEGY_MAX_WAIT_SECONDS: Total wait budget of one phase (default: 30s)
        STRATEGY_PHASE_POLICIES: JSON mapping of phase name to overrides

    Phase Policies (STRATEGY_PHASE_POLICIES):
        {
            "waitconversation": {"max_attempts": 10, "max_wait_seconds": 60},
            "sendmessage": {"max_attempts": 3}
        }

    Example:
        ```python
        from chatbot.infrastructure.services import get_settings
        from chatbot.infrastructure.strategies import PolicySet

        policies = PolicySet.from_settings(get_settings().strategies)
        ```
    """

    max_attempts: int = Field(
        default=5,
        alias="STRATEGY_MAX_ATTEMPTS",
        description="Maximum invocations of a waiting phase",
    )
    base_delay_seconds: float = Field(
        default=0.5,
        alias="STRATEGY_BASE_DELAY_SECONDS",
        description="Base delay for exponential backoff (seconds)",
    )
    max_delay_seconds: float = Field(
        default=8.0,
        alias="STRATEGY_MAX_DELAY_SECONDS",
        description="Maximum delay between re-polls (seconds)",
    )
    max_wait_seconds: float = Field(
        default=30.0,
        alias="STRATEGY_MAX_WAIT_SECONDS",
        description="Total time a phase may spend waiting (seconds)",
    )
    phase_policies: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict,
        alias="STRATEGY_PHASE_POLICIES",
        description="Per-phase overrides of the default policy",
    )

    @field_validator("phase_policies", mode="before")
    @classmethod
    def _parse_phase_policies(cls, v: Optional[Any]) -> Any:
        """Parse STRATEGY_PHASE_POLICIES from JSON string or dict."""
        if v is None:
            return {}
        if isinstance(v, dict):
            return v
        if isinstance(v, str):
            s = v.strip()
            if (s.startswith("'") and s.endswith("'")) or (
                s.startswith('"') and s.endswith('"')
            ):
                s = s[1:-1]
            try:
                return json.loads(s) if s else {}
            except (json.JSONDecodeError, ValueError) as e:
                raise ValueError(
                    f"Invalid STRATEGY_PHASE_POLICIES JSON: {e} (value: {s[:80]}...)"
                ) from e
        raise ValueError("STRATEGY_PHASE_POLICIES must be a JSON string or a mapping")

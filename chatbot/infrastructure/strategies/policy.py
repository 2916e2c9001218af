"""Wait and retry policies for strategy phases."""

from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Mapping, Optional

from chatbot.infrastructure.configuration import StrategySettings


@dataclass(frozen=True)
class WaitPolicy:
    """Bounds on re-polling a phase that is pending or transiently failing.

    Attributes:
        max_attempts: Maximum invocations of the phase
        base_delay_seconds: Delay before the second invocation
        max_delay_seconds: Cap for the exponential backoff
        max_wait_seconds: Total time the phase may spend waiting

    Example:
        policy = WaitPolicy(max_attempts=3, base_delay_seconds=1)
        policy.delay_for(1)  # 1.0
        policy.delay_for(2)  # 2.0
    """

    max_attempts: int = 5
    base_delay_seconds: float = 0.5
    max_delay_seconds: float = 8.0
    max_wait_seconds: float = 30.0

    def __post_init__(self) -> None:
        """Validate policy values."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay_seconds < 0:
            raise ValueError("base_delay_seconds must not be negative")
        if self.max_delay_seconds < self.base_delay_seconds:
            raise ValueError("max_delay_seconds must be >= base_delay_seconds")
        if self.max_wait_seconds < 0:
            raise ValueError("max_wait_seconds must not be negative")

    def delay_for(self, attempt: int, retry_after: Optional[float] = None) -> float:
        """Delay before re-invoking a phase that has been invoked ``attempt`` times.

        A platform ``retry_after`` hint lengthens the delay, still capped at
        ``max_delay_seconds``.
        """
        delay = self.base_delay_seconds * (2 ** max(attempt - 1, 0))
        if retry_after:
            delay = max(delay, float(retry_after))
        return min(delay, self.max_delay_seconds)


@dataclass(frozen=True)
class PolicySet:
    """Default WaitPolicy plus per-phase overrides."""

    default: WaitPolicy = field(default_factory=WaitPolicy)
    overrides: Mapping[str, WaitPolicy] = field(default_factory=dict)

    def for_phase(self, phase: str) -> WaitPolicy:
        return self.overrides.get(phase, self.default)

    @classmethod
    def from_mapping(
        cls, default: WaitPolicy, phase_policies: Mapping[str, Mapping[str, Any]]
    ) -> "PolicySet":
        """Build overrides as partial replacements of ``default``.

        Raises:
            ValueError: If an override names an unknown policy field
        """
        allowed = {f.name for f in fields(WaitPolicy)}
        overrides: Dict[str, WaitPolicy] = {}
        for phase, values in phase_policies.items():
            unknown = set(values) - allowed
            if unknown:
                raise ValueError(
                    f"Unknown policy fields for phase '{phase}': {sorted(unknown)}"
                )
            overrides[phase] = replace(default, **values)
        return cls(default=default, overrides=overrides)

    @classmethod
    def from_settings(cls, settings: StrategySettings) -> "PolicySet":
        default = WaitPolicy(
            max_attempts=settings.max_attempts,
            base_delay_seconds=settings.base_delay_seconds,
            max_delay_seconds=settings.max_delay_seconds,
            max_wait_seconds=settings.max_wait_seconds,
        )
        return cls.from_mapping(default, settings.phase_policies)

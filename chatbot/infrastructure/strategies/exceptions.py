"""Strategy engine exceptions."""

from typing import Optional

from chatbot.infrastructure.operations import OperationResult


class StrategyError(Exception):
    """Base class for strategy failures."""


class RemoteOperationError(StrategyError):
    """The platform rejected the operation of a phase.

    Attributes:
        phase: Name of the phase that failed
        result: The failing OperationResult
    """

    def __init__(
        self, phase: str, result: OperationResult, message: Optional[str] = None
    ):
        self.phase = phase
        self.result = result
        super().__init__(message or f"Phase '{phase}' failed: {result.message}")


class PolicyExhausted(RemoteOperationError):
    """A waiting phase ran out of attempts or of wait budget.

    Attributes:
        attempts: Invocations of the phase
        waited: Seconds spent waiting between invocations
    """

    def __init__(
        self, phase: str, result: OperationResult, attempts: int, waited: float
    ):
        self.attempts = attempts
        self.waited = waited
        super().__init__(
            phase,
            result,
            f"Phase '{phase}' still not satisfied after {attempts} attempts "
            f"({waited:.1f}s waited): {result.message}",
        )


class PhaseOrderError(StrategyError):
    """A phase asked for the artifact of a phase that has not completed."""

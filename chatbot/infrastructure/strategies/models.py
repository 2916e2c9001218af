"""Strategy engine data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from chatbot.infrastructure.commands.destination import UserDestination
from chatbot.infrastructure.operations import OperationResult, OperationStatus
from chatbot.infrastructure.strategies.exceptions import PhaseOrderError


class StrategyState(Enum):
    """Lifecycle states of a strategy.

    Values:
        PENDING: No phase invoked yet
        RUNNING: A phase is executing, or the next one is due
        WAITING: The current phase must be re-polled
        COMPLETED: Every phase succeeded, in order
        ABORTED: A phase failed or exhausted its wait policy
        CANCELLED: Abandoned by its owner; no further phases run
    """

    PENDING = "pending"
    RUNNING = "running"
    WAITING = "waiting"
    COMPLETED = "completed"
    ABORTED = "aborted"
    CANCELLED = "cancelled"


TERMINAL_STRATEGY_STATES = frozenset(
    {StrategyState.COMPLETED, StrategyState.ABORTED, StrategyState.CANCELLED}
)


@dataclass
class PhaseRecord:
    """Execution history of one phase."""

    name: str
    attempts: int = 0
    status: Optional[OperationStatus] = None
    result: Optional[OperationResult] = None
    waited: float = 0.0
    started_at: Optional[float] = None
    finished_at: Optional[float] = None

    @property
    def completed(self) -> bool:
        return self.status == OperationStatus.SUCCESS


@dataclass
class StrategyContext:
    """State shared by the phases of one strategy.

    Artifacts flow forward only: a phase may read what an earlier phase
    produced, never what a later one will.
    """

    destination: UserDestination
    params: Dict[str, Any] = field(default_factory=dict)
    artifacts: Dict[str, Any] = field(default_factory=dict)
    _completed: List[str] = field(default_factory=list, repr=False)

    def has_artifact(self, phase: str) -> bool:
        return phase in self._completed

    def artifact(self, phase: str) -> Any:
        """Artifact of a completed phase.

        Raises:
            PhaseOrderError: If ``phase`` has not completed
        """
        if phase not in self._completed:
            raise PhaseOrderError(f"Phase '{phase}' has not completed yet")
        return self.artifacts.get(phase)

    def record(self, phase: str, data: Any) -> None:
        self.artifacts[phase] = data
        if phase not in self._completed:
            self._completed.append(phase)

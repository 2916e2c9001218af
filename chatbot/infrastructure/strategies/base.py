"""Phased execution of a command's remote side effects.

A Strategy is an ordered, fixed list of named phases. Each phase performs
one remote operation and reports an OperationResult:

- SUCCESS: its artifact is recorded and the next phase becomes current
- PENDING or TRANSIENT_ERROR: the same phase is re-polled under its
  WaitPolicy; exhausting the policy aborts with PolicyExhausted
- anything else, or an exception: abort with RemoteOperationError

Completed phases are never re-run. Partial effects committed by completed
phases are not rolled back.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from chatbot.infrastructure.commands.destination import UserDestination
from chatbot.infrastructure.commands.exceptions import InvalidStateTransition
from chatbot.infrastructure.events import EventDispatcher, names
from chatbot.infrastructure.logging import get_module_logger
from chatbot.infrastructure.operations import OperationResult
from chatbot.infrastructure.platforms.transport import Transport
from chatbot.infrastructure.strategies.exceptions import (
    PolicyExhausted,
    RemoteOperationError,
    StrategyError,
)
from chatbot.infrastructure.strategies.models import (
    TERMINAL_STRATEGY_STATES,
    PhaseRecord,
    StrategyContext,
    StrategyState,
)
from chatbot.infrastructure.strategies.policy import PolicySet, WaitPolicy

logger = get_module_logger()

Sleep = Callable[[float], Awaitable[Any]]


class Phase(ABC):
    """One named step of remote work.

    Phases are stateless; everything they need comes from the strategy
    (transport, context, earlier artifacts).
    """

    name: str = ""

    @abstractmethod
    async def execute(self, strategy: "Strategy") -> OperationResult:
        """Perform the phase's remote operation once."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"


class Strategy(ABC):
    """Ordered plan of phases fulfilling a command's remote effects.

    Subclasses declare ``name`` and ``phases``.

    Args:
        transport: Transport the phases act through
        destination: UserDestination the effects belong to
        params: Strategy parameters read by phases (e.g. text to send)
        policies: Wait policies per phase name
        events: Dispatcher receiving lifecycle events
        sleep: Coroutine used to wait between re-polls
        correlation_id: Correlation id of the owning command

    Example:
        strategy = SendUserStrategy(transport, destination, "U123", "hi")
        state = await strategy.run()
        if state == StrategyState.ABORTED:
            logger.warning("delivery_failed", error=str(strategy.error))
    """

    name: str = "strategy"
    phases: Tuple[Phase, ...] = ()

    def __init__(
        self,
        transport: Transport,
        destination: UserDestination,
        params: Optional[Dict[str, Any]] = None,
        policies: Optional[PolicySet] = None,
        events: Optional[EventDispatcher] = None,
        sleep: Sleep = asyncio.sleep,
        correlation_id: Optional[str] = None,
    ):
        if not self.phases:
            raise StrategyError(f"{self.__class__.__name__} declares no phases")
        self.transport = transport
        self.context = StrategyContext(
            destination=destination, params=dict(params or {})
        )
        self._policies = policies
        self.correlation_id = correlation_id
        self.error: Optional[StrategyError] = None
        self._events = events
        self._sleep = sleep
        self._state = StrategyState.PENDING
        self._index = 0
        self._records: List[PhaseRecord] = [
            PhaseRecord(name=p.name) for p in self.phases
        ]
        self._last_result: Optional[OperationResult] = None
        self._log = logger.bind(strategy=self.name, correlation_id=correlation_id)

    def __repr__(self) -> str:
        phase = self.current_phase
        return (
            f"{self.__class__.__name__}(state={self._state.name}, "
            f"phase={phase.name if phase else None})"
        )

    @property
    def policies(self) -> PolicySet:
        return self._policies or PolicySet()

    def bind(
        self,
        events: Optional[EventDispatcher] = None,
        sleep: Optional[Sleep] = None,
        correlation_id: Optional[str] = None,
        policies: Optional[PolicySet] = None,
    ) -> "Strategy":
        """Attach runtime collaborators the handler building the strategy
        did not know about. Explicit constructor policies are kept."""
        if events is not None:
            self._events = events
        if sleep is not None:
            self._sleep = sleep
        if correlation_id is not None:
            self.correlation_id = correlation_id
            self._log = logger.bind(strategy=self.name, correlation_id=correlation_id)
        if policies is not None and self._policies is None:
            self._policies = policies
        return self

    @property
    def state(self) -> StrategyState:
        return self._state

    @property
    def index(self) -> int:
        return self._index

    @property
    def phase_names(self) -> Tuple[str, ...]:
        return tuple(p.name for p in self.phases)

    @property
    def current_phase(self) -> Optional[Phase]:
        if self._index < len(self.phases):
            return self.phases[self._index]
        return None

    @property
    def records(self) -> Tuple[PhaseRecord, ...]:
        return tuple(self._records)

    @property
    def destination(self) -> UserDestination:
        return self.context.destination

    @property
    def is_terminal(self) -> bool:
        return self._state in TERMINAL_STRATEGY_STATES

    def policy_for(self, phase: Phase) -> WaitPolicy:
        return self.policies.for_phase(phase.name)

    async def advance(self) -> StrategyState:
        """Invoke the current phase exactly once and apply its outcome.

        Returns:
            The state after the invocation

        Raises:
            InvalidStateTransition: If the strategy is already terminal
        """
        if self.is_terminal:
            raise InvalidStateTransition(
                repr(self), self._state, StrategyState.RUNNING
            )

        phase = self.phases[self._index]
        record = self._records[self._index]
        if record.started_at is None:
            record.started_at = time.monotonic()
        record.attempts += 1
        self._state = StrategyState.RUNNING
        log = self._log.bind(phase=phase.name, attempt=record.attempts)
        log.debug("phase_invoked")

        try:
            result = await phase.execute(self)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            if self._state == StrategyState.CANCELLED:
                log.info("phase_result_discarded", error=str(exc))
                return self._state
            log.exception("phase_raised", error=str(exc))
            result = OperationResult.permanent_error(
                f"{type(exc).__name__}: {exc}", error_code="PHASE_EXCEPTION"
            )
            record.status = result.status
            record.result = result
            self._abort(RemoteOperationError(phase.name, result))
            return self._state

        if self._state == StrategyState.CANCELLED:
            log.info("phase_result_discarded", status=result.status.value)
            return self._state

        record.status = result.status
        record.result = result
        self._last_result = result

        if result.is_success:
            record.finished_at = time.monotonic()
            self.context.record(phase.name, result.data)
            self._index += 1
            log.info("phase_completed")
            self._publish(
                names.STRATEGY_PHASE_COMPLETED,
                phase=phase.name,
                attempts=record.attempts,
            )
            if self._index == len(self.phases):
                self._state = StrategyState.COMPLETED
                self._log.info("strategy_completed")
                self._publish(names.STRATEGY_COMPLETED)
            return self._state

        if result.is_retryable:
            policy = self.policy_for(phase)
            if (
                record.attempts >= policy.max_attempts
                or record.waited >= policy.max_wait_seconds
            ):
                self._abort(
                    PolicyExhausted(phase.name, result, record.attempts, record.waited)
                )
            else:
                self._state = StrategyState.WAITING
                log.info(
                    "phase_waiting",
                    status=result.status.value,
                    message=result.message,
                )
            return self._state

        self._abort(RemoteOperationError(phase.name, result))
        return self._state

    async def run(self) -> StrategyState:
        """Advance until terminal, waiting between re-polls.

        Returns:
            The final state
        """
        while not self.is_terminal:
            state = await self.advance()
            if state != StrategyState.WAITING:
                continue
            phase = self.phases[self._index]
            record = self._records[self._index]
            policy = self.policy_for(phase)
            retry_after = self._last_result.retry_after if self._last_result else None
            delay = policy.delay_for(record.attempts, retry_after)
            delay = min(delay, max(policy.max_wait_seconds - record.waited, 0.0))
            record.waited += delay
            await self._sleep(delay)
        return self._state

    def cancel(self) -> bool:
        """Stop scheduling phases. A result still in flight will be discarded.

        Returns:
            False if the strategy had already finished
        """
        if self.is_terminal:
            return False
        self._state = StrategyState.CANCELLED
        self._log.info("strategy_cancelled", phase=self._records[self._index].name)
        return True

    def _abort(self, error: StrategyError) -> None:
        if self._state == StrategyState.ABORTED:
            return
        self._state = StrategyState.ABORTED
        self.error = error
        phase = getattr(error, "phase", None)
        self._log.warning("strategy_aborted", phase=phase, error=str(error))
        self._publish(names.STRATEGY_ABORTED, phase=phase, error=str(error))

    def _publish(self, event_type: str, **metadata: Any) -> None:
        if self._events is None:
            return
        self._events.publish(
            event_type,
            correlation_id=self.correlation_id,
            user_id=self.destination.user.platform_id,
            strategy=self.name,
            **metadata,
        )

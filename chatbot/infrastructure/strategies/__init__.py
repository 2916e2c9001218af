"""Strategy engine: phased execution of remote side effects with wait policies."""

from chatbot.infrastructure.strategies.base import Phase, Sleep, Strategy
from chatbot.infrastructure.strategies.exceptions import (
    PhaseOrderError,
    PolicyExhausted,
    RemoteOperationError,
    StrategyError,
)
from chatbot.infrastructure.strategies.models import (
    PhaseRecord,
    StrategyContext,
    StrategyState,
)
from chatbot.infrastructure.strategies.policy import PolicySet, WaitPolicy

__all__ = [
    "Phase",
    "PhaseOrderError",
    "PhaseRecord",
    "PolicyExhausted",
    "PolicySet",
    "RemoteOperationError",
    "Sleep",
    "Strategy",
    "StrategyContext",
    "StrategyError",
    "StrategyState",
    "WaitPolicy",
]

"""Orchestration: per-destination message queues and command execution."""

from chatbot.infrastructure.orchestration.orchestrator import (
    CommandOrchestrator,
    StrategyOutcome,
)
from chatbot.infrastructure.orchestration.worker import DestinationWorker, WorkerKey

__all__ = [
    "CommandOrchestrator",
    "DestinationWorker",
    "StrategyOutcome",
    "WorkerKey",
]

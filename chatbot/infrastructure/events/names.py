"""Lifecycle event names published by the engine."""

CHATBOT_READY = "chatbot.ready"
CHATBOT_STOPPED = "chatbot.stopped"

COMMAND_READY = "command.ready"
COMMAND_EXECUTING = "command.executing"
COMMAND_COMPLETED = "command.completed"
COMMAND_FAILED = "command.failed"
COMMAND_ABANDONED = "command.abandoned"

STRATEGY_PHASE_COMPLETED = "strategy.phase.completed"
STRATEGY_COMPLETED = "strategy.completed"
STRATEGY_ABORTED = "strategy.aborted"

"""Request context binding for structured logging.

Binds a correlation id (and any extra metadata) to every log entry emitted
while a command or strategy is being processed.

Usage:
    from chatbot.infrastructure.logging import bind_request_context

    with bind_request_context(correlation_id=command.correlation_id, user_id="U123"):
        logger.info("command_executing")
"""

import uuid
from contextlib import contextmanager
from typing import Any, Generator, Optional

import structlog


@contextmanager
def bind_request_context(
    correlation_id: Optional[str] = None,
    user_id: Optional[str] = None,
    channel_id: Optional[str] = None,
    **extra_context: Any,
) -> Generator[str, None, None]:
    """Bind request-scoped context to all logs within the block.

    Args:
        correlation_id: Identifier tying together every log line of one
            command. Generated when omitted.
        user_id: Chat user the request originated from.
        channel_id: Channel the request arrived on.
        **extra_context: Additional key-value pairs.

    Yields:
        The correlation id in effect.
    """
    context: dict[str, Any] = {"correlation_id": correlation_id or str(uuid.uuid4())}
    if user_id is not None:
        context["user_id"] = user_id
    if channel_id is not None:
        context["channel_id"] = channel_id
    context.update(extra_context)

    structlog.contextvars.bind_contextvars(**context)
    try:
        yield context["correlation_id"]
    finally:
        structlog.contextvars.unbind_contextvars(*context.keys())


def get_correlation_id() -> Optional[str]:
    """Get the current correlation id from the logging context."""
    return structlog.contextvars.get_contextvars().get("correlation_id")


def set_correlation_id(correlation_id: str) -> None:
    """Replace the correlation id of the enclosing request context.

    The enclosing ``bind_request_context`` block still unbinds it on exit.
    """
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)

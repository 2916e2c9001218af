"""Structlog configuration and logger setup.

Configures structlog once per process with callsite context, exception
formatting and environment-aware rendering (console in development, JSON in
production).

Usage:
    from chatbot.infrastructure.logging import configure_logging, get_module_logger

    configure_logging()

    logger = get_module_logger()
    logger.info("event_name", key="value")
"""

import inspect
import logging
import sys
from typing import Any, Callable, Optional, Sequence

import structlog
from structlog.stdlib import BoundLogger

from chatbot.infrastructure.logging.formatters import mask_sensitive_data

Processor = Callable[[Any, str, dict[str, Any]], dict[str, Any]]


def _is_test_environment() -> bool:
    """Detect if running under pytest."""
    return "pytest" in sys.modules


def _configure_for_tests() -> BoundLogger:
    logging.root.setLevel(logging.CRITICAL + 1)
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", level=logging.CRITICAL + 1, force=True)
    return structlog.stdlib.get_logger()


def configure_logging(
    log_level: Optional[str] = None,
    is_production: Optional[bool] = None,
    extra_processors: Optional[Sequence[Processor]] = None,
) -> BoundLogger:
    """Configure structured logging.

    Args:
        log_level: Override for the log level. Defaults to settings.LOG_LEVEL.
        is_production: Override for production mode, which selects JSON
            output over the console renderer. Defaults to settings.is_production.
        extra_processors: Processors inserted before the renderer, for
            example ``add_app_info("chatbot", __version__)``.

    Returns:
        Configured logger instance
    """
    if _is_test_environment():
        return _configure_for_tests()

    if log_level is None or is_production is None:
        from chatbot.infrastructure.services.providers import get_settings

        settings = get_settings()
        log_level = log_level or settings.LOG_LEVEL
        if is_production is None:
            is_production = settings.is_production

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.LINENO,
                structlog.processors.CallsiteParameter.FUNC_NAME,
            ]
        ),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        mask_sensitive_data(),
    ]
    processors.extend(extra_processors or [])

    if is_production:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper(), logging.INFO),
        force=True,
    )

    return structlog.stdlib.get_logger()


def get_module_logger() -> BoundLogger:
    """Get a logger for the calling module.

    Binds ``component`` (last dotted part) and ``module_path`` context.

    Example:
        # In chatbot/infrastructure/strategies/base.py
        logger = get_module_logger()
        # context: {"component": "base", "module_path": "chatbot.infrastructure.strategies.base"}
    """
    logger = structlog.stdlib.get_logger()
    current_frame = inspect.currentframe()
    frame = current_frame.f_back if current_frame is not None else None
    module = inspect.getmodule(frame) if frame is not None else None
    if module is None:
        return logger.bind(component="unknown")

    module_name = module.__name__
    return logger.bind(component=module_name.split(".")[-1], module_path=module_name)

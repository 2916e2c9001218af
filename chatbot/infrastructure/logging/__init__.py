"""Structured logging infrastructure.

Public API:
    - configure_logging(): Initialize logging for the process
    - get_module_logger(): Get a logger for the calling module
    - bind_request_context(): Context manager for command-scoped logging
    - get_correlation_id(): Current correlation id from context
    - set_correlation_id(): Switch the bound correlation id mid-request

Formatters:
    - add_app_info(): Processor to add app name/version
    - mask_sensitive_data(): Processor to redact sensitive fields
    - mask_token(): Partially mask a credential for display
"""

from chatbot.infrastructure.logging.setup import configure_logging, get_module_logger
from chatbot.infrastructure.logging.context import (
    bind_request_context,
    get_correlation_id,
    set_correlation_id,
)
from chatbot.infrastructure.logging.formatters import (
    SENSITIVE_PATTERNS,
    add_app_info,
    mask_sensitive_data,
    mask_token,
)

__all__ = [
    "configure_logging",
    "get_module_logger",
    "bind_request_context",
    "get_correlation_id",
    "set_correlation_id",
    "add_app_info",
    "mask_sensitive_data",
    "mask_token",
    "SENSITIVE_PATTERNS",
]

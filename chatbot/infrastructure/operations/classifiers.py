"""Error classifiers for Slack Web API failures.

Converts ``slack_sdk`` exceptions and ``ok: false`` payloads into
OperationResult objects so callers never handle provider exceptions directly.

Usage:
    from chatbot.infrastructure.operations.classifiers import classify_slack_error

    try:
        response = await client.users_info(user=user_id)
    except Exception as exc:
        return classify_slack_error(exc)
"""

from typing import Optional

from slack_sdk.errors import SlackApiError

from chatbot.infrastructure.operations.result import OperationResult
from chatbot.infrastructure.operations.status import OperationStatus

TRANSIENT_HTTP_STATUSES = frozenset({429, 500, 502, 503, 504})

UNAUTHORIZED_ERRORS = frozenset(
    {
        "not_authed",
        "invalid_auth",
        "account_inactive",
        "token_revoked",
        "token_expired",
        "missing_scope",
        "not_allowed_token_type",
    }
)

NOT_FOUND_ERRORS = frozenset(
    {
        "user_not_found",
        "channel_not_found",
        "users_not_found",
        "bot_not_found",
    }
)

TRANSIENT_ERRORS = frozenset(
    {"ratelimited", "internal_error", "fatal_error", "service_unavailable"}
)


def _error_code(error: str) -> str:
    return f"SLACK_{error.upper()}"


def classify_slack_api_error(
    error: str,
    http_status: Optional[int] = None,
    retry_after: Optional[float] = None,
    retryable: bool = True,
) -> OperationResult:
    """Classify a Slack error string into an OperationResult.

    Mapping:
    - HTTP 429/5xx or a transient error string: TRANSIENT_ERROR with retry_after
    - auth failures: UNAUTHORIZED
    - unknown users/channels: NOT_FOUND
    - anything else: PERMANENT_ERROR

    Args:
        error: The ``error`` field of the Slack response.
        http_status: HTTP status of the response, when known.
        retry_after: Value of the Retry-After header, when present.
        retryable: False for a delivered ``ok: false`` body; the result is
            then never TRANSIENT_ERROR and a transient error string becomes
            PERMANENT_ERROR.
    """
    transient = http_status in TRANSIENT_HTTP_STATUSES or error in TRANSIENT_ERRORS
    if retryable and transient:
        return OperationResult.transient_error(
            message=f"Slack API transient error: {error}",
            error_code=_error_code(error),
            retry_after=retry_after,
        )

    if error in UNAUTHORIZED_ERRORS:
        return OperationResult.error(
            OperationStatus.UNAUTHORIZED,
            f"Slack API authentication failed: {error}",
            error_code=_error_code(error),
        )

    if error in NOT_FOUND_ERRORS:
        return OperationResult.error(
            OperationStatus.NOT_FOUND,
            f"Slack resource not found: {error}",
            error_code=_error_code(error),
        )

    return OperationResult.permanent_error(
        message=f"Slack API error: {error}",
        error_code=_error_code(error),
    )


def classify_slack_error(exc: Exception) -> OperationResult:
    """Classify an exception raised while calling the Slack Web API.

    ``SlackApiError`` is classified from its response. Any other exception
    (connection reset, timeout) is treated as transient.
    """
    if not isinstance(exc, SlackApiError):
        return OperationResult.transient_error(
            f"Connection error: {type(exc).__name__}: {str(exc)}",
            error_code="CONNECTION_ERROR",
        )

    response = exc.response
    error = "unknown_error"
    http_status = None
    retry_after = None
    if response is not None:
        error = response.get("error", error) or error
        http_status = getattr(response, "status_code", None)
        headers = getattr(response, "headers", None) or {}
        header_value = headers.get("Retry-After") or headers.get("retry-after")
        if header_value:
            try:
                retry_after = float(header_value)
            except (ValueError, TypeError):
                retry_after = None

    return classify_slack_api_error(error, http_status, retry_after)

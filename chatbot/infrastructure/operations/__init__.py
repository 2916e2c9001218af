"""Operation result types and status enums.

Standardized result types shared by remote clients and strategy phases,
including the Slack error classifiers.
"""

from chatbot.infrastructure.operations.classifiers import (
    classify_slack_api_error,
    classify_slack_error,
)
from chatbot.infrastructure.operations.result import OperationResult
from chatbot.infrastructure.operations.status import OperationStatus

__all__ = [
    "OperationResult",
    "OperationStatus",
    "classify_slack_api_error",
    "classify_slack_error",
]

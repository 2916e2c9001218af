"""Operation result dataclass.

Uniform result type returned by remote calls and strategy phases, carrying
status, payload and error information.
"""

from typing import Optional, Any
from dataclasses import dataclass

from chatbot.infrastructure.operations.status import OperationStatus


@dataclass
class OperationResult:
    """Uniform result returned from operations.

    Attributes:
        status: OperationStatus -- high-level outcome
        message: str -- human-friendly message for logs/troubleshooting
        data: Optional[Any] -- optional payload (can be dict, list, or object)
        error_code: Optional[str] -- optional machine error code
        retry_after: Optional[float] -- seconds until retry when rate-limited
    """

    status: OperationStatus
    message: str
    data: Optional[Any] = None
    error_code: Optional[str] = None
    retry_after: Optional[float] = None

    @property
    def is_success(self) -> bool:
        """True if status is SUCCESS."""
        return self.status == OperationStatus.SUCCESS

    @property
    def is_pending(self) -> bool:
        """True if the remote precondition is not yet satisfied."""
        return self.status == OperationStatus.PENDING

    @property
    def is_retryable(self) -> bool:
        """True if polling again may yield a different outcome.

        Only PENDING and TRANSIENT_ERROR results are retried; every other
        non-success status is final.
        """
        return self.status in (
            OperationStatus.PENDING,
            OperationStatus.TRANSIENT_ERROR,
        )

    @classmethod
    def success(
        cls, data: Optional[Any] = None, message: str = "ok"
    ) -> "OperationResult":
        """Create a SUCCESS OperationResult with optional data.

        Args:
            data: Optional payload to include with the result
            message: Human-friendly success message

        Returns:
            OperationResult with SUCCESS status
        """
        return cls(status=OperationStatus.SUCCESS, message=message, data=data)

    @classmethod
    def pending(
        cls,
        message: str = "pending",
        data: Optional[Any] = None,
        retry_after: Optional[float] = None,
    ) -> "OperationResult":
        """Create a PENDING result for a remote precondition not yet met.

        Args:
            message: Human-friendly description of what is awaited
            data: Optional partial payload
            retry_after: Optional hint, in seconds, for the next poll

        Returns:
            OperationResult with PENDING status
        """
        return cls(
            status=OperationStatus.PENDING,
            message=message,
            data=data,
            retry_after=retry_after,
        )

    @classmethod
    def error(
        cls,
        status: OperationStatus,
        message: str,
        error_code: Optional[str] = None,
        retry_after: Optional[float] = None,
        data: Optional[Any] = None,
    ) -> "OperationResult":
        """Create an error OperationResult.

        Args:
            status: OperationStatus indicating error type
            message: Human-friendly error message
            error_code: Optional machine error code
            retry_after: Optional seconds until retry (for rate limiting)
            data: Optional payload to include with the error

        Returns:
            OperationResult with specified error status
        """
        return cls(
            status=status,
            message=message,
            error_code=error_code,
            retry_after=retry_after,
            data=data,
        )

    @classmethod
    def transient_error(
        cls,
        message: str,
        error_code: Optional[str] = None,
        retry_after: Optional[float] = None,
    ) -> "OperationResult":
        """Create a transient (retryable) error result.

        Use for errors that may succeed on retry, such as:
        - Network timeouts
        - Rate limiting
        - Temporary service unavailability

        Returns:
            OperationResult with TRANSIENT_ERROR status
        """
        return cls.error(
            OperationStatus.TRANSIENT_ERROR, message, error_code, retry_after
        )

    @classmethod
    def permanent_error(
        cls, message: str, error_code: Optional[str] = None
    ) -> "OperationResult":
        """Create a permanent (non-retryable) error result.

        Returns:
            OperationResult with PERMANENT_ERROR status
        """
        return cls.error(OperationStatus.PERMANENT_ERROR, message, error_code)

"""
Base exception classes for application-wide error handling.

Every domain error raised by the services carries a human-readable message,
a machine-readable error code and optional structured details. Views turn
them into JSON bodies with to_dict() so clients never see stack traces.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Bad or missing input, no side effects
    ├── NotFoundError - A referenced record does not exist
    ├── ConflictError - State conflicts (concurrent modification, store conflicts)
    └── ExternalServiceError - Third-party service failures

Usage:
    from core.exceptions import ValidationError, NotFoundError

    raise ValidationError("amount must be positive", details={"amount": "-1"})

    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=400)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, identifiers, amounts)
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Returns:
            Dict with error, error_code and (when present) details keys

        Example:
            {
                "error": "Rental r_123 not found",
                "error_code": "RENTAL_NOT_FOUND",
                "details": {"rental_id": "r_123"}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails.

    Validation happens before any read or write, so raising this
    never leaves side effects behind.
    """

    default_error_code: str = "VALIDATION_ERROR"


class NotFoundError(BaseApplicationError):
    """Raised when a requested record is not found."""

    default_error_code: str = "NOT_FOUND"


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with current persisted state.

    Use for:
    - Transaction conflicts and lock timeouts in the database
    - Integrity races between concurrent writers

    Note:
        The transaction has been rolled back when this is raised, so the
        API answers with a 5xx and the caller (or Stripe) may retry.
    """

    default_error_code: str = "CONFLICT"

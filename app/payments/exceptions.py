"""
Payment-specific exceptions for payment operations.

This module provides a hierarchy of exceptions for payment operations:
payment domain errors, store conflict errors and Stripe-specific errors.

Exception Hierarchy:
    PaymentError (base for payment domain)
    ├── PaymentNotFoundError - Payment entity lookup failures
    │   ├── RentalNotFound - Rental record does not exist
    │   ├── OwnerNotFound - Rental owner's user record does not exist
    │   └── AccountNotFoundError - User record does not exist
    ├── PaymentValidationError - Payment validation failures
    ├── WebhookSignatureError - Webhook payload failed verification
    └── PaymentProcessingError - Payment processing failures
        ├── PaymentInitiationFailed - Stripe refused to create an intent
        ├── PayoutFailed - Stripe refused a transfer (balance restored)
        ├── AccountLinkFailed - Stripe refused account/onboarding link
        └── StripeError - Base for all Stripe errors
            ├── StripeCardDeclinedError - Card declined (permanent)
            ├── StripeInsufficientFundsError - Insufficient funds (permanent)
            ├── StripeInvalidAccountError - Invalid Stripe account (permanent)
            ├── StripeInvalidRequestError - Invalid request params (permanent)
            ├── StripeRateLimitError - Rate limited (transient, retry)
            ├── StripeAPIUnavailableError - API unavailable (transient, retry)
            └── StripeTimeoutError - Request timeout (transient, retry)

    RetryableStoreError - Store conflict or lock timeout (inherits ConflictError)

Usage:
    from payments.exceptions import RentalNotFound, RetryableStoreError

    if rental is None:
        raise RentalNotFound(
            f"Rental {rental_id} not found",
            details={"rental_id": rental_id},
        )

    except OperationalError as e:
        raise RetryableStoreError(
            "Ledger store conflict, safe to retry",
            details={"rental_id": rental_id},
        ) from e
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError, ConflictError

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Payment Domain Exceptions
# =============================================================================


class PaymentError(BaseApplicationError):
    """
    Base exception for all payment operations.

    All payment-specific exceptions inherit from this class,
    which itself inherits from BaseApplicationError for
    consistent API error responses.

    Example:
        try:
            WithdrawalService.withdraw(user_id, amount, account_id)
        except PaymentError as e:
            logger.error(f"Payment operation failed: {e}")
            return Response(e.to_dict(), status=400)
    """

    default_error_code: str = "PAYMENT_ERROR"


class PaymentNotFoundError(PaymentError):
    """
    Raised when a payment entity cannot be found.

    Prefer the specific subclasses below so callers (and the webhook
    view) can tell which record was missing.
    """

    default_error_code: str = "PAYMENT_NOT_FOUND"


class RentalNotFound(PaymentNotFoundError):
    """
    Raised when a settlement references a rental that does not exist.

    During webhook processing this is nacked so Stripe redelivers; the
    rental may be written shortly after the payment succeeds.
    """

    default_error_code: str = "RENTAL_NOT_FOUND"


class OwnerNotFound(PaymentNotFoundError):
    """Raised when a rental's owner has no user record."""

    default_error_code: str = "OWNER_NOT_FOUND"


class AccountNotFoundError(PaymentNotFoundError):
    """
    Raised when a user record does not exist.

    Example:
        user = UserAccount.objects.filter(pk=user_id).first()
        if user is None:
            raise AccountNotFoundError(
                f"User {user_id} not found",
                details={"user_id": user_id},
            )
    """

    default_error_code: str = "ACCOUNT_NOT_FOUND"


class PaymentValidationError(PaymentError):
    """
    Raised when payment validation fails.

    Use for:
    - Missing or non-positive amount
    - Missing user, rental or destination account identifiers
    - Destination account that does not belong to the user

    Raised before any read or write, so there are no side effects.

    Example:
        if amount <= 0:
            raise PaymentValidationError(
                "Amount must be positive",
                details={"amount": str(amount)},
            )
    """

    default_error_code: str = "PAYMENT_VALIDATION_ERROR"


class WebhookSignatureError(PaymentError):
    """
    Raised when a webhook payload fails signature verification.

    Nothing is processed; the endpoint answers 400.
    """

    default_error_code: str = "INVALID_SIGNATURE"


class PaymentProcessingError(PaymentError):
    """
    Raised when payment processing fails.

    Use for:
    - Stripe API errors
    - Payment gateway failures
    - Processing timeouts
    """

    default_error_code: str = "PAYMENT_PROCESSING_ERROR"


class PaymentInitiationFailed(PaymentProcessingError):
    """
    Raised when Stripe does not create a payment intent.

    No local state exists for an intent until its success webhook
    arrives, so there is nothing to undo.
    """

    default_error_code: str = "PAYMENT_INITIATION_FAILED"


class PayoutFailed(PaymentProcessingError):
    """
    Raised when Stripe refuses or fails a transfer.

    By the time this is raised the reserved total has been credited
    back (or, if that also failed, the withdrawal is flagged for manual
    repair and logged at CRITICAL).
    """

    default_error_code: str = "PAYOUT_FAILED"


class AccountLinkFailed(PaymentProcessingError):
    """Raised when Stripe fails to create a connected account or onboarding link."""

    default_error_code: str = "ACCOUNT_LINK_FAILED"


# =============================================================================
# Stripe-Specific Exceptions
# =============================================================================


class StripeError(PaymentProcessingError):
    """
    Base exception for all Stripe-related errors.

    Provides common attributes for Stripe error handling:
    - stripe_code: Stripe's internal error code
    - decline_code: Card decline code (if applicable)
    - is_retryable: Whether the operation can be retried

    Use is_retryable to determine retry behavior:
    - True: Transient error, safe to retry with the same idempotency key
    - False: Permanent error, do not retry

    Example:
        try:
            StripeAdapter.create_transfer(params)
        except StripeError as e:
            logger.warning("Transfer failed", extra={"retryable": e.is_retryable})
    """

    default_error_code: str = "STRIPE_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        stripe_code: str | None = None,
        decline_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if stripe_code:
            details["stripe_code"] = stripe_code
        if decline_code:
            details["decline_code"] = decline_code
        super().__init__(message, error_code=error_code, details=details)
        self.stripe_code = stripe_code
        self.decline_code = decline_code


# -----------------------------------------------------------------------------
# Permanent Errors (do not retry)
# -----------------------------------------------------------------------------


class StripeCardDeclinedError(StripeError):
    """
    Card was declined by the issuing bank.

    Permanent; the decline_code attribute contains the specific reason.
    """

    default_error_code: str = "CARD_DECLINED"
    is_retryable: bool = False


class StripeInsufficientFundsError(StripeError):
    """
    Insufficient funds on the payment method or the platform balance.

    For transfers this means the platform's Stripe balance cannot cover
    the payout. User or operator action is required before a retry.
    """

    default_error_code: str = "INSUFFICIENT_FUNDS"
    is_retryable: bool = False


class StripeInvalidAccountError(StripeError):
    """
    Invalid Stripe Connect account.

    Raised when the destination account for a transfer is:
    - Not found
    - Disabled or restricted
    - Not properly onboarded
    """

    default_error_code: str = "INVALID_STRIPE_ACCOUNT"
    is_retryable: bool = False


class StripeInvalidRequestError(StripeError):
    """
    Invalid request parameters sent to Stripe.

    Permanent: the request will never succeed with the same parameters.
    This usually indicates a bug in our code, not a user error.
    """

    default_error_code: str = "INVALID_STRIPE_REQUEST"
    is_retryable: bool = False


# -----------------------------------------------------------------------------
# Transient Errors (safe to retry with the same idempotency key)
# -----------------------------------------------------------------------------


class StripeRateLimitError(StripeError):
    """Rate limited by Stripe API."""

    default_error_code: str = "STRIPE_RATE_LIMITED"
    is_retryable: bool = True


class StripeAPIUnavailableError(StripeError):
    """
    Stripe API is temporarily unavailable.

    This covers:
    - Network connectivity issues
    - Stripe server errors (5xx)
    - DNS resolution failures
    """

    default_error_code: str = "STRIPE_UNAVAILABLE"
    is_retryable: bool = True


class StripeTimeoutError(StripeError):
    """
    Stripe API call timed out.

    IMPORTANT: The operation may have succeeded on Stripe's side.
    Retrying with the same idempotency key returns the original result.
    """

    default_error_code: str = "STRIPE_TIMEOUT"
    is_retryable: bool = True


# =============================================================================
# Store Conflict Exceptions
# =============================================================================


class RetryableStoreError(ConflictError):
    """
    Raised when the database rejects a transaction for transient reasons.

    Covers lock timeouts, serialization failures and deadlocks. The
    transaction has been rolled back in full, so the caller may retry
    the whole operation. The webhook endpoint answers 500 so Stripe
    redelivers.
    """

    default_error_code: str = "RETRYABLE_STORE_ERROR"


__all__ = [
    # Payment domain
    "PaymentError",
    "PaymentNotFoundError",
    "RentalNotFound",
    "OwnerNotFound",
    "AccountNotFoundError",
    "PaymentValidationError",
    "WebhookSignatureError",
    "PaymentProcessingError",
    "PaymentInitiationFailed",
    "PayoutFailed",
    "AccountLinkFailed",
    # Stripe
    "StripeError",
    "StripeCardDeclinedError",
    "StripeInsufficientFundsError",
    "StripeInvalidAccountError",
    "StripeInvalidRequestError",
    "StripeRateLimitError",
    "StripeAPIUnavailableError",
    "StripeTimeoutError",
    # Store conflicts
    "RetryableStoreError",
]

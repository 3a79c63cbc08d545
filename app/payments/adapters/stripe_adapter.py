"""
Stripe API adapter for payment operations.

This module provides the StripeAdapter class which encapsulates all
Stripe API interactions. All Stripe calls should go through this
adapter to ensure consistent error handling, timeouts, idempotency,
and observability.

Features:
- Configurable timeouts on all API calls
- Automatic error translation to domain exceptions
- Structured logging with timing metrics
- Idempotency keys on every write, so SDK network retries are safe

Configuration (via settings):
- STRIPE_SECRET_KEY: Stripe API secret key
- STRIPE_WEBHOOK_SECRET: Webhook signing secret
- STRIPE_API_VERSION: Pinned Stripe API version
- STRIPE_API_TIMEOUT_SECONDS: API call timeout (default: 10)
- STRIPE_MAX_RETRIES: SDK network retries (default: 2)

Usage:
    from payments.adapters import StripeAdapter, CreatePaymentIntentParams

    # Create a PaymentIntent
    result = StripeAdapter.create_payment_intent(
        CreatePaymentIntentParams(
            amount_cents=2000,
            currency="eur",
            metadata={"userId": "renter_1", "rentalId": "rental_1"},
            idempotency_key="create_intent:rental_1:...",
        )
    )
    result.client_secret

    # Transfer to a connected account
    transfer = StripeAdapter.create_transfer(
        amount_cents=950,
        destination_account="acct_123",
        idempotency_key=f"withdrawal:{withdrawal.id}:transfer",
        currency="eur",
    )
"""

from __future__ import annotations

import hashlib
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any

import stripe
from django.conf import settings

from payments.exceptions import (
    StripeAPIUnavailableError,
    StripeCardDeclinedError,
    StripeInsufficientFundsError,
    StripeInvalidAccountError,
    StripeInvalidRequestError,
    StripeRateLimitError,
    StripeTimeoutError,
    WebhookSignatureError,
)


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class CreatePaymentIntentParams:
    """
    Parameters for creating a Stripe PaymentIntent.

    Attributes:
        amount_cents: Payment amount in smallest currency unit (e.g., cents)
        currency: ISO 4217 currency code
        idempotency_key: Unique key for idempotent creation
        metadata: Key-value pairs to attach to the PaymentIntent
        payment_method_types: Allowed payment methods (None lets Stripe decide)
    """

    amount_cents: int
    currency: str
    idempotency_key: str
    metadata: dict[str, str] = field(default_factory=dict)
    payment_method_types: list[str] | None = None

    def __post_init__(self) -> None:
        """Validate parameters after initialization."""
        if self.amount_cents <= 0:
            raise ValueError("amount_cents must be positive")
        if not self.idempotency_key:
            raise ValueError("idempotency_key is required")
        if not self.currency:
            raise ValueError("currency is required")


@dataclass
class PaymentIntentResult:
    """
    Result from Stripe PaymentIntent operations.

    Attributes:
        id: PaymentIntent ID (pi_xxx)
        status: Current status (requires_payment_method, succeeded, etc.)
        amount_cents: Amount in cents
        currency: Currency code
        client_secret: Secret for client-side confirmation
        metadata: Attached metadata
        raw_response: Full Stripe response dict (for debugging)
    """

    id: str
    status: str
    amount_cents: int
    currency: str
    client_secret: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass
class TransferResult:
    """
    Result from Stripe Transfer operations.

    Attributes:
        id: Transfer ID (tr_xxx)
        amount_cents: Amount transferred in cents
        currency: Currency code
        destination_account: Destination Stripe account ID
        metadata: Attached metadata
        raw_response: Full Stripe response dict
    """

    id: str
    amount_cents: int
    currency: str
    destination_account: str
    metadata: dict[str, str] = field(default_factory=dict)
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass
class ConnectedAccountResult:
    """
    Result from Stripe Connect account creation.

    Attributes:
        id: Account ID (acct_xxx)
        payouts_enabled: Whether payouts are enabled yet
        charges_enabled: Whether charges are enabled yet
        metadata: Attached metadata
    """

    id: str
    payouts_enabled: bool = False
    charges_enabled: bool = False
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class OnboardingLinkResult:
    """
    Result from Stripe AccountLink creation.

    Attributes:
        url: Single-use onboarding URL
        expires_at: Unix timestamp after which the link is invalid
    """

    url: str
    expires_at: int | None = None


# =============================================================================
# Idempotency Key Generator
# =============================================================================


class IdempotencyKeyGenerator:
    """
    Generate idempotency keys for Stripe API calls.

    Format: "{operation}:{entity_id}:{attempt}:{hash}"

    The hash component provides uniqueness across environments sharing
    a Stripe account while the structured format aids debugging.

    Example:
        key = IdempotencyKeyGenerator.generate(
            operation="create_account",
            entity_id="owner_1",
        )
        # Result: "create_account:owner_1:1:a1b2c3d4"
    """

    @staticmethod
    def generate(
        operation: str,
        entity_id: uuid.UUID | str,
        attempt: int = 1,
    ) -> str:
        """
        Generate an idempotency key.

        Args:
            operation: The Stripe operation (create_intent, transfer, etc.)
            entity_id: The domain entity ID (withdrawal id, user id, etc.)
            attempt: Attempt number (default: 1)

        Returns:
            Formatted idempotency key string
        """
        entity_str = str(entity_id)
        hash_input = f"{operation}:{entity_str}:{attempt}:{settings.SECRET_KEY}"
        short_hash = hashlib.sha256(hash_input.encode()).hexdigest()[:8]

        return f"{operation}:{entity_str}:{attempt}:{short_hash}"


# =============================================================================
# Stripe Adapter
# =============================================================================


class StripeAdapter:
    """
    Adapter for Stripe API operations.

    All methods are class methods - no instance state is maintained.

    Usage:
        result = StripeAdapter.create_payment_intent(params)
        transfer = StripeAdapter.create_transfer(...)
        event = StripeAdapter.verify_webhook_signature(body, signature)
    """

    # =========================================================================
    # Configuration
    # =========================================================================

    @staticmethod
    def _configure_stripe() -> None:
        """Configure Stripe client with API key, version, retries and timeout."""
        stripe.api_key = settings.STRIPE_SECRET_KEY
        stripe.api_version = settings.STRIPE_API_VERSION
        stripe.max_network_retries = getattr(settings, "STRIPE_MAX_RETRIES", 2)
        timeout = getattr(settings, "STRIPE_API_TIMEOUT_SECONDS", 10)
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout)

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this adapter."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    # =========================================================================
    # Payments
    # =========================================================================

    @classmethod
    def create_payment_intent(
        cls,
        params: CreatePaymentIntentParams,
    ) -> PaymentIntentResult:
        """
        Create a Stripe PaymentIntent.

        Args:
            params: Parameters for creating the PaymentIntent

        Returns:
            PaymentIntentResult with PaymentIntent details including client_secret

        Raises:
            StripeInvalidRequestError: Invalid parameters
            StripeAPIUnavailableError: Stripe service unavailable
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "create_payment_intent",
            "amount_cents": params.amount_cents,
            "currency": params.currency,
            "idempotency_key": params.idempotency_key,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            intent_params: dict[str, Any] = {
                "amount": params.amount_cents,
                "currency": params.currency,
                "metadata": params.metadata,
            }
            if params.payment_method_types:
                intent_params["payment_method_types"] = params.payment_method_types

            intent = stripe.PaymentIntent.create(
                idempotency_key=params.idempotency_key,
                **intent_params,
            )

            duration_ms = (time.time() - start_time) * 1000
            logger.info(
                "Stripe operation completed",
                extra={
                    **log_context,
                    "payment_intent_id": intent.id,
                    "status": intent.status,
                    "duration_ms": duration_ms,
                },
            )

            return PaymentIntentResult(
                id=intent.id,
                status=intent.status,
                amount_cents=intent.amount,
                currency=intent.currency,
                client_secret=intent.client_secret,
                metadata=dict(intent.metadata or {}),
                raw_response=intent.to_dict(),
            )

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise  # Never reached, but satisfies type checker

    @classmethod
    def create_transfer(
        cls,
        amount_cents: int,
        destination_account: str,
        idempotency_key: str,
        currency: str = "eur",
        metadata: dict[str, str] | None = None,
    ) -> TransferResult:
        """
        Create a transfer to a connected Stripe account.

        Args:
            amount_cents: Amount to transfer in cents
            destination_account: Stripe Connect account ID (acct_xxx)
            idempotency_key: Unique key for idempotent transfer
            currency: Currency code (default: 'eur')
            metadata: Optional metadata dict

        Returns:
            TransferResult with transfer details

        Raises:
            StripeInvalidAccountError: Invalid destination account
            StripeInvalidRequestError: Invalid parameters (e.g. platform balance too low)
            StripeAPIUnavailableError: Stripe service unavailable
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "create_transfer",
            "amount_cents": amount_cents,
            "destination_account": destination_account,
            "idempotency_key": idempotency_key,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            transfer = stripe.Transfer.create(
                amount=amount_cents,
                currency=currency,
                destination=destination_account,
                metadata=metadata or {},
                idempotency_key=idempotency_key,
            )

            duration_ms = (time.time() - start_time) * 1000
            logger.info(
                "Stripe operation completed",
                extra={
                    **log_context,
                    "transfer_id": transfer.id,
                    "duration_ms": duration_ms,
                },
            )

            return TransferResult(
                id=transfer.id,
                amount_cents=transfer.amount,
                currency=transfer.currency,
                destination_account=transfer.destination,
                metadata=dict(transfer.metadata or {}),
                raw_response=transfer.to_dict(),
            )

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

    # =========================================================================
    # Connect Onboarding
    # =========================================================================

    @classmethod
    def create_connected_account(
        cls,
        user_id: str,
        idempotency_key: str,
        email: str | None = None,
        country: str | None = None,
    ) -> ConnectedAccountResult:
        """
        Create an Express connected account for a user.

        Requests card_payments and transfers capabilities for an
        individual, and tags the account with metadata {"userId": user_id}
        so account.updated events can be mapped back to the user.

        Args:
            user_id: Platform user the account belongs to
            idempotency_key: Unique key for idempotent creation
            email: Optional email to pre-fill onboarding
            country: Two-letter country code (default: STRIPE_CONNECT_COUNTRY)

        Returns:
            ConnectedAccountResult with the new account ID
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "create_connected_account",
            "user_id": user_id,
            "idempotency_key": idempotency_key,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            account_params: dict[str, Any] = {
                "type": "express",
                "country": country or settings.STRIPE_CONNECT_COUNTRY,
                "capabilities": {
                    "card_payments": {"requested": True},
                    "transfers": {"requested": True},
                },
                "business_type": "individual",
                "metadata": {"userId": user_id},
            }
            if email:
                account_params["email"] = email

            account = stripe.Account.create(
                idempotency_key=idempotency_key,
                **account_params,
            )

            duration_ms = (time.time() - start_time) * 1000
            logger.info(
                "Stripe operation completed",
                extra={
                    **log_context,
                    "account_id": account.id,
                    "duration_ms": duration_ms,
                },
            )

            return ConnectedAccountResult(
                id=account.id,
                payouts_enabled=bool(account.payouts_enabled),
                charges_enabled=bool(account.charges_enabled),
                metadata=dict(account.metadata or {}),
            )

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

    @classmethod
    def create_account_link(
        cls,
        account_id: str,
        refresh_url: str,
        return_url: str,
    ) -> OnboardingLinkResult:
        """
        Create a single-use onboarding link for a connected account.

        Args:
            account_id: Stripe Connect account ID (acct_xxx)
            refresh_url: Where Stripe sends the user if the link expired
            return_url: Where Stripe sends the user after onboarding

        Returns:
            OnboardingLinkResult with the hosted onboarding URL
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "create_account_link",
            "account_id": account_id,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            link = stripe.AccountLink.create(
                account=account_id,
                refresh_url=refresh_url,
                return_url=return_url,
                type="account_onboarding",
            )

            duration_ms = (time.time() - start_time) * 1000
            logger.info(
                "Stripe operation completed",
                extra={**log_context, "duration_ms": duration_ms},
            )

            return OnboardingLinkResult(url=link.url, expires_at=link.expires_at)

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

    # =========================================================================
    # Webhooks
    # =========================================================================

    @classmethod
    def verify_webhook_signature(
        cls,
        payload: bytes,
        signature: str,
    ) -> dict[str, Any]:
        """
        Verify and parse a Stripe webhook event.

        Args:
            payload: Raw webhook payload bytes
            signature: Stripe-Signature header value

        Returns:
            Parsed event data dict

        Raises:
            WebhookSignatureError: Invalid signature
        """
        try:
            event = stripe.Webhook.construct_event(
                payload,
                signature,
                settings.STRIPE_WEBHOOK_SECRET,
            )
            return event.to_dict()
        except stripe.SignatureVerificationError as e:
            raise WebhookSignatureError(
                "Invalid webhook signature",
                details={"error": str(e)},
            ) from e

    # =========================================================================
    # Error Handling
    # =========================================================================

    @classmethod
    def _handle_stripe_error(
        cls,
        error: Exception,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> None:
        """
        Translate Stripe exceptions to domain exceptions.

        Maps Stripe SDK errors to appropriate domain exceptions
        with proper error categorization for retry decisions.

        Args:
            error: The Stripe exception
            log_context: Logging context dict
            duration_ms: Operation duration for logging

        Raises:
            StripeCardDeclinedError: Card was declined
            StripeInsufficientFundsError: Insufficient funds
            StripeInvalidAccountError: Invalid Connect account
            StripeInvalidRequestError: Invalid request parameters
            StripeRateLimitError: Rate limited
            StripeTimeoutError: Request timed out
            StripeAPIUnavailableError: API unavailable
        """
        logger = cls.get_logger()

        log_context = {**log_context, "duration_ms": duration_ms}

        if isinstance(error, stripe.CardError):
            decline_code = getattr(error, "decline_code", None)
            logger.warning(
                "Card error from Stripe",
                extra={**log_context, "decline_code": decline_code},
            )

            if decline_code == "insufficient_funds":
                raise StripeInsufficientFundsError(
                    str(error.user_message or error),
                    stripe_code=error.code,
                    decline_code=decline_code,
                )

            raise StripeCardDeclinedError(
                str(error.user_message or error),
                stripe_code=error.code,
                decline_code=decline_code,
            )

        elif isinstance(error, stripe.InvalidRequestError):
            logger.error(
                "Invalid request to Stripe",
                extra={**log_context, "stripe_code": error.code},
            )

            if error.code == "balance_insufficient":
                raise StripeInsufficientFundsError(
                    str(error.user_message or error),
                    stripe_code=error.code,
                )

            if "account" in str(error).lower():
                raise StripeInvalidAccountError(
                    str(error),
                    stripe_code=error.code,
                )

            raise StripeInvalidRequestError(
                str(error),
                stripe_code=error.code,
            )

        elif isinstance(error, stripe.RateLimitError):
            logger.warning(
                "Rate limited by Stripe",
                extra=log_context,
            )
            raise StripeRateLimitError(
                "Stripe rate limit exceeded. Please retry.",
                stripe_code="rate_limit",
            )

        elif isinstance(error, stripe.APIConnectionError):
            logger.error(
                "Connection error to Stripe",
                extra=log_context,
                exc_info=True,
            )
            if "timed out" in str(error).lower():
                raise StripeTimeoutError(
                    "Stripe request timed out. Please retry.",
                    stripe_code="timeout",
                )
            raise StripeAPIUnavailableError(
                "Could not connect to Stripe. Please retry.",
                stripe_code="api_connection_error",
            )

        elif isinstance(error, stripe.APIError):
            logger.error(
                "Stripe API error",
                extra=log_context,
                exc_info=True,
            )
            raise StripeAPIUnavailableError(
                "Stripe service error. Please retry.",
                stripe_code="api_error",
            )

        elif isinstance(error, stripe.AuthenticationError):
            # Invalid API key - permanent, operational issue
            logger.critical(
                "Stripe authentication failed - check API key",
                extra=log_context,
            )
            raise StripeInvalidRequestError(
                "Stripe authentication failed",
                stripe_code="authentication_error",
            )

        else:
            logger.error(
                f"Unexpected error from Stripe: {type(error).__name__}",
                extra=log_context,
                exc_info=True,
            )
            raise StripeAPIUnavailableError(
                f"Unexpected Stripe error: {error}",
                stripe_code="unknown_error",
            )

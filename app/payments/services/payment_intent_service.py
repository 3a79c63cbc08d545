"""
Payment intent service for starting rental payments.

Creates a Stripe PaymentIntent for a rental and hands its client secret
back to the renter's client, which confirms the payment directly with
Stripe. Nothing is written locally: the rental is only marked paid when
the verified payment_intent.succeeded webhook arrives.

Usage:
    from payments.services import PaymentIntentService

    result = PaymentIntentService.create_intent(
        amount="20.00",
        user_id="renter_1",
        rental_id="rental_1",
    )
    result.client_secret
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Any

from django.conf import settings

from core.services import BaseService

from payments.adapters import (
    CreatePaymentIntentParams,
    PaymentIntentResult,
    StripeAdapter,
)
from payments.exceptions import (
    PaymentInitiationFailed,
    PaymentValidationError,
    StripeError,
)
from payments.ledger.types import to_decimal, to_minor_units


class PaymentIntentService(BaseService):
    """
    Service for creating Stripe PaymentIntents for rentals.

    The intent carries metadata {"userId", "rentalId"}; settlement reads
    it back from the webhook to find the rental to mark paid.
    """

    # Stripe adapter - can be injected for testing
    _stripe_adapter: type | None = None

    @classmethod
    def get_stripe_adapter(cls) -> type:
        """Get the Stripe adapter class."""
        return cls._stripe_adapter or StripeAdapter

    @classmethod
    def set_stripe_adapter(cls, adapter: type | None) -> None:
        """Set the Stripe adapter class (for testing)."""
        cls._stripe_adapter = adapter

    @classmethod
    def create_intent(
        cls,
        amount: Any,
        user_id: str,
        rental_id: str,
    ) -> PaymentIntentResult:
        """
        Create a PaymentIntent for a rental payment.

        Args:
            amount: Amount in major units (e.g. "20.00" or 20.5)
            user_id: Renter paying for the rental
            rental_id: Rental being paid for

        Returns:
            PaymentIntentResult whose client_secret goes to the client

        Raises:
            PaymentValidationError: Missing or non-positive inputs
            PaymentInitiationFailed: Stripe did not create the intent
        """
        logger = cls.get_logger()

        amount_major = cls._validate(amount, user_id, rental_id)
        amount_cents = to_minor_units(amount_major)
        currency = settings.PLATFORM_CURRENCY

        params = CreatePaymentIntentParams(
            amount_cents=amount_cents,
            currency=currency,
            idempotency_key=f"create_intent:{rental_id}:{uuid.uuid4()}",
            metadata={"userId": user_id, "rentalId": rental_id},
        )

        try:
            result = cls.get_stripe_adapter().create_payment_intent(params)
        except StripeError as e:
            logger.error(
                "Failed to create payment intent",
                extra={
                    "rental_id": rental_id,
                    "user_id": user_id,
                    "amount_cents": amount_cents,
                    "error_code": e.error_code,
                },
            )
            raise PaymentInitiationFailed(
                "Failed to create payment intent",
                details={"rental_id": rental_id},
            ) from e

        logger.info(
            "Payment intent created",
            extra={
                "payment_intent_id": result.id,
                "rental_id": rental_id,
                "user_id": user_id,
                "amount_cents": amount_cents,
                "currency": currency,
            },
        )
        return result

    @staticmethod
    def _validate(amount: Any, user_id: str, rental_id: str) -> Decimal:
        if amount is None or amount == "":
            raise PaymentValidationError(
                "Amount is required",
                details={"field": "amount"},
            )
        try:
            amount_major = to_decimal(amount)
        except ValueError:
            raise PaymentValidationError(
                "Amount must be a number",
                details={"field": "amount"},
            )
        if amount_major <= 0 or to_minor_units(amount_major) < 1:
            raise PaymentValidationError(
                "Amount must be positive",
                details={"field": "amount", "amount": str(amount_major)},
            )
        if not user_id:
            raise PaymentValidationError(
                "userId is required",
                details={"field": "userId"},
            )
        if not rental_id:
            raise PaymentValidationError(
                "rentalId is required",
                details={"field": "rentalId"},
            )
        return amount_major

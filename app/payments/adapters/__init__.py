"""
Payment adapters for external services.

All external payment API calls go through these adapters to ensure
consistent error handling, timeouts, idempotency, and observability.

Usage:
    from payments.adapters import StripeAdapter, CreatePaymentIntentParams

    result = StripeAdapter.create_payment_intent(
        CreatePaymentIntentParams(
            amount_cents=2000,
            currency="eur",
            idempotency_key="create_intent:rental_1:...",
        )
    )
"""

from payments.adapters.stripe_adapter import (
    ConnectedAccountResult,
    CreatePaymentIntentParams,
    IdempotencyKeyGenerator,
    OnboardingLinkResult,
    PaymentIntentResult,
    StripeAdapter,
    TransferResult,
)

__all__ = [
    "ConnectedAccountResult",
    "CreatePaymentIntentParams",
    "IdempotencyKeyGenerator",
    "OnboardingLinkResult",
    "PaymentIntentResult",
    "StripeAdapter",
    "TransferResult",
]

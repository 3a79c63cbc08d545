"""
Factory Boy factories for payment test data.

This module provides factories for creating test instances of payment models.
Factories generate realistic test data while allowing easy customization.

Usage:
    from payments.tests.factories import (
        RentalFactory,
        UserAccountFactory,
        WebhookEventFactory,
        WithdrawalFactory,
    )

    # Owner with a balance and a Connect account
    owner = UserAccountFactory(account_balance=Decimal("10.00"), with_payout_account=True)

    # Unpaid rental owned by that user
    rental = RentalFactory(owner=owner)
"""

import uuid
from decimal import Decimal

import factory

from payments.models import Rental, UserAccount, WebhookEvent, Withdrawal
from payments.state_machines import PaymentStatus, WebhookEventStatus, WithdrawalState


class UserAccountFactory(factory.django.DjangoModelFactory):
    """
    Factory for creating UserAccount instances.

    Default creates a user with a zero balance and no Connect account.

    Example:
        # Owner ready to withdraw
        owner = UserAccountFactory(
            account_balance=Decimal("10.00"),
            with_payout_account=True,
        )
    """

    class Meta:
        model = UserAccount
        skip_postgeneration_save = True

    class Params:
        with_payout_account = factory.Trait(
            payout_account_id=factory.Sequence(lambda n: f"acct_test_{n}"),
            payouts_enabled=True,
            charges_enabled=True,
        )

    id = factory.Sequence(lambda n: f"user_{n}")
    email = factory.Sequence(lambda n: f"user{n}@example.com")
    account_balance = Decimal("0.00")


class RentalFactory(factory.django.DjangoModelFactory):
    """
    Factory for creating Rental instances.

    Default creates an UNPAID rental with a new owner.
    """

    class Meta:
        model = Rental
        skip_postgeneration_save = True

    id = factory.Sequence(lambda n: f"rental_{n}")
    owner = factory.SubFactory(UserAccountFactory)
    payment_status = PaymentStatus.UNPAID


class WithdrawalFactory(factory.django.DjangoModelFactory):
    """
    Factory for creating Withdrawal instances.

    Default creates a RESERVED withdrawal of 9.50 plus the 0.50 fee.
    """

    class Meta:
        model = Withdrawal
        skip_postgeneration_save = True

    user = factory.SubFactory(UserAccountFactory, with_payout_account=True)
    amount = Decimal("9.50")
    fee = Decimal("0.50")
    total_debited = Decimal("10.00")
    currency = "eur"
    destination_account_id = factory.LazyAttribute(lambda o: o.user.payout_account_id)
    state = WithdrawalState.RESERVED


def payment_intent_succeeded_payload(
    rental_id: str = "rental_1",
    amount_cents: int = 2000,
    user_id: str = "renter_1",
    event_id: str | None = None,
) -> dict:
    """Build a payment_intent.succeeded event body as Stripe sends it."""
    return {
        "id": event_id or f"evt_{uuid.uuid4().hex}",
        "object": "event",
        "type": "payment_intent.succeeded",
        "data": {
            "object": {
                "id": f"pi_{uuid.uuid4().hex[:24]}",
                "object": "payment_intent",
                "amount": amount_cents,
                "amount_received": amount_cents,
                "currency": "eur",
                "status": "succeeded",
                "metadata": {"userId": user_id, "rentalId": rental_id},
            }
        },
    }


def account_updated_payload(
    account_id: str = "acct_test_1",
    user_id: str | None = "user_1",
    payouts_enabled: bool = True,
    charges_enabled: bool = True,
    event_id: str | None = None,
) -> dict:
    """Build an account.updated event body as Stripe sends it."""
    metadata = {"userId": user_id} if user_id else {}
    return {
        "id": event_id or f"evt_{uuid.uuid4().hex}",
        "object": "event",
        "type": "account.updated",
        "data": {
            "object": {
                "id": account_id,
                "object": "account",
                "payouts_enabled": payouts_enabled,
                "charges_enabled": charges_enabled,
                "metadata": metadata,
            }
        },
    }


class WebhookEventFactory(factory.django.DjangoModelFactory):
    """
    Factory for creating WebhookEvent instances.

    Default creates a PENDING payment_intent.succeeded webhook.

    Example:
        # Failed webhook
        event = WebhookEventFactory(
            status=WebhookEventStatus.FAILED,
            error_message="Processing error",
            retry_count=3,
        )
    """

    class Meta:
        model = WebhookEvent
        skip_postgeneration_save = True

    stripe_event_id = factory.Sequence(lambda n: f"evt_test_{n}_{uuid.uuid4().hex[:8]}")
    event_type = "payment_intent.succeeded"
    payload = factory.LazyAttribute(
        lambda o: payment_intent_succeeded_payload(event_id=o.stripe_event_id)
    )
    status = WebhookEventStatus.PENDING

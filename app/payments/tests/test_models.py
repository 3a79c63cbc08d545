"""
Tests for payment models.

Covers model properties and the WebhookEvent status helpers.
"""

from decimal import Decimal

import pytest
from django.db import IntegrityError

from payments.models import WebhookEvent
from payments.state_machines import PaymentStatus, WebhookEventStatus
from payments.tests.factories import (
    RentalFactory,
    UserAccountFactory,
    WebhookEventFactory,
    WithdrawalFactory,
)


class TestUserAccount:
    def test_defaults(self, db):
        user = UserAccountFactory()

        assert user.account_balance == Decimal("0.00")
        assert user.has_payout_account is False
        assert user.payouts_enabled is False

    def test_has_payout_account(self, db):
        user = UserAccountFactory(with_payout_account=True)

        assert user.has_payout_account is True
        assert user.payout_account_id.startswith("acct_test_")


class TestRental:
    def test_is_paid(self, db):
        assert RentalFactory().is_paid is False
        assert RentalFactory(payment_status=PaymentStatus.PAID).is_paid is True

    def test_reverse_relation(self, db):
        owner = UserAccountFactory()
        RentalFactory.create_batch(2, owner=owner)

        assert owner.rentals.count() == 2


class TestWithdrawal:
    def test_transfer_idempotency_key_is_per_attempt(self, db):
        first = WithdrawalFactory()
        second = WithdrawalFactory(user=first.user)

        assert first.transfer_idempotency_key == f"withdrawal:{first.id}:transfer"
        assert first.transfer_idempotency_key != second.transfer_idempotency_key

    def test_destination_defaults_to_user_account(self, db):
        withdrawal = WithdrawalFactory()

        assert withdrawal.destination_account_id == withdrawal.user.payout_account_id


class TestWebhookEvent:
    def test_stripe_event_id_unique(self, db):
        WebhookEventFactory(stripe_event_id="evt_dup")

        with pytest.raises(IntegrityError):
            WebhookEvent.objects.create(
                stripe_event_id="evt_dup",
                event_type="payment_intent.succeeded",
                payload={},
            )

    def test_status_transitions(self, db):
        event = WebhookEventFactory()

        event.mark_processing()
        assert event.status == WebhookEventStatus.PROCESSING
        assert event.retry_count == 1

        event.mark_failed("boom")
        assert event.status == WebhookEventStatus.FAILED
        assert event.error_message == "boom"

        event.mark_processed()
        assert event.is_processed is True
        assert event.processed_at is not None
        assert event.error_message is None

    def test_get_object(self, db):
        event = WebhookEventFactory(
            payload={"data": {"object": {"id": "pi_123", "amount": 500}}}
        )

        assert event.get_object() == {"id": "pi_123", "amount": 500}
        assert event.get_object_id() == "pi_123"

    @pytest.mark.parametrize(
        "payload",
        [{}, {"data": None}, {"data": {"object": "not-a-dict"}}, ["list"]],
    )
    def test_get_object_malformed_payload(self, db, payload):
        event = WebhookEventFactory(payload=payload)

        assert event.get_object() == {}
        assert event.get_object_id() is None

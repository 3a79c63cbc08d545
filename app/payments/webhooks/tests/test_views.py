"""
Tests for the Stripe webhook view.

Tests cover:
- Stripe signature verification
- Webhook event creation and idempotency
- Synchronous settlement and account sync
- Acknowledge vs redeliver responses
"""

import json
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.db import OperationalError

from payments.exceptions import WebhookSignatureError
from payments.models import Rental, UserAccount, WebhookEvent
from payments.state_machines import PaymentStatus, WebhookEventStatus
from payments.tests.factories import (
    RentalFactory,
    UserAccountFactory,
    account_updated_payload,
    payment_intent_succeeded_payload,
)
from payments.webhooks.views import stripe_webhook

VERIFY_PATH = "payments.webhooks.views.StripeAdapter.verify_webhook_signature"


def post_verified(make_webhook_request, payload: dict):
    """POST the payload with signature verification returning it unchanged."""
    with patch(VERIFY_PATH, return_value=payload):
        return stripe_webhook(make_webhook_request(payload))


# =============================================================================
# Signature Verification Tests
# =============================================================================


class TestStripeWebhookSignature:
    """Tests for signature verification."""

    def test_missing_signature_returns_400(self, db, make_webhook_request):
        request = make_webhook_request({"id": "evt_test"}, signature=None)

        response = stripe_webhook(request)

        assert response.status_code == 400
        assert b"Missing signature" in response.content
        assert not WebhookEvent.objects.exists()

    def test_invalid_signature_returns_400(self, db, make_webhook_request):
        with patch(VERIFY_PATH, side_effect=WebhookSignatureError("bad signature")):
            response = stripe_webhook(
                make_webhook_request(payment_intent_succeeded_payload())
            )

        assert response.status_code == 400
        assert b"Invalid signature" in response.content
        assert not WebhookEvent.objects.exists()

    def test_unexpected_verification_error_returns_400(self, db, make_webhook_request):
        with patch(VERIFY_PATH, side_effect=ValueError("Unexpected error")):
            response = stripe_webhook(
                make_webhook_request(payment_intent_succeeded_payload())
            )

        assert response.status_code == 400
        assert b"Verification error" in response.content

    def test_signature_checked_against_raw_body(self, db, make_webhook_request):
        payload = {"id": "evt_raw", "type": "customer.created", "data": {"object": {}}}
        request = make_webhook_request(payload, signature="t=1,v1=abc")

        with patch(VERIFY_PATH, return_value=payload) as mock_verify:
            stripe_webhook(request)

        mock_verify.assert_called_once_with(json.dumps(payload).encode(), "t=1,v1=abc")

    def test_event_without_id_returns_400(self, db, make_webhook_request):
        response = post_verified(make_webhook_request, {"type": "account.updated"})

        assert response.status_code == 400
        assert b"Invalid event" in response.content

    def test_get_not_allowed(self, rf):
        response = stripe_webhook(rf.get("/api/v1/payments/webhook/"))

        assert response.status_code == 405


# =============================================================================
# payment_intent.succeeded
# =============================================================================


class TestPaymentIntentSucceededWebhook:
    """End-to-end settlement through the webhook endpoint."""

    def test_settles_rental_and_credits_owner(self, db, make_webhook_request):
        owner = UserAccountFactory(id="owner_1", account_balance=Decimal("5.00"))
        RentalFactory(id="rental_1", owner=owner)
        payload = payment_intent_succeeded_payload(rental_id="rental_1", amount_cents=2000)

        response = post_verified(make_webhook_request, payload)

        assert response.status_code == 200
        assert json.loads(response.content) == {"received": True}

        rental = Rental.objects.get(pk="rental_1")
        assert rental.payment_status == PaymentStatus.PAID
        assert rental.payment_intent_id == payload["data"]["object"]["id"]
        assert UserAccount.objects.get(pk="owner_1").account_balance == Decimal("24.50")

        event = WebhookEvent.objects.get(stripe_event_id=payload["id"])
        assert event.status == WebhookEventStatus.PROCESSED
        assert event.processed_at is not None

    def test_redelivered_event_credits_once(self, db, make_webhook_request):
        owner = UserAccountFactory(id="owner_1")
        RentalFactory(id="rental_1", owner=owner)
        payload = payment_intent_succeeded_payload(rental_id="rental_1")

        first = post_verified(make_webhook_request, payload)
        second = post_verified(make_webhook_request, payload)

        assert first.status_code == 200
        assert second.status_code == 200
        assert UserAccount.objects.get(pk="owner_1").account_balance == Decimal("19.50")
        assert WebhookEvent.objects.filter(stripe_event_id=payload["id"]).count() == 1

    def test_second_event_for_paid_rental_credits_once(self, db, make_webhook_request):
        owner = UserAccountFactory(id="owner_1")
        RentalFactory(id="rental_1", owner=owner)

        post_verified(make_webhook_request, payment_intent_succeeded_payload("rental_1"))
        response = post_verified(
            make_webhook_request, payment_intent_succeeded_payload("rental_1")
        )

        assert response.status_code == 200
        assert UserAccount.objects.get(pk="owner_1").account_balance == Decimal("19.50")
        assert WebhookEvent.objects.count() == 2

    def test_missing_rental_metadata_is_acknowledged(self, db, make_webhook_request):
        payload = payment_intent_succeeded_payload()
        payload["data"]["object"]["metadata"] = {"userId": "renter_1"}

        response = post_verified(make_webhook_request, payload)

        assert response.status_code == 200
        assert json.loads(response.content) == {"received": True, "processed": False}
        event = WebhookEvent.objects.get(stripe_event_id=payload["id"])
        assert event.status == WebhookEventStatus.FAILED
        assert "rentalId" in event.error_message

    def test_unknown_rental_requests_redelivery(self, db, make_webhook_request):
        payload = payment_intent_succeeded_payload(rental_id="rental_missing")

        response = post_verified(make_webhook_request, payload)

        assert response.status_code == 500
        event = WebhookEvent.objects.get(stripe_event_id=payload["id"])
        assert event.status == WebhookEventStatus.FAILED
        assert event.retry_count == 1

    def test_failed_event_is_retried_on_redelivery(self, db, make_webhook_request):
        payload = payment_intent_succeeded_payload(rental_id="rental_late")

        assert post_verified(make_webhook_request, payload).status_code == 500

        RentalFactory(id="rental_late", owner=UserAccountFactory(id="owner_late"))
        response = post_verified(make_webhook_request, payload)

        assert response.status_code == 200
        event = WebhookEvent.objects.get(stripe_event_id=payload["id"])
        assert event.status == WebhookEventStatus.PROCESSED
        assert event.retry_count == 2
        assert UserAccount.objects.get(pk="owner_late").account_balance == Decimal("19.50")

    def test_database_error_returns_500(self, db, make_webhook_request, mocker):
        mocker.patch(
            "payments.webhooks.views.process_webhook_event",
            side_effect=OperationalError("connection lost"),
        )

        response = post_verified(make_webhook_request, payment_intent_succeeded_payload())

        assert response.status_code == 500
        assert json.loads(response.content) == {"error": "Server error"}


# =============================================================================
# account.updated and unknown events
# =============================================================================


class TestOtherWebhookEvents:
    """Tests for non-settlement events."""

    def test_account_updated_syncs_flags(self, db, make_webhook_request):
        UserAccountFactory(id="user_1", payout_account_id="acct_test_1")
        payload = account_updated_payload(account_id="acct_test_1", user_id="user_1")

        response = post_verified(make_webhook_request, payload)

        assert response.status_code == 200
        user = UserAccount.objects.get(pk="user_1")
        assert user.payouts_enabled is True
        assert user.charges_enabled is True

    def test_unknown_event_type_acknowledged(self, db, make_webhook_request):
        payload = {
            "id": "evt_customer_1",
            "type": "customer.created",
            "data": {"object": {"id": "cus_123"}},
        }

        response = post_verified(make_webhook_request, payload)

        assert response.status_code == 200
        event = WebhookEvent.objects.get(stripe_event_id="evt_customer_1")
        assert event.status == WebhookEventStatus.PROCESSED

"""
Pytest fixtures shared by all payments test packages.

This module provides fixtures shared by every payments test package:
users in typical balance states, rentals, and a mocked Stripe adapter
injected into the services.

Usage:
    def test_withdraw_all(funded_owner, mock_stripe_adapter):
        WithdrawalService.withdraw("9.50", funded_owner.id, funded_owner.payout_account_id)
"""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from payments.adapters import (
    ConnectedAccountResult,
    OnboardingLinkResult,
    PaymentIntentResult,
    TransferResult,
)
from payments.services import (
    AccountLinkService,
    PaymentIntentService,
    WithdrawalService,
)
from payments.state_machines import WebhookEventStatus
from payments.tests.factories import (
    RentalFactory,
    UserAccountFactory,
    WebhookEventFactory,
)


# =============================================================================
# Settings
# =============================================================================


@pytest.fixture(autouse=True)
def payment_settings(settings):
    """Pin platform settings so amounts in tests are stable."""
    settings.PLATFORM_FEE = Decimal("0.50")
    settings.PLATFORM_CURRENCY = "eur"
    settings.FRONTEND_BASE_URL = "https://app.example.com"
    settings.STRIPE_SECRET_KEY = "sk_test_fake"
    settings.STRIPE_WEBHOOK_SECRET = "whsec_test_fake"
    settings.STRIPE_CONNECT_COUNTRY = "DE"
    return settings


# =============================================================================
# User and Rental Fixtures
# =============================================================================


@pytest.fixture
def owner(db):
    """Create an owner with a Connect account and an empty balance."""
    return UserAccountFactory(with_payout_account=True)


@pytest.fixture
def funded_owner(db):
    """Create an owner holding 10.00 with a Connect account."""
    return UserAccountFactory(
        account_balance=Decimal("10.00"),
        with_payout_account=True,
    )


@pytest.fixture
def renter(db):
    """Create a renter without a Connect account."""
    return UserAccountFactory()


@pytest.fixture
def rental(db, owner):
    """Create an unpaid rental owned by owner."""
    return RentalFactory(owner=owner)


# =============================================================================
# Webhook Fixtures
# =============================================================================


@pytest.fixture
def pending_webhook(db):
    """Create a pending webhook event."""
    return WebhookEventFactory()


@pytest.fixture
def processed_webhook(db):
    """Create an already processed webhook event."""
    return WebhookEventFactory(status=WebhookEventStatus.PROCESSED, retry_count=1)


# =============================================================================
# Stripe Adapter Fixtures
# =============================================================================


@pytest.fixture
def mock_stripe_adapter():
    """
    Inject a mocked StripeAdapter into every payments service.

    Default return values describe successful Stripe calls; override
    return_value or side_effect per test. The real adapter is restored
    after the test.
    """
    adapter = MagicMock()
    adapter.create_payment_intent.return_value = PaymentIntentResult(
        id="pi_test_123",
        status="requires_payment_method",
        amount_cents=2000,
        currency="eur",
        client_secret="pi_test_123_secret_abc",
        metadata={},
    )
    adapter.create_transfer.return_value = TransferResult(
        id="tr_test_123",
        amount_cents=950,
        currency="eur",
        destination_account="acct_test",
    )
    adapter.create_connected_account.return_value = ConnectedAccountResult(
        id="acct_new_123",
        payouts_enabled=False,
        charges_enabled=False,
        metadata={},
    )
    adapter.create_account_link.return_value = OnboardingLinkResult(
        url="https://connect.stripe.com/setup/e/acct_new_123/abc",
        expires_at=1700000000,
    )

    services = (PaymentIntentService, WithdrawalService, AccountLinkService)
    for service in services:
        service.set_stripe_adapter(adapter)
    yield adapter
    for service in services:
        service.set_stripe_adapter(None)

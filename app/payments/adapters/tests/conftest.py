"""
Pytest fixtures for Stripe adapter tests.

This module provides fixtures for testing the Stripe adapter, including
mock Stripe API responses and Stripe SDK errors. No test in this package
reaches the network.

Sections:
    - Mock Stripe Response Fixtures
    - Mock Stripe Error Fixtures
    - Mock Stripe Client Fixtures
"""

from dataclasses import dataclass
from typing import Any
from unittest.mock import patch

import pytest
import stripe


# =============================================================================
# Mock Stripe Response Fixtures
# =============================================================================


@dataclass
class MockStripeObject:
    """Mock Stripe API object with to_dict support."""

    data: dict[str, Any]

    def __getattr__(self, name: str) -> Any:
        if name == "data":
            return self.__dict__["data"]
        return self.data.get(name)

    def to_dict(self) -> dict[str, Any]:
        return self.data


@pytest.fixture
def mock_payment_intent():
    """Create a mock PaymentIntent response."""

    def _create(
        id: str = "pi_test123456",
        status: str = "requires_payment_method",
        amount: int = 2000,
        currency: str = "eur",
        client_secret: str = "pi_test123456_secret_abc123",
        metadata: dict | None = None,
    ) -> MockStripeObject:
        return MockStripeObject(
            {
                "id": id,
                "object": "payment_intent",
                "status": status,
                "amount": amount,
                "currency": currency,
                "client_secret": client_secret,
                "metadata": metadata or {},
            }
        )

    return _create


@pytest.fixture
def mock_transfer():
    """Create a mock Transfer response."""

    def _create(
        id: str = "tr_test123456",
        amount: int = 950,
        currency: str = "eur",
        destination: str = "acct_dest123",
        metadata: dict | None = None,
    ) -> MockStripeObject:
        return MockStripeObject(
            {
                "id": id,
                "object": "transfer",
                "amount": amount,
                "currency": currency,
                "destination": destination,
                "metadata": metadata or {},
            }
        )

    return _create


# =============================================================================
# Mock Stripe Error Fixtures
# =============================================================================


@pytest.fixture
def card_error():
    """Create a Stripe CardError."""

    def _create(
        message: str = "Your card was declined.",
        code: str = "card_declined",
        decline_code: str | None = "generic_decline",
    ) -> stripe.CardError:
        error = stripe.CardError(message=message, param=None, code=code)
        error.decline_code = decline_code
        return error

    return _create


@pytest.fixture
def invalid_request_error():
    """Create a Stripe InvalidRequestError."""

    def _create(
        message: str = "Invalid amount",
        param: str | None = "amount",
        code: str = "parameter_invalid_integer",
    ) -> stripe.InvalidRequestError:
        return stripe.InvalidRequestError(message=message, param=param, code=code)

    return _create


@pytest.fixture
def rate_limit_error():
    """Create a Stripe RateLimitError."""
    return stripe.RateLimitError(
        message="Too many requests hit the API too quickly.",
    )


@pytest.fixture
def api_connection_error():
    """Create a Stripe APIConnectionError."""

    def _create(message: str = "Could not connect to Stripe.") -> stripe.APIConnectionError:
        return stripe.APIConnectionError(message=message)

    return _create


@pytest.fixture
def api_error():
    """Create a Stripe APIError."""
    return stripe.APIError(
        message="Something went wrong on Stripe's end.",
    )


@pytest.fixture
def authentication_error():
    """Create a Stripe AuthenticationError."""
    return stripe.AuthenticationError(
        message="Invalid API Key provided.",
    )


@pytest.fixture
def signature_verification_error():
    """Create a Stripe SignatureVerificationError."""
    return stripe.SignatureVerificationError(
        message="Unable to verify webhook signature.",
        sig_header="bad_signature",
    )


# =============================================================================
# Mock Stripe Client Fixtures
# =============================================================================


@pytest.fixture
def mock_stripe_payment_intent(mock_payment_intent):
    """Mock stripe.PaymentIntent API."""
    with patch("stripe.PaymentIntent") as mock:
        mock.create.return_value = mock_payment_intent()
        yield mock


@pytest.fixture
def mock_stripe_transfer(mock_transfer):
    """Mock stripe.Transfer API."""
    with patch("stripe.Transfer") as mock:
        mock.create.return_value = mock_transfer()
        yield mock


@pytest.fixture
def mock_stripe_account():
    """Mock stripe.Account API."""
    with patch("stripe.Account") as mock:
        mock.create.return_value = MockStripeObject(
            {
                "id": "acct_new123",
                "object": "account",
                "payouts_enabled": False,
                "charges_enabled": False,
                "metadata": {"userId": "user_1"},
            }
        )
        yield mock


@pytest.fixture
def mock_stripe_account_link():
    """Mock stripe.AccountLink API."""
    with patch("stripe.AccountLink") as mock:
        mock.create.return_value = MockStripeObject(
            {
                "object": "account_link",
                "url": "https://connect.stripe.com/setup/e/acct_new123/abc",
                "expires_at": 1700000300,
            }
        )
        yield mock


@pytest.fixture
def mock_stripe_webhook():
    """Mock stripe.Webhook API."""
    with patch("stripe.Webhook") as mock:
        mock.construct_event.return_value = MockStripeObject(
            {
                "id": "evt_test123",
                "type": "payment_intent.succeeded",
                "data": {
                    "object": {
                        "id": "pi_test123",
                        "object": "payment_intent",
                    }
                },
            }
        )
        yield mock


@pytest.fixture
def mock_stripe_http_client():
    """Mock stripe.RequestsClient."""
    with patch("stripe.RequestsClient") as mock:
        yield mock

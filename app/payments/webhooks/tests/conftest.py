"""
Pytest fixtures for webhook tests.

Provides a request factory and a helper to build signed webhook POSTs.
Signature verification itself is patched in the tests that need it.
"""

import json

import pytest
from django.test import RequestFactory

WEBHOOK_PATH = "/api/v1/payments/webhook/"


@pytest.fixture
def rf():
    """Request factory for creating test requests."""
    return RequestFactory()


@pytest.fixture
def make_webhook_request(rf):
    """Return a builder for POST requests to the webhook endpoint."""

    def _make(payload: dict, signature: str | None = "t=1614556800,v1=test_sig"):
        headers = {}
        if signature is not None:
            headers["HTTP_STRIPE_SIGNATURE"] = signature
        return rf.post(
            WEBHOOK_PATH,
            data=json.dumps(payload),
            content_type="application/json",
            **headers,
        )

    return _make

"""
Webhook handling for payment events from Stripe.

This module provides the view and handlers for processing Stripe webhooks.
Webhooks are verified, stored idempotently, and processed synchronously
so that failures are answered with a 5xx and redelivered by Stripe.

Usage:
    # In urls.py
    from payments.webhooks.views import stripe_webhook

    urlpatterns = [
        path("webhook/", stripe_webhook, name="stripe_webhook"),
    ]
"""

from payments.webhooks.handlers import (
    dispatch_webhook,
    process_webhook_event,
    register_handler,
)
from payments.webhooks.views import stripe_webhook

__all__ = [
    "dispatch_webhook",
    "process_webhook_event",
    "register_handler",
    "stripe_webhook",
]

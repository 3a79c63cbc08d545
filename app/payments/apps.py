"""
Payments app configuration.

This app provides the rental payment flow:
- Stripe PaymentIntents for renters
- Owner balance ledger with settlement from Stripe webhooks
- Withdrawals to Stripe Connect accounts
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"

"""
Payment domain models.

This module contains all payment-related models:
- UserAccount: Users with an internal balance and a payout destination
- Rental: Rentals whose payment is settled into the owner's balance
- Withdrawal: Audit record of each payout attempt
- WebhookEvent: Stripe webhook event tracking
- LedgerEntry: One row per balance mutation (from payments.ledger)
"""

from payments.ledger.models import LedgerEntry
from payments.models.rental import Rental
from payments.models.user_account import UserAccount
from payments.models.webhook_event import WebhookEvent
from payments.models.withdrawal import Withdrawal

__all__ = [
    "LedgerEntry",
    "Rental",
    "UserAccount",
    "WebhookEvent",
    "Withdrawal",
]

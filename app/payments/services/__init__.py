"""
Payment services for coordinating payment operations.

This module provides:
- PaymentIntentService: Creates Stripe PaymentIntents for rentals
- SettlementService: Marks rentals paid and credits owners
- WithdrawalService: Pays owner balances out to Stripe Connect
- AccountLinkService: Creates Connect accounts and onboarding links

Usage:
    from payments.services import PaymentIntentService

    result = PaymentIntentService.create_intent("20.00", "renter_1", "rental_1")

    from payments.services import WithdrawalService

    result = WithdrawalService.withdraw("9.50", "owner_1", "acct_123")
"""

from payments.services.account_link_service import (
    AccountLinkResult,
    AccountLinkService,
)
from payments.services.payment_intent_service import PaymentIntentService
from payments.services.settlement_service import (
    SettlementOutcome,
    SettlementResult,
    SettlementService,
)
from payments.services.withdrawal_service import (
    WithdrawalResult,
    WithdrawalService,
)

__all__ = [
    "AccountLinkResult",
    "AccountLinkService",
    "PaymentIntentService",
    "SettlementOutcome",
    "SettlementResult",
    "SettlementService",
    "WithdrawalResult",
    "WithdrawalService",
]

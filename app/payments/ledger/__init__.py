"""
Ledger - Balance bookkeeping for rental owners.

Every mutation of a user's account_balance goes through LedgerService and
is recorded as an immutable LedgerEntry in the same transaction.

Public API:
    Models:
        LedgerEntry - Records one balance mutation
        EntryType - Enum of mutation categories

    Service:
        LedgerService - credit, adjust, reserve, get_balance, get_entries

    Types:
        BalanceChange - Result of a committed mutation
        platform_fee, to_minor_units, to_major_units - Money helpers

    Exceptions:
        LedgerError - Base exception for ledger operations
        InsufficientBalance - Balance could not cover a debit
        DuplicateLedgerEntry - Idempotency key already used

Usage:
    from payments.ledger import EntryType, InsufficientBalance, LedgerService

    try:
        LedgerService.reserve(
            user_id,
            total,
            entry_type=EntryType.WITHDRAWAL_RESERVATION,
            idempotency_key=f"withdrawal:{withdrawal_id}:reserve",
        )
    except InsufficientBalance as e:
        print(f"Need {e.required}, have {e.available}")
"""

from .exceptions import DuplicateLedgerEntry, InsufficientBalance, LedgerError
from .models import EntryType, LedgerEntry
from .services import LedgerService
from .types import (
    BalanceChange,
    platform_fee,
    quantize_amount,
    to_decimal,
    to_major_units,
    to_minor_units,
)

__all__ = [
    # Models
    "LedgerEntry",
    "EntryType",
    # Service
    "LedgerService",
    # Types
    "BalanceChange",
    "platform_fee",
    "quantize_amount",
    "to_decimal",
    "to_major_units",
    "to_minor_units",
    # Exceptions
    "LedgerError",
    "InsufficientBalance",
    "DuplicateLedgerEntry",
]

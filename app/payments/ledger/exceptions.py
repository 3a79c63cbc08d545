"""
Ledger-specific exceptions for balance operations.

Exception Hierarchy:
    LedgerError (base)
    ├── InsufficientBalance - Balance check failed, nothing was debited
    └── DuplicateLedgerEntry - Idempotency key already used

Usage:
    from payments.ledger.exceptions import InsufficientBalance

    try:
        LedgerService.reserve(user_id, total, ...)
    except InsufficientBalance as e:
        print(f"Need {e.required}, have {e.available}")
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError

if TYPE_CHECKING:
    from typing import Any


class LedgerError(BaseApplicationError):
    """Base exception for all ledger operations."""

    default_error_code: str = "LEDGER_ERROR"


class InsufficientBalance(LedgerError):
    """
    Raised when a balance cannot cover a requested debit.

    Raised before anything is written, so the balance is unchanged.

    Attributes:
        user_id: The user whose balance was checked
        required: Total that was required (amount + fee), major units
        available: Balance that was available, major units
    """

    default_error_code: str = "INSUFFICIENT_BALANCE"

    def __init__(
        self,
        user_id: str,
        required: Decimal,
        available: Decimal,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.user_id = user_id
        self.required = required
        self.available = available

        full_details = {
            "user_id": user_id,
            "required": str(required),
            "available": str(available),
        }
        if details:
            full_details.update(details)

        super().__init__(
            message="Insufficient balance.",
            error_code=error_code,
            details=full_details,
        )


class DuplicateLedgerEntry(LedgerError):
    """
    Raised when a ledger entry with the same idempotency key exists.

    The surrounding transaction is rolled back, so the balance update
    that accompanied the entry is undone as well.
    """

    default_error_code: str = "DUPLICATE_LEDGER_ENTRY"

"""
Data types and money helpers for ledger operations.

Balances and fees are held as Decimal amounts in major currency units
(e.g. 10.50 EUR) with two decimal places. Stripe works in integer minor
units (1050 cents); the conversion happens only at the Stripe boundary,
through to_minor_units() and to_major_units().

The platform fee is configured exactly once, as settings.PLATFORM_FEE in
major units, and read through platform_fee() by both the settlement and
the withdrawal paths.

Usage:
    from payments.ledger.types import platform_fee, to_minor_units

    to_minor_units(Decimal("20.005"))   # 2001
    to_major_units(2000)                # Decimal("20.00")
    withdrawal_total(Decimal("9.50"))   # Decimal("10.00") with a 0.50 fee
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from django.conf import settings

MINOR_UNITS_PER_MAJOR = 100
CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """
    Parse a user-supplied amount into a Decimal.

    Floats go through str() so 0.1 becomes Decimal("0.1") rather than
    its binary approximation.

    Raises:
        ValueError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    if isinstance(value, float):
        value = str(value)
    try:
        result = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"Not a number: {value!r}")
    if not result.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return result


def quantize_amount(amount: Decimal) -> Decimal:
    """Round a major-unit amount to two decimal places, half up."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_minor_units(amount: Decimal) -> int:
    """
    Convert major units to Stripe's integer minor units.

    Rounds half up to the nearest minor unit.
    """
    minor = (amount * MINOR_UNITS_PER_MAJOR).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP
    )
    return int(minor)


def to_major_units(amount_minor: int) -> Decimal:
    """Convert Stripe's integer minor units back to major units."""
    return quantize_amount(Decimal(int(amount_minor)) / MINOR_UNITS_PER_MAJOR)


def platform_fee() -> Decimal:
    """
    Fixed platform fee per settlement and per withdrawal, in major units.
    """
    return quantize_amount(to_decimal(settings.PLATFORM_FEE))


def settlement_credit(amount: Decimal) -> Decimal:
    """
    Signed amount applied to an owner for a settled payment of `amount`.

    Negative when the payment is smaller than the fee.
    """
    return quantize_amount(amount - platform_fee())


def withdrawal_total(amount: Decimal) -> Decimal:
    """Total debited from a balance to pay out `amount`."""
    return quantize_amount(amount + platform_fee())


@dataclass
class BalanceChange:
    """
    Result of one committed balance mutation.

    Attributes:
        user_id: Owner of the balance
        delta: Signed amount applied (positive credit, negative debit)
        balance_after: Persisted balance right after the mutation
        entry_id: ID of the LedgerEntry written in the same transaction
    """

    user_id: str
    delta: Decimal
    balance_after: Decimal
    entry_id: Any = None

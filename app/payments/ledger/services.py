"""
Ledger service layer for balance mutations.

This module provides the LedgerService class which encapsulates every
write to UserAccount.account_balance. All balance writes go through this
service so each one is applied as a delta against the persisted value and
recorded as a LedgerEntry in the same transaction.

The debit path is a single conditional UPDATE:

    UPDATE users
       SET account_balance = account_balance - :total
     WHERE id = :user_id AND account_balance >= :total

Zero affected rows means the balance could not cover the debit. The check
and the write happen in one statement, so two concurrent debits can never
both pass a check made against the same stale balance.

Usage:
    from payments.ledger.services import LedgerService
    from payments.ledger.models import EntryType

    with transaction.atomic():
        change = LedgerService.reserve(
            user_id="owner_1",
            amount=Decimal("10.00"),
            entry_type=EntryType.WITHDRAWAL_RESERVATION,
            idempotency_key=f"withdrawal:{withdrawal.id}:reserve",
            reference_type="withdrawal",
            reference_id=str(withdrawal.id),
        )
"""

from __future__ import annotations

from decimal import Decimal

from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from core.services import BaseService
from payments.exceptions import AccountNotFoundError

from .exceptions import DuplicateLedgerEntry, InsufficientBalance
from .models import EntryType, LedgerEntry
from .types import BalanceChange, quantize_amount


class LedgerService(BaseService):
    """
    Service class for balance mutations.

    Key features:
    - Deltas applied with F() expressions, never read-modify-write in Python
    - Conditional UPDATE for debits (no overdraft, no stale-read race)
    - One LedgerEntry per mutation, unique idempotency key per entry

    Every method opens its own atomic block, which nests as a savepoint
    when the caller already holds a transaction. Raising out of a method
    rolls back both the balance update and the entry.
    """

    @classmethod
    def get_balance(cls, user_id: str) -> Decimal:
        """
        Read the persisted balance for a user.

        Raises:
            AccountNotFoundError: If the user doesn't exist
        """
        from payments.models.user_account import UserAccount

        balance = (
            UserAccount.objects.filter(pk=user_id)
            .values_list("account_balance", flat=True)
            .first()
        )
        if balance is None:
            raise AccountNotFoundError(
                f"User {user_id} not found",
                details={"user_id": user_id},
            )
        return quantize_amount(balance)

    @classmethod
    def credit(
        cls,
        user_id: str,
        amount: Decimal,
        entry_type: EntryType | str,
        idempotency_key: str,
        reference_type: str = "",
        reference_id: str = "",
        description: str = "",
    ) -> BalanceChange:
        """
        Add a positive amount to a user's balance.

        Args:
            user_id: User whose balance is credited
            amount: Positive amount in major units
            entry_type: Category recorded on the ledger entry
            idempotency_key: Unique key for the ledger entry
            reference_type: Type of related record
            reference_id: ID of related record
            description: Human-readable description

        Returns:
            BalanceChange with the balance right after the credit

        Raises:
            AccountNotFoundError: If the user doesn't exist
            DuplicateLedgerEntry: If idempotency_key was already used
        """
        amount = quantize_amount(amount)
        if amount <= 0:
            raise ValueError(f"Credit amount must be positive, got {amount}")

        return cls._apply(
            user_id=user_id,
            delta=amount,
            entry_type=entry_type,
            idempotency_key=idempotency_key,
            reference_type=reference_type,
            reference_id=reference_id,
            description=description,
        )

    @classmethod
    def adjust(
        cls,
        user_id: str,
        amount: Decimal,
        entry_type: EntryType | str,
        idempotency_key: str,
        reference_type: str = "",
        reference_id: str = "",
        description: str = "",
    ) -> BalanceChange:
        """
        Apply a signed, non-zero amount without a balance check.

        Used by settlement, where the owner is charged amount - fee even
        when that is negative. Withdrawals must use reserve() instead.

        Raises:
            AccountNotFoundError: If the user doesn't exist
            DuplicateLedgerEntry: If idempotency_key was already used
        """
        amount = quantize_amount(amount)
        if amount == 0:
            raise ValueError("Adjustment amount must not be zero")

        return cls._apply(
            user_id=user_id,
            delta=amount,
            entry_type=entry_type,
            idempotency_key=idempotency_key,
            reference_type=reference_type,
            reference_id=reference_id,
            description=description,
            conditional=False,
        )

    @classmethod
    def reserve(
        cls,
        user_id: str,
        amount: Decimal,
        entry_type: EntryType | str,
        idempotency_key: str,
        reference_type: str = "",
        reference_id: str = "",
        description: str = "",
    ) -> BalanceChange:
        """
        Debit a positive amount only if the balance covers it.

        Args:
            user_id: User whose balance is debited
            amount: Positive amount in major units (fee included)
            entry_type: Category recorded on the ledger entry
            idempotency_key: Unique key for the ledger entry
            reference_type: Type of related record
            reference_id: ID of related record
            description: Human-readable description

        Returns:
            BalanceChange with the balance right after the debit

        Raises:
            AccountNotFoundError: If the user doesn't exist
            InsufficientBalance: If balance < amount (nothing is written)
            DuplicateLedgerEntry: If idempotency_key was already used
        """
        amount = quantize_amount(amount)
        if amount <= 0:
            raise ValueError(f"Debit amount must be positive, got {amount}")

        return cls._apply(
            user_id=user_id,
            delta=-amount,
            entry_type=entry_type,
            idempotency_key=idempotency_key,
            reference_type=reference_type,
            reference_id=reference_id,
            description=description,
        )

    @classmethod
    def _apply(
        cls,
        user_id: str,
        delta: Decimal,
        entry_type: EntryType | str,
        idempotency_key: str,
        reference_type: str,
        reference_id: str,
        description: str,
        conditional: bool = True,
    ) -> BalanceChange:
        from payments.models.user_account import UserAccount

        logger = cls.get_logger()

        with transaction.atomic():
            rows = UserAccount.objects.filter(pk=user_id)
            if delta < 0 and conditional:
                rows = rows.filter(account_balance__gte=-delta)

            updated = rows.update(
                account_balance=F("account_balance") + delta,
                updated_at=timezone.now(),
            )

            if updated == 0:
                # Distinguish a missing user from a balance that fell short
                available = cls.get_balance(user_id)
                logger.info(
                    "Insufficient balance for debit",
                    extra={
                        "user_id": user_id,
                        "required": str(-delta),
                        "available": str(available),
                    },
                )
                raise InsufficientBalance(
                    user_id=user_id,
                    required=-delta,
                    available=available,
                )

            # Row is locked by the UPDATE until commit
            balance_after = cls.get_balance(user_id)

            try:
                with transaction.atomic():
                    entry = LedgerEntry.objects.create(
                        user_id=user_id,
                        amount=delta,
                        balance_after=balance_after,
                        entry_type=entry_type,
                        reference_type=reference_type,
                        reference_id=reference_id,
                        description=description,
                        idempotency_key=idempotency_key,
                    )
            except IntegrityError as e:
                if LedgerEntry.objects.filter(
                    idempotency_key=idempotency_key
                ).exists():
                    raise DuplicateLedgerEntry(
                        f"Ledger entry {idempotency_key} already recorded",
                        details={"idempotency_key": idempotency_key},
                    ) from e
                raise

        logger.info(
            "Balance updated",
            extra={
                "user_id": user_id,
                "delta": str(delta),
                "balance_after": str(balance_after),
                "entry_type": str(entry_type),
                "idempotency_key": idempotency_key,
            },
        )

        return BalanceChange(
            user_id=user_id,
            delta=delta,
            balance_after=balance_after,
            entry_id=entry.id,
        )

    @classmethod
    def get_entries(cls, user_id: str, limit: int = 100) -> list[LedgerEntry]:
        """
        Get a user's ledger entries, newest first.

        Args:
            user_id: User whose entries to list
            limit: Maximum number of entries to return (default: 100)
        """
        return list(
            LedgerEntry.objects.filter(user_id=user_id).order_by("-created_at")[
                :limit
            ]
        )

"""
Withdrawal service for paying out owner balances to Stripe Connect.

The service implements a reserve / transfer / confirm-or-compensate
pattern so money never leaves the platform without a matching debit:

1. Phase 1: Reserve amount + fee with a conditional UPDATE and record a
   RESERVED Withdrawal, commit the transaction
2. Phase 2: Call Stripe create_transfer (outside any transaction)
3. Phase 3a: On success, mark the Withdrawal COMPLETED with the transfer id
3b. Phase 3b: On failure, credit the reserved total back in a new
   transaction and mark the Withdrawal COMPENSATED

Because the debit commits before Stripe is called, two concurrent
withdrawals can never both spend the same balance. If Stripe succeeds but
the Phase 3a write fails, the transfer stands and the Withdrawal stays
RESERVED for reconciliation.

Usage:
    from payments.services import WithdrawalService

    result = WithdrawalService.withdraw(
        amount="9.50",
        user_id="owner_1",
        destination_account_id="acct_123",
    )
    result.transfer_id, result.new_balance
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from django.conf import settings
from django.db import DatabaseError
from django_fsm import ConcurrentTransition, TransitionNotAllowed

from core.services import BaseService

from payments.adapters import StripeAdapter
from payments.exceptions import (
    AccountNotFoundError,
    PaymentValidationError,
    PayoutFailed,
    RetryableStoreError,
    StripeError,
)
from payments.ledger import EntryType, LedgerService
from payments.ledger.types import (
    platform_fee,
    quantize_amount,
    to_decimal,
    to_minor_units,
    withdrawal_total,
)
from payments.models import UserAccount, Withdrawal
from payments.state_machines import WithdrawalState

logger = logging.getLogger(__name__)


@dataclass
class WithdrawalResult:
    """
    Result of a successful withdrawal.

    Attributes:
        transfer_id: Stripe Transfer ID (tr_xxx)
        new_balance: Balance right after the reservation, major units
        withdrawal_id: ID of the Withdrawal audit record
    """

    transfer_id: str
    new_balance: Decimal
    withdrawal_id: uuid.UUID


class WithdrawalService(BaseService):
    """
    Service for withdrawing an owner's balance to their connected account.

    Error Handling:
        - PaymentValidationError: bad input or destination not on file,
          raised before anything is read or written
        - AccountNotFoundError: user does not exist
        - InsufficientBalance: balance < amount + fee, nothing written
        - PayoutFailed: Stripe refused the transfer, balance restored
        - RetryableStoreError: reservation transaction rolled back

    Safety Guarantees:
        - Conditional UPDATE makes check-and-debit a single statement
        - Stripe is never called inside a transaction that could roll back
        - Transfer idempotency key is derived from the Withdrawal id
    """

    # Stripe adapter - can be injected for testing
    _stripe_adapter: type | None = None

    @classmethod
    def get_stripe_adapter(cls) -> type:
        """Get the Stripe adapter class."""
        return cls._stripe_adapter or StripeAdapter

    @classmethod
    def set_stripe_adapter(cls, adapter: type | None) -> None:
        """Set the Stripe adapter class (for testing)."""
        cls._stripe_adapter = adapter

    @classmethod
    def withdraw(
        cls,
        amount: Any,
        user_id: str,
        destination_account_id: str,
    ) -> WithdrawalResult:
        """
        Withdraw `amount` to the user's connected account, charging the fee.

        Args:
            amount: Amount to transfer, major units (fee is added on top)
            user_id: User whose balance is debited
            destination_account_id: Must equal the user's payout_account_id

        Returns:
            WithdrawalResult with transfer id and new balance

        Raises:
            PaymentValidationError: Invalid input or destination mismatch
            AccountNotFoundError: User does not exist
            InsufficientBalance: Balance cannot cover amount + fee
            PayoutFailed: Transfer failed (reserved total credited back)
            RetryableStoreError: Reservation could not be committed
        """
        amount = cls._validate(amount, user_id, destination_account_id)

        user = UserAccount.objects.filter(pk=user_id).first()
        if user is None:
            raise AccountNotFoundError(
                f"User {user_id} not found",
                details={"user_id": user_id},
            )
        if not user.payout_account_id or (
            user.payout_account_id != destination_account_id
        ):
            raise PaymentValidationError(
                "Destination account does not match the payout account on file",
                error_code="DESTINATION_MISMATCH",
                details={"user_id": user_id},
            )

        fee = platform_fee()
        total = withdrawal_total(amount)
        currency = settings.PLATFORM_CURRENCY
        withdrawal_id = uuid.uuid4()

        log_context = {
            "withdrawal_id": str(withdrawal_id),
            "user_id": user_id,
            "destination_account_id": destination_account_id,
            "amount": str(amount),
            "fee": str(fee),
            "total": str(total),
        }

        # Phase 1: reserve, committed before Stripe is called
        try:
            with cls.atomic():
                change = LedgerService.reserve(
                    user_id=user_id,
                    amount=total,
                    entry_type=EntryType.WITHDRAWAL_RESERVATION,
                    idempotency_key=f"withdrawal:{withdrawal_id}:reserve",
                    reference_type="withdrawal",
                    reference_id=str(withdrawal_id),
                    description=f"Withdrawal of {amount} plus fee {fee}",
                )
                withdrawal = Withdrawal.objects.create(
                    id=withdrawal_id,
                    user_id=user_id,
                    amount=amount,
                    fee=fee,
                    total_debited=total,
                    currency=currency,
                    destination_account_id=destination_account_id,
                    state=WithdrawalState.RESERVED,
                )
        except DatabaseError as e:
            logger.warning(
                "Withdrawal reservation failed, rolled back",
                extra={**log_context, "error": str(e)},
            )
            raise RetryableStoreError(
                "Withdrawal could not be reserved, safe to retry",
                details={"user_id": user_id},
            ) from e

        logger.info(
            "Withdrawal reserved",
            extra={**log_context, "balance_after": str(change.balance_after)},
        )

        # Phase 2: transfer, outside any transaction
        try:
            transfer = cls.get_stripe_adapter().create_transfer(
                amount_cents=to_minor_units(amount),
                destination_account=destination_account_id,
                idempotency_key=withdrawal.transfer_idempotency_key,
                currency=currency,
                metadata={"userId": user_id, "withdrawalId": str(withdrawal_id)},
            )
        except StripeError as e:
            logger.warning(
                "Transfer failed, compensating",
                extra={
                    **log_context,
                    "error_code": e.error_code,
                    "retryable": e.is_retryable,
                },
            )
            cls._compensate(withdrawal, error=e)
            raise PayoutFailed(
                "Payout failed, balance has been restored",
                details={"withdrawal_id": str(withdrawal_id)},
            ) from e

        # Phase 3: confirm
        try:
            withdrawal.complete(transfer_id=transfer.id)
            withdrawal.save()
        except (DatabaseError, ConcurrentTransition):
            # Transfer exists on Stripe; leave RESERVED for reconciliation
            logger.error(
                "Failed to record transfer id after Stripe success - "
                "reconciliation needed",
                extra={**log_context, "transfer_id": transfer.id},
                exc_info=True,
            )

        logger.info(
            "Withdrawal completed",
            extra={**log_context, "transfer_id": transfer.id},
        )

        return WithdrawalResult(
            transfer_id=transfer.id,
            new_balance=change.balance_after,
            withdrawal_id=withdrawal_id,
        )

    @classmethod
    def _compensate(cls, withdrawal: Withdrawal, error: StripeError) -> None:
        """
        Credit the reserved total back after a failed transfer.

        Never raises. If the credit-back fails the ledger is short by
        total_debited with no transfer to show for it; that is logged at
        CRITICAL and the Withdrawal is flagged COMPENSATION_FAILED.
        """
        log_context = {
            "withdrawal_id": str(withdrawal.id),
            "user_id": withdrawal.user_id,
            "total": str(withdrawal.total_debited),
        }

        try:
            with cls.atomic():
                LedgerService.credit(
                    user_id=withdrawal.user_id,
                    amount=withdrawal.total_debited,
                    entry_type=EntryType.WITHDRAWAL_COMPENSATION,
                    idempotency_key=f"withdrawal:{withdrawal.id}:compensate",
                    reference_type="withdrawal",
                    reference_id=str(withdrawal.id),
                    description="Reserved total restored after failed transfer",
                )
                withdrawal.compensate(reason=error.message)
                withdrawal.save()
        except Exception as comp_error:
            logger.critical(
                "Compensation failed after transfer failure - ledger short, "
                "manual repair required",
                extra={**log_context, "error": str(comp_error)},
                exc_info=True,
            )
            try:
                # The instance may hold the rolled-back COMPENSATED state
                current = Withdrawal.objects.get(pk=withdrawal.id)
                current.flag_compensation_failed(
                    reason=f"{error.message}; compensation: {comp_error}"
                )
                current.save()
            except (DatabaseError, TransitionNotAllowed, ConcurrentTransition):
                logger.critical(
                    "Could not flag withdrawal as compensation_failed",
                    extra=log_context,
                    exc_info=True,
                )
            return

        logger.info("Withdrawal compensated", extra=log_context)

    @staticmethod
    def _validate(amount: Any, user_id: str, destination_account_id: str) -> Decimal:
        if amount is None or amount == "":
            raise PaymentValidationError(
                "Amount is required",
                details={"field": "amount"},
            )
        try:
            amount = to_decimal(amount)
        except ValueError:
            raise PaymentValidationError(
                "Amount must be a number",
                details={"field": "amount"},
            )
        if amount <= 0:
            raise PaymentValidationError(
                "Amount must be positive",
                details={"field": "amount", "amount": str(amount)},
            )
        if amount != quantize_amount(amount):
            raise PaymentValidationError(
                "Amount must have at most two decimal places",
                details={"field": "amount", "amount": str(amount)},
            )
        if not user_id:
            raise PaymentValidationError(
                "userId is required",
                details={"field": "userId"},
            )
        if not destination_account_id:
            raise PaymentValidationError(
                "destinationAccountId is required",
                details={"field": "destinationAccountId"},
            )
        return quantize_amount(amount)

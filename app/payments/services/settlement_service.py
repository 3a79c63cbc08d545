"""
Settlement service for crediting owners when a rental payment succeeds.

Called from the payment_intent.succeeded webhook handler. Stripe delivers
webhooks at least once, so the same payment can be settled many times;
the owner must be credited exactly once.

Idempotency Guards:
    1. Rental row locked with select_for_update, status re-checked
    2. Rental.mark_paid() saves only while the row is still UNPAID
       (django-fsm ConcurrentTransitionMixin)
    3. Ledger entry keyed "settlement:{rental_id}" is unique in the database

The status flip, the balance credit and the ledger entry commit in one
transaction. Either all three happen or none of them do.

Usage:
    from payments.services import SettlementService

    result = SettlementService.settle_payment(
        rental_id="rental_1",
        amount=Decimal("20.00"),
        payment_intent_id="pi_123",
    )
    if result.outcome == SettlementOutcome.ALREADY_SETTLED:
        ...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from django.db import DatabaseError
from django_fsm import ConcurrentTransition

from core.services import BaseService

from payments.exceptions import (
    OwnerNotFound,
    PaymentValidationError,
    RentalNotFound,
    RetryableStoreError,
)
from payments.ledger import DuplicateLedgerEntry, EntryType, LedgerService
from payments.ledger.types import quantize_amount, settlement_credit
from payments.models import Rental, UserAccount

logger = logging.getLogger(__name__)


class SettlementOutcome(str, Enum):
    """How a settlement call ended."""

    SETTLED = "settled"
    ALREADY_SETTLED = "already_settled"


@dataclass
class SettlementResult:
    """
    Result of a settlement attempt.

    Attributes:
        rental_id: Rental that was settled
        outcome: SETTLED on the first successful call, ALREADY_SETTLED after
        owner_id: Owner credited (None when already settled)
        credited: amount - fee applied to the owner, major units; negative
            when the payment was smaller than the fee
        balance_after: Owner balance right after the credit
    """

    rental_id: str
    outcome: SettlementOutcome
    owner_id: str | None = None
    credited: Decimal = Decimal("0.00")
    balance_after: Decimal | None = None


class SettlementService(BaseService):
    """
    Service that turns a successful payment into an owner credit.

    Error Handling:
        - RentalNotFound / OwnerNotFound: propagated, webhook answers 500
          so Stripe redelivers once the records exist
        - DatabaseError (lock timeout, deadlock, integrity race):
          wrapped in RetryableStoreError after full rollback
    """

    @classmethod
    def settle_payment(
        cls,
        rental_id: str,
        amount: Decimal,
        payment_intent_id: str = "",
        payer_id: str | None = None,
    ) -> SettlementResult:
        """
        Mark a rental paid and credit its owner (amount - platform fee).

        Args:
            rental_id: Rental named in the intent metadata
            amount: Amount received, major units
            payment_intent_id: Stripe PaymentIntent ID, stored for audit
            payer_id: Renter named in the intent metadata (logged only)

        Returns:
            SettlementResult with outcome SETTLED or ALREADY_SETTLED

        Raises:
            PaymentValidationError: Missing rental_id or negative amount
            RentalNotFound: Rental does not exist
            OwnerNotFound: Rental owner has no user record
            RetryableStoreError: Transaction failed and was rolled back
        """
        if not rental_id:
            raise PaymentValidationError(
                "rental_id is required",
                details={"field": "rental_id"},
            )
        amount = quantize_amount(amount)
        if amount < 0:
            raise PaymentValidationError(
                "Amount must not be negative",
                details={"amount": str(amount)},
            )

        log_context = {
            "rental_id": rental_id,
            "payment_intent_id": payment_intent_id,
            "payer_id": payer_id,
            "amount": str(amount),
        }

        try:
            with cls.atomic():
                rental = (
                    Rental.objects.select_for_update().filter(pk=rental_id).first()
                )
                if rental is None:
                    raise RentalNotFound(
                        f"Rental {rental_id} not found",
                        details={"rental_id": rental_id},
                    )

                if rental.is_paid:
                    logger.info("Rental already settled", extra=log_context)
                    return SettlementResult(
                        rental_id=rental_id,
                        outcome=SettlementOutcome.ALREADY_SETTLED,
                    )

                owner_id = rental.owner_id
                if not UserAccount.objects.filter(pk=owner_id).exists():
                    raise OwnerNotFound(
                        f"Owner {owner_id} of rental {rental_id} not found",
                        details={"rental_id": rental_id, "owner_id": owner_id},
                    )

                # save() is conditional on the row still being UNPAID
                rental.mark_paid(payment_intent_id=payment_intent_id, amount=amount)
                rental.save()

                credit = settlement_credit(amount)
                balance_after = None
                if credit != 0:
                    change = LedgerService.adjust(
                        user_id=owner_id,
                        amount=credit,
                        entry_type=EntryType.SETTLEMENT_CREDIT,
                        idempotency_key=f"settlement:{rental_id}",
                        reference_type="rental",
                        reference_id=rental_id,
                        description=f"Payment {payment_intent_id} for rental {rental_id}",
                    )
                    balance_after = change.balance_after
                if credit < 0:
                    logger.warning(
                        "Payment below platform fee, owner charged the difference",
                        extra={**log_context, "credit": str(credit)},
                    )

        except ConcurrentTransition:
            logger.info("Rental settled concurrently", extra=log_context)
            return SettlementResult(
                rental_id=rental_id,
                outcome=SettlementOutcome.ALREADY_SETTLED,
            )
        except DuplicateLedgerEntry:
            logger.warning(
                "Settlement ledger entry exists for unpaid rental, skipping",
                extra=log_context,
            )
            return SettlementResult(
                rental_id=rental_id,
                outcome=SettlementOutcome.ALREADY_SETTLED,
            )
        except DatabaseError as e:
            logger.warning(
                "Settlement transaction failed, rolled back",
                extra={**log_context, "error": str(e)},
            )
            raise RetryableStoreError(
                "Settlement could not be committed, safe to retry",
                details={"rental_id": rental_id},
            ) from e

        logger.info(
            "Rental settled",
            extra={
                **log_context,
                "owner_id": owner_id,
                "credited": str(credit),
                "balance_after": str(balance_after),
            },
        )

        return SettlementResult(
            rental_id=rental_id,
            outcome=SettlementOutcome.SETTLED,
            owner_id=owner_id,
            credited=credit,
            balance_after=balance_after,
        )

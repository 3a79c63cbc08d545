"""
Withdrawal model recording each payout attempt.

A Withdrawal row is written in the same transaction that reserves the
balance, before Stripe is called. Its state records how the attempt
ended, so a reserved balance can always be traced to a transfer or a
compensation.

Usage:
    from payments.models import Withdrawal
    from payments.state_machines import WithdrawalState

    # Reservations that never reached a final state
    Withdrawal.objects.filter(state=WithdrawalState.RESERVED)

    # Ledger short, needs manual repair
    Withdrawal.objects.filter(state=WithdrawalState.COMPENSATION_FAILED)
"""

from __future__ import annotations

from django.db import models
from django_fsm import ConcurrentTransitionMixin, FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import WithdrawalState


class Withdrawal(ConcurrentTransitionMixin, UUIDPrimaryKeyMixin, BaseModel):
    """
    Audit record of one withdrawal attempt.

    Fields:
        user: User whose balance was debited
        amount: Amount transferred to the destination, major units
        fee: Platform fee charged, major units
        total_debited: amount + fee, reserved from the balance
        currency: ISO 4217 currency code
        destination_account_id: Stripe Connect account (acct_xxx)
        state: reserved, completed, compensated or compensation_failed
        stripe_transfer_id: Stripe Transfer ID (tr_xxx) once created
        failure_reason: Error description when the transfer failed

    Note:
        The Stripe idempotency key for the transfer is derived from id,
        so retries of the same attempt can never create a second transfer.

        Every state leaves RESERVED exactly once. save() after a
        transition updates the row only if it is still in the state it
        was loaded with (ConcurrentTransitionMixin).
    """

    user = models.ForeignKey(
        "payments.UserAccount",
        on_delete=models.PROTECT,
        related_name="withdrawals",
        help_text="User whose balance was debited",
    )

    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Amount transferred in major currency units",
    )

    fee = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Platform fee charged in major currency units",
    )

    total_debited = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Amount plus fee reserved from the balance",
    )

    currency = models.CharField(
        max_length=3,
        default="eur",
        help_text="ISO 4217 currency code",
    )

    destination_account_id = models.CharField(
        max_length=255,
        help_text="Stripe Connect account ID (acct_xxx)",
    )

    state = FSMField(
        max_length=30,
        choices=WithdrawalState.choices,
        default=WithdrawalState.RESERVED,
        db_index=True,
        protected=True,
        help_text="Current state of the withdrawal (managed by FSM)",
    )

    stripe_transfer_id = models.CharField(
        max_length=255,
        blank=True,
        default="",
        db_index=True,
        help_text="Stripe Transfer ID (tr_xxx)",
    )

    failure_reason = models.TextField(
        blank=True,
        default="",
        help_text="Why the transfer failed",
    )

    class Meta:
        db_table = "withdrawals"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "created_at"], name="idx_withdrawal_user_created"),
            models.Index(fields=["state", "created_at"], name="idx_withdrawal_state_created"),
        ]

    def __str__(self) -> str:
        return f"Withdrawal({self.id}, {self.amount} {self.currency}, {self.state})"

    @property
    def transfer_idempotency_key(self) -> str:
        """Stripe idempotency key for this attempt's transfer."""
        return f"withdrawal:{self.id}:transfer"

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=state,
        source=WithdrawalState.RESERVED,
        target=WithdrawalState.COMPLETED,
    )
    def complete(self, transfer_id: str) -> None:
        """
        Record the Stripe transfer.

        Transition: RESERVED -> COMPLETED
        """
        self.stripe_transfer_id = transfer_id

    @transition(
        field=state,
        source=WithdrawalState.RESERVED,
        target=WithdrawalState.COMPENSATED,
    )
    def compensate(self, reason: str) -> None:
        """
        Mark the reserved total as credited back.

        Transition: RESERVED -> COMPENSATED
        """
        self.failure_reason = reason

    @transition(
        field=state,
        source=WithdrawalState.RESERVED,
        target=WithdrawalState.COMPENSATION_FAILED,
    )
    def flag_compensation_failed(self, reason: str) -> None:
        """
        Flag a withdrawal whose credit-back did not commit.

        Transition: RESERVED -> COMPENSATION_FAILED

        The balance is short by total_debited until an operator repairs it.
        """
        self.failure_reason = reason

"""
Ledger models for balance bookkeeping.

Every change to a user's account_balance is written together with one
LedgerEntry in the same database transaction. The stored balance is the
source of truth for checks; entries are the audit trail that explains it.

Usage:
    from payments.ledger.models import EntryType, LedgerEntry

    LedgerEntry.objects.filter(user_id="owner_1").order_by("created_at")
"""

from __future__ import annotations

from django.db import models
from django.db.models import Q

from core.model_mixins import UUIDPrimaryKeyMixin


class EntryType(models.TextChoices):
    """
    Types of ledger entries.

    Values:
        SETTLEMENT_CREDIT: Owner credited for a settled rental payment (net of fee)
        WITHDRAWAL_RESERVATION: Amount plus fee debited before a payout
        WITHDRAWAL_COMPENSATION: Reserved total credited back after a failed payout
    """

    SETTLEMENT_CREDIT = "settlement_credit", "Settlement Credit"
    WITHDRAWAL_RESERVATION = "withdrawal_reservation", "Withdrawal Reservation"
    WITHDRAWAL_COMPENSATION = "withdrawal_compensation", "Withdrawal Compensation"


class LedgerEntry(UUIDPrimaryKeyMixin, models.Model):
    """
    An immutable record of one balance mutation.

    Fields:
        id: UUID primary key (from UUIDPrimaryKeyMixin)
        created_at: Timestamp when entry was recorded
        user: Owner of the mutated balance
        amount: Signed amount in major units (credits positive, debits negative)
        balance_after: Balance right after the mutation
        entry_type: Category of this entry
        reference_type: Type of related record ('rental' or 'withdrawal')
        reference_id: ID of the related record
        description: Human-readable description
        idempotency_key: Unique key to prevent duplicate entries

    Constraints:
        - amount is never zero
        - idempotency_key is unique, so a rental can be credited only once
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Timestamp when this entry was recorded",
    )
    user = models.ForeignKey(
        "payments.UserAccount",
        on_delete=models.PROTECT,
        related_name="ledger_entries",
        help_text="User whose balance this entry changed",
    )
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Signed amount in major units (credits positive)",
    )
    balance_after = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Balance immediately after this entry",
    )
    entry_type = models.CharField(
        max_length=50,
        choices=EntryType.choices,
        help_text="Category of this entry",
    )
    reference_type = models.CharField(
        max_length=50,
        blank=True,
        default="",
        help_text="Type of related record (e.g., 'rental', 'withdrawal')",
    )
    reference_id = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="ID of the related record",
    )
    description = models.TextField(
        blank=True,
        default="",
        help_text="Human-readable description of this entry",
    )
    idempotency_key = models.CharField(
        max_length=255,
        unique=True,
        help_text="Unique key to prevent duplicate entries",
    )

    class Meta:
        db_table = "ledger_entries"
        ordering = ["-created_at"]
        verbose_name_plural = "ledger entries"
        indexes = [
            models.Index(fields=["reference_type", "reference_id"], name="idx_ledger_reference"),
            models.Index(fields=["user", "created_at"], name="idx_ledger_user_created"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~Q(amount=0),
                name="ledger_entry_amount_nonzero",
            )
        ]

    def __str__(self) -> str:
        return f"{self.get_entry_type_display()}: {self.amount} ({self.user_id})"

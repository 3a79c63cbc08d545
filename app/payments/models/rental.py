"""
Rental model tracking whether a rental has been paid.

Usage:
    from payments.models import Rental
    from payments.state_machines import PaymentStatus

    rental = Rental.objects.get(pk="rental_1")
    if rental.is_paid:
        ...

Note:
    payment_status is a protected FSMField. It only moves from UNPAID to
    PAID, through mark_paid(), when SettlementService handles a verified
    payment_intent.succeeded event. Use Rental.objects.get() for a fresh
    copy; refresh_from_db() cannot reassign a protected field.
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone
from django_fsm import ConcurrentTransitionMixin, FSMField, transition

from core.models import BaseModel

from payments.state_machines import PaymentStatus


class Rental(ConcurrentTransitionMixin, BaseModel):
    """
    A rental whose payment is settled into the owner's balance.

    Fields:
        id: String key assigned by the client application
        owner: User credited when the rental is paid
        payment_status: unpaid or paid (monotonic)
        paid_at: When the settlement flipped the status
        payment_intent_id: Stripe PaymentIntent that paid the rental
        amount_paid: Amount received, in major units

    Note:
        The owner foreign key has no database constraint. Rentals are
        written by the client application, and an owner that does not
        exist is reported as OwnerNotFound at settlement time.
    """

    id = models.CharField(
        primary_key=True,
        max_length=128,
        help_text="Rental identifier assigned by the client application",
    )

    owner = models.ForeignKey(
        "payments.UserAccount",
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        related_name="rentals",
        help_text="Owner credited when this rental is paid",
    )

    payment_status = FSMField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.UNPAID,
        db_index=True,
        protected=True,
        help_text="Payment status (unpaid -> paid, never reversed)",
    )

    paid_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the payment was settled",
    )

    payment_intent_id = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Stripe PaymentIntent ID (pi_xxx) that paid this rental",
    )

    amount_paid = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Amount received in major currency units",
    )

    class Meta:
        db_table = "rentals"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Rental({self.id}, {self.payment_status})"

    @property
    def is_paid(self) -> bool:
        """Check if the rental has been settled."""
        return self.payment_status == PaymentStatus.PAID

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=payment_status,
        source=PaymentStatus.UNPAID,
        target=PaymentStatus.PAID,
    )
    def mark_paid(self, payment_intent_id: str, amount) -> None:
        """
        Record the settled payment.

        Transition: UNPAID -> PAID

        save() only updates the row while it is still UNPAID in the
        database; otherwise ConcurrentTransition is raised.
        """
        self.paid_at = timezone.now()
        self.payment_intent_id = payment_intent_id
        self.amount_paid = amount

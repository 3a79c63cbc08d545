"""
State enums for payment models.

These are Django TextChoices for database storage and admin integration.
Transitions are enforced by django-fsm @transition methods on the models.

State Machines Overview:

Rental payment status:
    unpaid → paid (terminal, flipped once by a verified settlement)

Withdrawal states:
    reserved → completed
    reserved → compensated
    reserved → compensation_failed (needs manual repair)

Webhook event status:
    pending → processing → processed
    pending → processing → failed → processing (redelivery)
"""

from django.db import models


class PaymentStatus(models.TextChoices):
    """
    Payment status of a rental.

    Monotonic: UNPAID → PAID only, never reversed.
    """

    UNPAID = "unpaid", "Unpaid"
    PAID = "paid", "Paid"


class WithdrawalState(models.TextChoices):
    """
    States for the Withdrawal audit record.

    RESERVED: balance debited, Stripe transfer not yet confirmed
    COMPLETED: transfer created, reservation is final
    COMPENSATED: transfer failed, reserved total credited back
    COMPENSATION_FAILED: transfer failed and credit-back failed too;
        the ledger is short and an operator must repair it
    """

    RESERVED = "reserved", "Reserved"
    COMPLETED = "completed", "Completed"
    COMPENSATED = "compensated", "Compensated"
    COMPENSATION_FAILED = "compensation_failed", "Compensation Failed"


class WebhookEventStatus(models.TextChoices):
    """
    Processing status for Stripe webhook events.

    State Flow:
        PENDING → PROCESSING → PROCESSED
        PENDING → PROCESSING → FAILED → PROCESSING (Stripe redelivers)
    """

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    PROCESSED = "processed", "Processed"
    FAILED = "failed", "Failed"

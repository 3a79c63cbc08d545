"""
Initial schema for the payments app.

Creates users, rentals, ledger_entries, withdrawals and webhook_events.
"""

import decimal
import uuid

import django.db.models.deletion
import django_fsm
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="UserAccount",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.CharField(
                        help_text="User identifier assigned by the client application",
                        max_length=128,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "email",
                    models.EmailField(
                        blank=True,
                        default="",
                        help_text="Contact email passed to Stripe on account creation",
                        max_length=254,
                    ),
                ),
                (
                    "payout_account_id",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        default="",
                        help_text="Stripe Connect account ID (acct_xxx), immutable once set",
                        max_length=255,
                    ),
                ),
                (
                    "account_balance",
                    models.DecimalField(
                        decimal_places=2,
                        default=decimal.Decimal("0.00"),
                        help_text="Internal ledger balance in major currency units",
                        max_digits=12,
                    ),
                ),
                (
                    "payouts_enabled",
                    models.BooleanField(
                        default=False,
                        help_text="Whether Stripe has enabled payouts for the account",
                    ),
                ),
                (
                    "charges_enabled",
                    models.BooleanField(
                        default=False,
                        help_text="Whether Stripe has enabled charges for the account",
                    ),
                ),
            ],
            options={
                "verbose_name": "User Account",
                "verbose_name_plural": "User Accounts",
                "db_table": "users",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Rental",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.CharField(
                        help_text="Rental identifier assigned by the client application",
                        max_length=128,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "payment_status",
                    django_fsm.FSMField(
                        choices=[("unpaid", "Unpaid"), ("paid", "Paid")],
                        db_index=True,
                        default="unpaid",
                        help_text="Payment status (unpaid -> paid, never reversed)",
                        max_length=20,
                        protected=True,
                    ),
                ),
                (
                    "paid_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the payment was settled",
                        null=True,
                    ),
                ),
                (
                    "payment_intent_id",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Stripe PaymentIntent ID (pi_xxx) that paid this rental",
                        max_length=255,
                    ),
                ),
                (
                    "amount_paid",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        help_text="Amount received in major currency units",
                        max_digits=12,
                        null=True,
                    ),
                ),
                (
                    "owner",
                    models.ForeignKey(
                        db_constraint=False,
                        help_text="Owner credited when this rental is paid",
                        on_delete=django.db.models.deletion.DO_NOTHING,
                        related_name="rentals",
                        to="payments.useraccount",
                    ),
                ),
            ],
            options={
                "db_table": "rentals",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="LedgerEntry",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this entry was recorded",
                    ),
                ),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Signed amount in major units (credits positive)",
                        max_digits=12,
                    ),
                ),
                (
                    "balance_after",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Balance immediately after this entry",
                        max_digits=12,
                    ),
                ),
                (
                    "entry_type",
                    models.CharField(
                        choices=[
                            ("settlement_credit", "Settlement Credit"),
                            ("withdrawal_reservation", "Withdrawal Reservation"),
                            ("withdrawal_compensation", "Withdrawal Compensation"),
                        ],
                        help_text="Category of this entry",
                        max_length=50,
                    ),
                ),
                (
                    "reference_type",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Type of related record (e.g., 'rental', 'withdrawal')",
                        max_length=50,
                    ),
                ),
                (
                    "reference_id",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="ID of the related record",
                        max_length=255,
                    ),
                ),
                (
                    "description",
                    models.TextField(
                        blank=True,
                        default="",
                        help_text="Human-readable description of this entry",
                    ),
                ),
                (
                    "idempotency_key",
                    models.CharField(
                        help_text="Unique key to prevent duplicate entries",
                        max_length=255,
                        unique=True,
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        help_text="User whose balance this entry changed",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="ledger_entries",
                        to="payments.useraccount",
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "ledger entries",
                "db_table": "ledger_entries",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["reference_type", "reference_id"],
                        name="idx_ledger_reference",
                    ),
                    models.Index(
                        fields=["user", "created_at"],
                        name="idx_ledger_user_created",
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount", 0), _negated=True),
                        name="ledger_entry_amount_nonzero",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Withdrawal",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Amount transferred in major currency units",
                        max_digits=12,
                    ),
                ),
                (
                    "fee",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Platform fee charged in major currency units",
                        max_digits=12,
                    ),
                ),
                (
                    "total_debited",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Amount plus fee reserved from the balance",
                        max_digits=12,
                    ),
                ),
                (
                    "currency",
                    models.CharField(
                        default="eur",
                        help_text="ISO 4217 currency code",
                        max_length=3,
                    ),
                ),
                (
                    "destination_account_id",
                    models.CharField(
                        help_text="Stripe Connect account ID (acct_xxx)",
                        max_length=255,
                    ),
                ),
                (
                    "state",
                    django_fsm.FSMField(
                        choices=[
                            ("reserved", "Reserved"),
                            ("completed", "Completed"),
                            ("compensated", "Compensated"),
                            ("compensation_failed", "Compensation Failed"),
                        ],
                        db_index=True,
                        default="reserved",
                        help_text="Current state of the withdrawal (managed by FSM)",
                        max_length=30,
                        protected=True,
                    ),
                ),
                (
                    "stripe_transfer_id",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        default="",
                        help_text="Stripe Transfer ID (tr_xxx)",
                        max_length=255,
                    ),
                ),
                (
                    "failure_reason",
                    models.TextField(
                        blank=True,
                        default="",
                        help_text="Why the transfer failed",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        help_text="User whose balance was debited",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="withdrawals",
                        to="payments.useraccount",
                    ),
                ),
            ],
            options={
                "db_table": "withdrawals",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["user", "created_at"],
                        name="idx_withdrawal_user_created",
                    ),
                    models.Index(
                        fields=["state", "created_at"],
                        name="idx_withdrawal_state_created",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="WebhookEvent",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "stripe_event_id",
                    models.CharField(
                        help_text="Stripe Event ID (evt_xxx)",
                        max_length=255,
                        unique=True,
                    ),
                ),
                (
                    "event_type",
                    models.CharField(
                        db_index=True,
                        help_text="Stripe event type (e.g., 'payment_intent.succeeded')",
                        max_length=100,
                    ),
                ),
                (
                    "payload",
                    models.JSONField(
                        help_text="Full webhook payload from Stripe (JSON)",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("processing", "Processing"),
                            ("processed", "Processed"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Current processing status",
                        max_length=20,
                    ),
                ),
                (
                    "processed_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When event was successfully processed",
                        null=True,
                    ),
                ),
                (
                    "error_message",
                    models.TextField(
                        blank=True,
                        help_text="Error message if processing failed",
                        null=True,
                    ),
                ),
                (
                    "retry_count",
                    models.PositiveSmallIntegerField(
                        default=0,
                        help_text="Number of processing attempts",
                    ),
                ),
            ],
            options={
                "verbose_name": "Webhook Event",
                "verbose_name_plural": "Webhook Events",
                "db_table": "webhook_events",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["status", "created_at"],
                        name="idx_webhook_status_created",
                    ),
                    models.Index(
                        fields=["event_type", "created_at"],
                        name="idx_webhook_type_created",
                    ),
                ],
            },
        ),
    ]

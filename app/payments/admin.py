"""
Payment admin configuration.

This file imports admin configurations from the ledger submodule
and registers payment domain models with the Django admin.

Balances, payment status and withdrawal states are read-only here;
they change only through the service layer so the ledger stays in
step with the balances.
"""

from django.contrib import admin

from payments.ledger.admin import LedgerEntryAdmin
from payments.models import Rental, UserAccount, WebhookEvent, Withdrawal

__all__ = [
    "LedgerEntryAdmin",
    "UserAccountAdmin",
    "RentalAdmin",
    "WithdrawalAdmin",
    "WebhookEventAdmin",
]


@admin.register(UserAccount)
class UserAccountAdmin(admin.ModelAdmin):
    """
    Admin configuration for UserAccount.

    Provides visibility into balances and Stripe Connect status.
    """

    list_display = [
        "id",
        "email",
        "account_balance",
        "payout_account_id",
        "payouts_enabled",
        "charges_enabled",
        "created_at",
    ]
    list_filter = ["payouts_enabled", "charges_enabled"]
    search_fields = ["id", "email", "payout_account_id"]
    readonly_fields = [
        "account_balance",
        "payout_account_id",
        "payouts_enabled",
        "charges_enabled",
        "created_at",
        "updated_at",
    ]
    ordering = ["-created_at"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "email"),
            },
        ),
        (
            "Balance",
            {
                "fields": ("account_balance",),
            },
        ),
        (
            "Stripe Connect",
            {
                "fields": ("payout_account_id", "payouts_enabled", "charges_enabled"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )


@admin.register(Rental)
class RentalAdmin(admin.ModelAdmin):
    """Admin configuration for Rental."""

    list_display = [
        "id",
        "owner",
        "payment_status",
        "amount_paid",
        "paid_at",
        "created_at",
    ]
    list_filter = ["payment_status", "created_at"]
    search_fields = ["id", "owner__id", "payment_intent_id"]
    readonly_fields = [
        "payment_status",
        "paid_at",
        "payment_intent_id",
        "amount_paid",
        "created_at",
        "updated_at",
    ]
    ordering = ["-created_at"]


@admin.register(Withdrawal)
class WithdrawalAdmin(admin.ModelAdmin):
    """
    Admin configuration for Withdrawal.

    COMPENSATION_FAILED rows need manual reconciliation against the
    ledger; filter by state to find them.
    """

    list_display = [
        "id",
        "user",
        "amount",
        "fee",
        "total_debited",
        "state",
        "stripe_transfer_id",
        "created_at",
    ]
    list_filter = ["state", "currency", "created_at"]
    search_fields = ["id", "user__id", "stripe_transfer_id", "destination_account_id"]
    readonly_fields = [
        "id",
        "user",
        "amount",
        "fee",
        "total_debited",
        "currency",
        "destination_account_id",
        "state",
        "stripe_transfer_id",
        "failure_reason",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    def has_add_permission(self, request) -> bool:
        return False


@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    """
    Admin configuration for WebhookEvent.

    Provides visibility into webhook processing status.
    Webhook events are immutable once received.
    """

    list_display = [
        "id",
        "stripe_event_id",
        "event_type",
        "status",
        "retry_count",
        "processed_at",
        "created_at",
    ]
    list_filter = ["status", "event_type", "created_at"]
    search_fields = ["id", "stripe_event_id", "event_type"]
    readonly_fields = [
        "id",
        "created_at",
        "updated_at",
        "stripe_event_id",
        "event_type",
        "payload",
        "status",
        "processed_at",
        "error_message",
        "retry_count",
    ]
    ordering = ["-created_at"]

    def has_add_permission(self, request) -> bool:
        return False

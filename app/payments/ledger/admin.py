"""
Django admin configuration for ledger entries.

Ledger entries are the audit trail behind every balance change and are
read-only in the admin. Corrections go through LedgerService as new
entries.
"""

from django.contrib import admin

from .models import LedgerEntry


@admin.register(LedgerEntry)
class LedgerEntryAdmin(admin.ModelAdmin):
    """
    Admin configuration for LedgerEntry.

    Ledger entries are immutable - they cannot be added, edited or
    deleted through the admin interface.
    """

    list_display = [
        "id",
        "created_at",
        "user",
        "entry_type",
        "amount_display",
        "balance_after",
        "reference_type",
        "reference_id",
    ]
    list_filter = ["entry_type", "reference_type", "created_at"]
    search_fields = [
        "id",
        "user__id",
        "idempotency_key",
        "reference_id",
        "description",
    ]
    readonly_fields = [
        "id",
        "created_at",
        "user",
        "amount",
        "balance_after",
        "entry_type",
        "reference_type",
        "reference_id",
        "description",
        "idempotency_key",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    fieldsets = (
        (
            "Entry Details",
            {
                "fields": (
                    "id",
                    "user",
                    "entry_type",
                    "amount",
                    "balance_after",
                    "created_at",
                ),
            },
        ),
        (
            "Reference",
            {
                "fields": (
                    "reference_type",
                    "reference_id",
                    "idempotency_key",
                    "description",
                ),
            },
        ),
    )

    @admin.display(description="Amount")
    def amount_display(self, obj: LedgerEntry) -> str:
        """Display the signed amount with two decimals."""
        return f"{obj.amount:+.2f}"

    def has_delete_permission(self, request, obj=None) -> bool:
        return False

    def has_change_permission(self, request, obj=None) -> bool:
        return False

    def has_add_permission(self, request) -> bool:
        """Entries are only created by LedgerService alongside the balance update."""
        return False

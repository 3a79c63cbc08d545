"""
UserAccount model holding owner balances and payout destinations.

A user is both a potential renter and a potential owner. As an owner they
accumulate an internal balance from settled rentals and withdraw it to
their Stripe Connect account.

Usage:
    from payments.models import UserAccount

    user = UserAccount.objects.get(pk="owner_1")
    user.account_balance        # Decimal("24.50")
    user.has_payout_account     # True once onboarding has started

Note:
    Never assign account_balance and call save(). Balance writes go
    through payments.ledger.LedgerService, which applies deltas with
    F() expressions so concurrent writers cannot overwrite each other.
"""

from __future__ import annotations

from decimal import Decimal

from django.db import models

from core.models import BaseModel


class UserAccount(BaseModel):
    """
    A platform user with an internal ledger balance.

    Fields:
        id: String key assigned by the client application
        email: Contact email, passed to Stripe when creating an account
        payout_account_id: Stripe Connect account (acct_xxx), set at most once
        account_balance: Signed balance in major currency units
        payouts_enabled: Whether Stripe has enabled payouts (account.updated)
        charges_enabled: Whether Stripe has enabled charges (account.updated)

    Lifecycle of payout_account_id:
        1. Empty until the first account link request
        2. Set once with a compare-and-set UPDATE
        3. Never overwritten afterwards
    """

    id = models.CharField(
        primary_key=True,
        max_length=128,
        help_text="User identifier assigned by the client application",
    )

    email = models.EmailField(
        blank=True,
        default="",
        help_text="Contact email passed to Stripe on account creation",
    )

    payout_account_id = models.CharField(
        max_length=255,
        blank=True,
        default="",
        db_index=True,
        help_text="Stripe Connect account ID (acct_xxx), immutable once set",
    )

    account_balance = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Internal ledger balance in major currency units",
    )

    payouts_enabled = models.BooleanField(
        default=False,
        help_text="Whether Stripe has enabled payouts for the account",
    )

    charges_enabled = models.BooleanField(
        default=False,
        help_text="Whether Stripe has enabled charges for the account",
    )

    class Meta:
        db_table = "users"
        ordering = ["-created_at"]
        verbose_name = "User Account"
        verbose_name_plural = "User Accounts"

    def __str__(self) -> str:
        return f"UserAccount({self.id}, balance={self.account_balance})"

    @property
    def has_payout_account(self) -> bool:
        """Check if a Stripe Connect account is on file."""
        return bool(self.payout_account_id)

"""
Account link service for Stripe Connect onboarding.

Owners need a Stripe Connect Express account before they can withdraw.
This service creates the account on first use, binds it to the user
exactly once, and returns a hosted onboarding link. It also applies the
capability flags Stripe reports through account.updated webhooks.

Usage:
    from payments.services import AccountLinkService

    result = AccountLinkService.create_account_link("owner_1")
    result.url          # redirect the owner here
    result.account_id   # acct_xxx, stable across calls
"""

from __future__ import annotations

from dataclasses import dataclass

from django.conf import settings
from django.db.models import Q
from django.utils import timezone

from core.services import BaseService

from payments.adapters import IdempotencyKeyGenerator, StripeAdapter
from payments.exceptions import (
    AccountLinkFailed,
    AccountNotFoundError,
    PaymentValidationError,
    StripeError,
)
from payments.models import UserAccount


@dataclass
class AccountLinkResult:
    """
    Result of an account link request.

    Attributes:
        account_id: The user's Stripe Connect account (acct_xxx)
        url: Hosted onboarding URL
        created: True if the account was created by this call
    """

    account_id: str
    url: str
    created: bool = False


class AccountLinkService(BaseService):
    """
    Service for binding users to Stripe Connect accounts.

    Invariant:
        payout_account_id is written at most once per user. Every write
        is a compare-and-set against the empty value, so two concurrent
        first requests agree on a single account.
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
    def create_account_link(cls, user_id: str) -> AccountLinkResult:
        """
        Return an onboarding link, creating the Connect account if needed.

        Args:
            user_id: User to onboard

        Returns:
            AccountLinkResult with account id and onboarding URL

        Raises:
            PaymentValidationError: Empty user_id
            AccountNotFoundError: User does not exist
            AccountLinkFailed: Stripe failed to create the account or link
        """
        logger = cls.get_logger()

        if not user_id:
            raise PaymentValidationError(
                "userId is required",
                details={"field": "userId"},
            )

        user = UserAccount.objects.filter(pk=user_id).first()
        if user is None:
            raise AccountNotFoundError(
                f"User {user_id} not found",
                details={"user_id": user_id},
            )

        adapter = cls.get_stripe_adapter()
        account_id = user.payout_account_id
        created = False

        if not account_id:
            try:
                account = adapter.create_connected_account(
                    user_id=user_id,
                    idempotency_key=IdempotencyKeyGenerator.generate(
                        operation="create_account",
                        entity_id=user_id,
                    ),
                    email=user.email or None,
                )
            except StripeError as e:
                raise AccountLinkFailed(
                    "Failed to create payout account",
                    details={"user_id": user_id},
                ) from e

            won = UserAccount.objects.filter(
                pk=user_id,
                payout_account_id="",
            ).update(
                payout_account_id=account.id,
                updated_at=timezone.now(),
            )

            if won:
                account_id = account.id
                created = True
                logger.info(
                    "Payout account bound to user",
                    extra={"user_id": user_id, "account_id": account_id},
                )
            else:
                try:
                    account_id = UserAccount.objects.values_list(
                        "payout_account_id", flat=True
                    ).get(pk=user_id)
                except UserAccount.DoesNotExist as e:
                    # Deleted after the first lookup; the new account is orphaned
                    logger.warning(
                        "User deleted while binding payout account",
                        extra={"user_id": user_id, "discarded_account_id": account.id},
                    )
                    raise AccountNotFoundError(
                        f"User {user_id} not found",
                        details={"user_id": user_id},
                    ) from e
                if account_id != account.id:
                    logger.warning(
                        "Concurrent request bound a different payout account, "
                        "discarding ours",
                        extra={
                            "user_id": user_id,
                            "account_id": account_id,
                            "discarded_account_id": account.id,
                        },
                    )

        base_url = settings.FRONTEND_BASE_URL.rstrip("/")
        try:
            link = adapter.create_account_link(
                account_id=account_id,
                refresh_url=f"{base_url}/wallet?refresh=true",
                return_url=(
                    f"{base_url}/wallet?success=true&stripeAccountId={account_id}"
                ),
            )
        except StripeError as e:
            raise AccountLinkFailed(
                "Failed to create onboarding link",
                details={"user_id": user_id, "account_id": account_id},
            ) from e

        return AccountLinkResult(account_id=account_id, url=link.url, created=created)

    @classmethod
    def sync_account_status(
        cls,
        account_id: str,
        payouts_enabled: bool,
        charges_enabled: bool,
        user_id: str | None = None,
    ) -> UserAccount | None:
        """
        Apply capability flags reported by an account.updated event.

        The user is found by user_id (from account metadata) or, failing
        that, by payout_account_id. If the user has no payout account yet
        it is bound to account_id. A user already bound to a different
        account is left untouched.

        Args:
            account_id: Stripe Connect account (acct_xxx)
            payouts_enabled: Current payouts flag from Stripe
            charges_enabled: Current charges flag from Stripe
            user_id: Platform user from account metadata, if present

        Returns:
            The updated UserAccount, or None if nothing was updated
        """
        logger = cls.get_logger()
        log_context = {"account_id": account_id, "user_id": user_id}

        user = None
        if user_id:
            user = UserAccount.objects.filter(pk=user_id).first()
        if user is None:
            user = UserAccount.objects.filter(payout_account_id=account_id).first()
        if user is None:
            logger.warning("No user for connected account", extra=log_context)
            return None

        if user.payout_account_id and user.payout_account_id != account_id:
            logger.warning(
                "User is bound to a different payout account, ignoring update",
                extra={**log_context, "bound_account_id": user.payout_account_id},
            )
            return None

        updated = UserAccount.objects.filter(
            Q(payout_account_id="") | Q(payout_account_id=account_id),
            pk=user.pk,
        ).update(
            payout_account_id=account_id,
            payouts_enabled=payouts_enabled,
            charges_enabled=charges_enabled,
            updated_at=timezone.now(),
        )
        if not updated:
            logger.warning(
                "Payout account changed concurrently, ignoring update",
                extra=log_context,
            )
            return None

        logger.info(
            "Connected account status synced",
            extra={
                **log_context,
                "payouts_enabled": payouts_enabled,
                "charges_enabled": charges_enabled,
            },
        )
        user.refresh_from_db()
        return user

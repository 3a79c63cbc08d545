"""
Webhook event handlers for Stripe events.

This module provides a handler registry, implementations for the Stripe
events the platform reacts to, and process_webhook_event() which runs a
stored event through its handler and records the outcome.

Handler contract:
    - Return ServiceResult.success(...) when the event was applied or
      needs no work
    - Return ServiceResult.failure(...) for permanent problems that a
      redelivery can never fix (malformed payload, missing metadata)
    - Raise for transient problems (missing records, store conflicts);
      the view answers 500 so Stripe redelivers

Usage:
    from payments.webhooks.handlers import dispatch_webhook, register_handler

    @register_handler("custom.event")
    def handle_custom_event(webhook_event: WebhookEvent) -> ServiceResult:
        ...

    result = dispatch_webhook(webhook_event)
"""

from __future__ import annotations

import logging
from typing import Callable

from core.services import ServiceResult

from payments.ledger.types import to_major_units
from payments.models import WebhookEvent
from payments.services import AccountLinkService, SettlementService

logger = logging.getLogger(__name__)


# =============================================================================
# Handler Registry
# =============================================================================


# Maps event type strings to handler functions
WEBHOOK_HANDLERS: dict[str, Callable[[WebhookEvent], ServiceResult]] = {}


def register_handler(event_type: str) -> Callable:
    """
    Decorator to register a webhook event handler.

    Usage:
        @register_handler("payment_intent.succeeded")
        def handle_payment_succeeded(webhook_event: WebhookEvent) -> ServiceResult:
            ...

    Args:
        event_type: The Stripe event type (e.g., "payment_intent.succeeded")

    Returns:
        Decorator function that registers the handler
    """

    def decorator(func: Callable[[WebhookEvent], ServiceResult]) -> Callable:
        WEBHOOK_HANDLERS[event_type] = func
        logger.debug(f"Registered webhook handler for {event_type}")
        return func

    return decorator


def dispatch_webhook(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Dispatch a webhook event to the appropriate handler.

    If no handler is registered, logs and returns success so unknown
    events are acknowledged without side effects.

    Args:
        webhook_event: The WebhookEvent to process

    Returns:
        ServiceResult from the handler, or success if no handler
    """
    handler = WEBHOOK_HANDLERS.get(webhook_event.event_type)

    if not handler:
        logger.info(
            f"No handler registered for event type: {webhook_event.event_type}",
            extra={"stripe_event_id": webhook_event.stripe_event_id},
        )
        return ServiceResult.success(None)

    logger.info(
        f"Dispatching {webhook_event.event_type} to handler",
        extra={"stripe_event_id": webhook_event.stripe_event_id},
    )

    return handler(webhook_event)


def process_webhook_event(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Run a stored event through its handler and record the outcome.

    Marks the event PROCESSING, dispatches it, then marks it PROCESSED
    on success or FAILED on a failure result. Exceptions from the
    handler mark the event FAILED and are re-raised.

    Args:
        webhook_event: The WebhookEvent to process

    Returns:
        ServiceResult from the handler
    """
    if webhook_event.is_processed:
        logger.info(
            "WebhookEvent already processed, skipping",
            extra={"stripe_event_id": webhook_event.stripe_event_id},
        )
        return ServiceResult.success(None)

    webhook_event.mark_processing()
    webhook_event.save()

    try:
        result = dispatch_webhook(webhook_event)
    except Exception as e:
        webhook_event.mark_failed(f"{type(e).__name__}: {e}")
        webhook_event.save()
        raise

    if result.success:
        webhook_event.mark_processed()
    else:
        logger.error(
            "Webhook handler reported permanent failure",
            extra={
                "stripe_event_id": webhook_event.stripe_event_id,
                "event_type": webhook_event.event_type,
                "error": result.error,
                "error_code": result.error_code,
            },
        )
        webhook_event.mark_failed(result.error or "Handler failed")
    webhook_event.save()

    return result


# =============================================================================
# Payment Intent Handlers
# =============================================================================


@register_handler("payment_intent.succeeded")
def handle_payment_intent_succeeded(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Settle a rental when its payment succeeds.

    Reads rentalId and userId from the intent metadata and the amount
    (minor units) from the intent, then hands off to SettlementService.

    Args:
        webhook_event: The WebhookEvent containing the event data

    Returns:
        ServiceResult with the SettlementResult, or a failure for a
        malformed payload

    Raises:
        RentalNotFound, OwnerNotFound, RetryableStoreError: from settlement
    """
    intent = webhook_event.get_object()
    payment_intent_id = intent.get("id") or ""
    metadata = intent.get("metadata") or {}
    rental_id = metadata.get("rentalId")
    amount_minor = intent.get("amount")

    if not rental_id:
        logger.error(
            "payment_intent.succeeded: missing rentalId metadata",
            extra={
                "stripe_event_id": webhook_event.stripe_event_id,
                "payment_intent_id": payment_intent_id,
            },
        )
        return ServiceResult.failure(
            "payment_intent.succeeded without rentalId metadata",
            error_code="INVALID_WEBHOOK_PAYLOAD",
        )

    if not isinstance(amount_minor, int) or isinstance(amount_minor, bool):
        logger.error(
            "payment_intent.succeeded: missing or invalid amount",
            extra={
                "stripe_event_id": webhook_event.stripe_event_id,
                "payment_intent_id": payment_intent_id,
            },
        )
        return ServiceResult.failure(
            "payment_intent.succeeded without a valid amount",
            error_code="INVALID_WEBHOOK_PAYLOAD",
        )

    logger.info(
        "Processing payment_intent.succeeded",
        extra={
            "stripe_event_id": webhook_event.stripe_event_id,
            "payment_intent_id": payment_intent_id,
            "rental_id": rental_id,
        },
    )

    result = SettlementService.settle_payment(
        rental_id=rental_id,
        amount=to_major_units(amount_minor),
        payment_intent_id=payment_intent_id,
        payer_id=metadata.get("userId"),
    )
    return ServiceResult.success(result)


# =============================================================================
# Connect Account Handlers
# =============================================================================


@register_handler("account.updated")
def handle_account_updated(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Handle connected account updates from Stripe.

    Fired when a Connected Account's capabilities change, for example
    when onboarding completes and payouts become enabled.

    Args:
        webhook_event: The WebhookEvent containing the event data

    Returns:
        ServiceResult with the updated user id (None if no user matched)
    """
    account = webhook_event.get_object()
    account_id = account.get("id")

    if not account_id:
        logger.error(
            "account.updated: Could not extract account_id",
            extra={"stripe_event_id": webhook_event.stripe_event_id},
        )
        return ServiceResult.failure(
            "Could not extract account_id from webhook",
            error_code="INVALID_WEBHOOK_PAYLOAD",
        )

    metadata = account.get("metadata") or {}
    # yourAppUserId is set on accounts created before the userId key
    user_id = metadata.get("userId") or metadata.get("yourAppUserId")

    user = AccountLinkService.sync_account_status(
        account_id=account_id,
        payouts_enabled=bool(account.get("payouts_enabled", False)),
        charges_enabled=bool(account.get("charges_enabled", False)),
        user_id=user_id,
    )
    return ServiceResult.success(user.pk if user else None)

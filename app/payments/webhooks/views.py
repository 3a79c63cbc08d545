"""
Webhook endpoint views for Stripe.

This module provides the HTTP endpoint for receiving Stripe webhooks.
The view:
1. Verifies the webhook signature against the raw body
2. Creates/retrieves the WebhookEvent record (idempotent)
3. Processes the event synchronously through the handler registry
4. Acknowledges only after the handler's transaction has committed

Processing happens inside the request so that a failure can be answered
with a 5xx and Stripe redelivers the event.

Usage:
    # In urls.py
    from payments.webhooks.views import stripe_webhook

    urlpatterns = [
        path("webhook/", stripe_webhook, name="stripe_webhook"),
    ]
"""

from __future__ import annotations

import logging

from django.db import DatabaseError
from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from payments.adapters import StripeAdapter
from payments.exceptions import (
    PaymentNotFoundError,
    RetryableStoreError,
    WebhookSignatureError,
)
from payments.models import WebhookEvent
from payments.state_machines import WebhookEventStatus
from payments.webhooks.handlers import process_webhook_event

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def stripe_webhook(request: HttpRequest) -> JsonResponse:
    """
    Receive and process Stripe webhook events.

    Security:
    - Signature verification prevents spoofed webhooks
    - CSRF exemption required for external webhooks
    - Only POST requests accepted

    Idempotency:
    - WebhookEvent.stripe_event_id is unique
    - Events already PROCESSED return 200 without reprocessing
    - Settlement re-checks the rental status on every delivery

    Returns:
        JsonResponse with status:
        - 200: Event processed, ignored, or permanently unprocessable
        - 400: Missing/invalid signature or payload
        - 500: Transient failure, Stripe should redeliver

    Example Stripe-Signature header:
        t=1614556800,v1=xxx,v0=yyy
    """
    payload = request.body
    signature = request.headers.get("Stripe-Signature", "")

    if not signature:
        logger.warning("Webhook received without Stripe-Signature header")
        return JsonResponse({"error": "Missing signature"}, status=400)

    # Step 1: Verify signature
    try:
        event_data = StripeAdapter.verify_webhook_signature(payload, signature)
    except WebhookSignatureError as e:
        logger.warning(
            "Webhook signature verification failed",
            extra={"error": str(e)},
        )
        return JsonResponse({"error": "Invalid signature"}, status=400)
    except Exception as e:
        logger.error(
            f"Unexpected error verifying webhook: {type(e).__name__}",
            exc_info=True,
        )
        return JsonResponse({"error": "Verification error"}, status=400)

    stripe_event_id = event_data.get("id")
    event_type = event_data.get("type")

    if not stripe_event_id or not event_type:
        logger.warning("Webhook missing required fields")
        return JsonResponse({"error": "Invalid event"}, status=400)

    log_context = {"stripe_event_id": stripe_event_id, "event_type": event_type}
    logger.info(f"Received Stripe webhook: {event_type}", extra=log_context)

    try:
        # Step 2: Create/get WebhookEvent (idempotent)
        webhook_event, created = WebhookEvent.objects.get_or_create(
            stripe_event_id=stripe_event_id,
            defaults={
                "event_type": event_type,
                "payload": event_data,
                "status": WebhookEventStatus.PENDING,
            },
        )

        if not created and webhook_event.is_processed:
            logger.info(
                "Webhook already processed, returning success",
                extra=log_context,
            )
            return JsonResponse({"received": True})

        # Step 3: Process synchronously
        result = process_webhook_event(webhook_event)

    except (PaymentNotFoundError, RetryableStoreError) as e:
        logger.warning(
            "Webhook processing failed, requesting redelivery",
            extra={**log_context, "error_code": e.error_code},
        )
        return JsonResponse(e.to_dict(), status=500)
    except DatabaseError:
        logger.error(
            "Database error while processing webhook",
            extra=log_context,
            exc_info=True,
        )
        return JsonResponse({"error": "Server error"}, status=500)
    except Exception as e:
        logger.error(
            f"Unexpected error processing webhook: {type(e).__name__}",
            extra=log_context,
            exc_info=True,
        )
        return JsonResponse({"error": "Server error"}, status=500)

    if not result.success:
        # Redelivery cannot fix a malformed event; acknowledge it
        return JsonResponse({"received": True, "processed": False})

    return JsonResponse({"received": True})

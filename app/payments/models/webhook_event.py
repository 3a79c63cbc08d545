"""
WebhookEvent model for Stripe webhook event tracking.

Stores every verified webhook event received from Stripe for audit and
to short-circuit redelivery of events that were already processed.

Usage:
    from payments.models import WebhookEvent

    event, created = WebhookEvent.objects.get_or_create(
        stripe_event_id="evt_1234567890",
        defaults={
            "event_type": "payment_intent.succeeded",
            "payload": webhook_payload,
        },
    )

    if event.is_processed:
        return JsonResponse({"received": True})
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import WebhookEventStatus


class WebhookEvent(UUIDPrimaryKeyMixin, BaseModel):
    """
    Tracks Stripe webhook events.

    Processing Flow:
        1. Webhook arrives, verify Stripe signature
        2. Get or create WebhookEvent by stripe_event_id
        3. If PROCESSED -> return 200 (duplicate delivery)
        4. Set status to PROCESSING
        5. Route to the registered handler
        6. Set status to PROCESSED or FAILED
        7. If FAILED with a retryable error, answer 500 so Stripe redelivers

    Fields:
        stripe_event_id: Unique Stripe Event ID (evt_xxx)
        event_type: Type of webhook event
        payload: Full JSON payload from Stripe
        status: Processing status
        processed_at: When event was successfully processed
        error_message: Error details if processing failed
        retry_count: Number of processing attempts

    Note:
        The rental payment_status guard is the authoritative settlement
        idempotency check; this table only avoids redundant work.
    """

    stripe_event_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Stripe Event ID (evt_xxx)",
    )

    event_type = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Stripe event type (e.g., 'payment_intent.succeeded')",
    )

    payload = models.JSONField(
        help_text="Full webhook payload from Stripe (JSON)",
    )

    status = models.CharField(
        max_length=20,
        choices=WebhookEventStatus.choices,
        default=WebhookEventStatus.PENDING,
        db_index=True,
        help_text="Current processing status",
    )

    processed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When event was successfully processed",
    )

    error_message = models.TextField(
        null=True,
        blank=True,
        help_text="Error message if processing failed",
    )

    retry_count = models.PositiveSmallIntegerField(
        default=0,
        help_text="Number of processing attempts",
    )

    class Meta:
        db_table = "webhook_events"
        ordering = ["-created_at"]
        verbose_name = "Webhook Event"
        verbose_name_plural = "Webhook Events"
        indexes = [
            models.Index(fields=["status", "created_at"], name="idx_webhook_status_created"),
            models.Index(fields=["event_type", "created_at"], name="idx_webhook_type_created"),
        ]

    def __str__(self) -> str:
        return f"WebhookEvent({self.stripe_event_id}, {self.event_type})"

    @property
    def is_processed(self) -> bool:
        """Check if event has been successfully processed."""
        return self.status == WebhookEventStatus.PROCESSED

    def mark_processing(self) -> None:
        """
        Mark event as being processed.

        Note: Does not save - caller must save after calling.
        """
        self.status = WebhookEventStatus.PROCESSING
        self.retry_count += 1

    def mark_processed(self) -> None:
        """
        Mark event as successfully processed.

        Note: Does not save - caller must save after calling.
        """
        self.status = WebhookEventStatus.PROCESSED
        self.processed_at = timezone.now()
        self.error_message = None

    def mark_failed(self, error_message: str) -> None:
        """
        Mark event as failed with error message.

        Note: Does not save - caller must save after calling.
        """
        self.status = WebhookEventStatus.FAILED
        self.error_message = error_message

    def get_object(self) -> dict:
        """Return payload.data.object, or an empty dict if absent."""
        try:
            obj = self.payload.get("data", {}).get("object", {})
        except (AttributeError, TypeError):
            return {}
        return obj if isinstance(obj, dict) else {}

    def get_object_id(self) -> str | None:
        """Extract the primary object ID (e.g. pi_xxx) from the payload."""
        return self.get_object().get("id")

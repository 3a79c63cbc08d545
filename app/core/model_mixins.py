"""
Model mixins providing reusable functionality for Django models.

Available Mixins:
    UUIDPrimaryKeyMixin: Use UUID as primary key

Usage:
    from core.models import BaseModel
    from core.model_mixins import UUIDPrimaryKeyMixin

    class WebhookEvent(UUIDPrimaryKeyMixin, BaseModel):
        stripe_event_id = models.CharField(max_length=255, unique=True)

Note:
    Records keyed by identifiers that come from clients (users, rentals)
    use string primary keys instead. The UUID key is for rows the service
    creates itself, such as audit records.
"""

from __future__ import annotations

import uuid

from django.db import models


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use UUID as primary key instead of auto-increment integer.

    Fields:
        id: UUIDField as primary key (auto-generated)

    Note:
        The key can be generated before insert, which lets a withdrawal
        derive its Stripe idempotency key from its own id.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
    )

    class Meta:
        abstract = True

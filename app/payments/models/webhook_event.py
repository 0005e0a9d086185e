"""
WebhookEvent model for carrier webhook deduplication.

The idempotency key "<provider>:<event_id>" is unique. Ingestion inserts
the row first and runs side effects only when the insert succeeded, so a
redelivered event is recognized by the database rather than by a
check-then-act race.

Usage:
    event = WebhookEvent.objects.create(
        provider="cargus",
        event_id="E1",
        idempotency_key=WebhookEvent.build_key("cargus", "E1"),
        ...
    )  # IntegrityError on redelivery
"""

from __future__ import annotations

from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from payments.state_machines import WebhookOutcome


class WebhookEvent(UUIDPrimaryKeyMixin, BaseModel):
    """
    One unique carrier event.

    Fields:
        provider: Carrier that sent the event
        event_id: Carrier's own event id
        idempotency_key: "<provider>:<event_id>" (unique)
        order_ref: Order id as sent by the carrier (may not exist)
        normalized_status: Carrier status mapped to our vocabulary
        payload: Request body with secrets redacted
        outcome: OK or ERROR once processed
        error_message: Why processing could not apply the event
        processed_at: When side effects finished
    """

    provider = models.CharField(max_length=50)
    event_id = models.CharField(max_length=255)
    idempotency_key = models.CharField(
        max_length=310,
        unique=True,
        help_text="provider:event_id",
    )
    order_ref = models.CharField(max_length=64, db_index=True)
    normalized_status = models.CharField(max_length=50)
    payload = models.JSONField(default=dict, blank=True)
    outcome = models.CharField(
        max_length=20,
        choices=WebhookOutcome.choices,
        default=WebhookOutcome.OK,
    )
    error_message = models.TextField(blank=True, default="")
    processed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Webhook Event"
        verbose_name_plural = "Webhook Events"
        constraints = [
            models.UniqueConstraint(
                fields=["provider", "event_id"],
                name="webhook_event_provider_event_unique",
            ),
        ]

    def __str__(self) -> str:
        return f"WebhookEvent({self.idempotency_key}, {self.outcome})"

    @staticmethod
    def build_key(provider: str, event_id: str) -> str:
        return f"{provider}:{event_id}"

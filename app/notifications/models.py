"""
Outbox model for notifications.

OutboxMessage rows are inserted inside the transaction that performs the
state change they describe, so a message exists if and only if the change
committed. The dispatcher moves them PENDING -> DISPATCHING -> DISPATCHED,
or back to PENDING for another attempt, or to FAILED once attempts run out.
"""

from __future__ import annotations

from django.core.serializers.json import DjangoJSONEncoder
from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class OutboxTopic(models.TextChoices):
    ORDER_STATUS_CHANGED = "order.status_changed", "Order Status Changed"
    ORDER_DELIVERED = "order.delivered", "Order Delivered"
    PAYOUT_READY = "payout.ready", "Payout Ready"
    SETTLEMENT_STATUS_CHANGED = (
        "settlement.status_changed",
        "Settlement Status Changed",
    )
    SETTLEMENT_FAILED = "settlement.failed", "Settlement Failed"
    SETTLEMENT_STALE = "settlement.stale", "Settlement Stuck In Processing"


class OutboxStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    DISPATCHING = "dispatching", "Dispatching"
    DISPATCHED = "dispatched", "Dispatched"
    FAILED = "failed", "Failed"


class OutboxMessage(UUIDPrimaryKeyMixin, BaseModel):
    """
    One outbound notification waiting to be delivered.

    Fields:
        topic: What happened (OutboxTopic)
        payload: Ids and values handlers need; JSON-serializable
        status: Dispatch status
        attempts: Number of dispatch attempts so far
        last_error: Error from the most recent failed attempt
        dispatched_at: When a handler completed successfully
    """

    topic = models.CharField(
        max_length=50,
        choices=OutboxTopic.choices,
        db_index=True,
    )
    payload = models.JSONField(default=dict, encoder=DjangoJSONEncoder)
    status = models.CharField(
        max_length=20,
        choices=OutboxStatus.choices,
        default=OutboxStatus.PENDING,
        db_index=True,
    )
    attempts = models.PositiveIntegerField(default=0)
    last_error = models.TextField(blank=True, default="")
    dispatched_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(
                fields=["status", "created_at"], name="outbox_status_created_idx"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.topic} ({self.status})"

"""
Audit log model.

AuditLogEntry is append-only: instances may be inserted but never saved
again, and neither instances nor querysets may be deleted or bulk-updated
through the ORM. Retention purges are run out-of-band with raw SQL by
housekeeping tooling outside this project.

Usage:
    from audit.services import AuditService

    AuditService.record(
        action=AuditAction.STATUS_CHANGE,
        entity_type=AuditEntityType.ORDER,
        entity_id=order.id,
        metadata={"from": "shipped", "to": "delivered"},
    )
"""

from __future__ import annotations

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.utils import timezone

from audit.exceptions import AuditLogImmutableError
from core.model_mixins import UUIDPrimaryKeyMixin


class AuditAction(models.TextChoices):
    """Actions recorded in the audit trail."""

    STATUS_CHANGE = "status_change", "Order Status Change"
    WEBHOOK_UPDATE = "webhook_update", "Carrier Webhook Update"
    PAYOUT_CREATED = "payout_created", "Payout Created"
    PAYOUT_APPROVAL_REQUESTED = (
        "payout_approval_requested",
        "Payout Approval Requested",
    )
    PAYOUT_APPROVED = "payout_approved", "Payout Approved"
    PAYOUT_PAID = "payout_paid", "Payout Paid"
    PAYOUT_FAILED = "payout_failed", "Payout Failed"
    PAYOUT_MARKED_PAID_MANUALLY = (
        "payout_marked_paid_manually",
        "Payout Marked Paid Manually",
    )
    REFUND_CREATED = "refund_created", "Refund Created"
    REFUND_REFUNDED = "refund_refunded", "Refund Completed"
    REFUND_FAILED = "refund_failed", "Refund Failed"
    PAYOUT_BATCH_STARTED = "payout_batch_started", "Payout Batch Started"
    PAYOUT_BATCH_COMPLETED = "payout_batch_completed", "Payout Batch Completed"
    SETTLEMENT_STALE = "settlement_stale", "Settlement Stuck In Processing"


class AuditEntityType(models.TextChoices):
    """Kinds of records an audit entry can refer to."""

    ORDER = "order", "Order"
    PAYOUT = "payout", "Payout"
    REFUND = "refund", "Refund"
    WEBHOOK_EVENT = "webhook_event", "Webhook Event"
    PAYOUT_BATCH = "payout_batch", "Payout Batch"


class AuditLogQuerySet(models.QuerySet):
    """QuerySet that refuses bulk mutation of audit rows."""

    def update(self, **kwargs):
        raise AuditLogImmutableError("Audit log entries cannot be updated")

    def delete(self):
        raise AuditLogImmutableError("Audit log entries cannot be deleted")


class AuditLogEntry(UUIDPrimaryKeyMixin, models.Model):
    """
    One immutable fact about something that happened.

    Fields:
        actor: User who caused the entry; null for system-originated entries
        action: What happened (AuditAction)
        entity_type / entity_id: The record it happened to
        message: Human-readable summary
        metadata: Structured context (from/to states, provider ids, counts)
        created_at: When it was recorded
    """

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="audit_entries",
        help_text="User who performed the action (null for system)",
    )
    action = models.CharField(
        max_length=50,
        choices=AuditAction.choices,
        db_index=True,
    )
    entity_type = models.CharField(
        max_length=30,
        choices=AuditEntityType.choices,
    )
    entity_id = models.CharField(
        max_length=64,
        help_text="Primary key of the referenced record, as text",
    )
    message = models.TextField(blank=True, default="")
    metadata = models.JSONField(
        default=dict,
        blank=True,
        encoder=DjangoJSONEncoder,
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    objects = AuditLogQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "audit log entry"
        verbose_name_plural = "audit log entries"
        indexes = [
            models.Index(
                fields=["entity_type", "entity_id"], name="audit_entity_idx"
            ),
            models.Index(
                fields=["action", "entity_id"], name="audit_action_entity_idx"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.action} {self.entity_type}:{self.entity_id}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise AuditLogImmutableError(
                "Audit log entries cannot be updated",
                details={"entry_id": str(self.pk)},
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise AuditLogImmutableError(
            "Audit log entries cannot be deleted",
            details={"entry_id": str(self.pk)},
        )

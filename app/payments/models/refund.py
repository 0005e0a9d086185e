"""
Refund model for money returned to buyers.

One refund per order. Whether a payout for the same order had already
been paid is computed while the refund is finalized, under a lock on the
order row, and stored in was_post_payout.

Usage:
    from payments.models import Refund

    refund = Refund.objects.create(
        order=order,
        amount_cents=2500,
        reason="Damaged in transit",
    )
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import F
from django.utils import timezone
from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from payments.state_machines import RUNNABLE_REFUND_STATUSES, RefundStatus


class RefundQuerySet(models.QuerySet):
    def claim(self, refund_id) -> bool:
        """Move a runnable refund to PROCESSING; True only for the winner."""
        now = timezone.now()
        updated = self.filter(
            pk=refund_id,
            status__in=RUNNABLE_REFUND_STATUSES,
        ).update(
            status=RefundStatus.PROCESSING,
            processing_started_at=now,
            runs=F("runs") + 1,
            failure_reason="",
            updated_at=now,
        )
        return updated == 1

    def processing_since(self, cutoff):
        return self.filter(
            status=RefundStatus.PROCESSING,
            processing_started_at__lt=cutoff,
        )


class Refund(UUIDPrimaryKeyMixin, BaseModel):
    """
    Money returned to the buyer of an order.

    State Flow:
        PENDING -> PROCESSING -> REFUNDED
        PENDING -> PROCESSING -> FAILED -> PROCESSING (re-run)

    Fields:
        order: Order being refunded (unique)
        amount_cents: Amount to return, at most the order total
        currency: ISO 4217 currency code
        reason: Why the refund was requested
        requested_by: Admin who requested it
        status: Current FSM status
        provider / provider_ref: Who executed it and their reference
        attempts: Provider calls made during the last run
        runs: How many times the record was claimed for execution
        was_post_payout: Whether the order's payout was already paid when
            the refund completed (None until refunded)
        processing_started_at, refunded_at, failed_at: Timestamps
        failure_reason: Human-readable reason of the last failure
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="refunds",
    )
    amount_cents = models.PositiveBigIntegerField(
        help_text="Refund amount in smallest currency unit",
    )
    currency = models.CharField(max_length=3, default="RON")
    reason = models.TextField(blank=True, default="")
    requested_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="refunds_requested",
    )

    status = FSMField(
        default=RefundStatus.PENDING,
        choices=RefundStatus.choices,
        db_index=True,
        help_text="Current status of the refund (managed by FSM)",
    )

    provider = models.CharField(max_length=30, blank=True, default="")
    provider_ref = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        unique=True,
        help_text="Provider refund reference",
    )
    attempts = models.PositiveIntegerField(default=0)
    runs = models.PositiveIntegerField(
        default=0,
        help_text="Number of times the record was claimed for execution",
    )
    was_post_payout = models.BooleanField(
        null=True,
        blank=True,
        help_text="Payout for this order was already paid when the refund completed",
    )

    processing_started_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)
    failed_at = models.DateTimeField(null=True, blank=True)
    failure_reason = models.TextField(blank=True, default="")

    objects = RefundQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Refund"
        verbose_name_plural = "Refunds"
        constraints = [
            models.UniqueConstraint(fields=["order"], name="refund_one_per_order"),
            models.CheckConstraint(
                condition=models.Q(amount_cents__gt=0),
                name="refund_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        amount_display = f"{self.amount_cents / 100:.2f} {self.currency}"
        return f"Refund({self.id}, {self.status}, {amount_display})"

    @transition(field=status, source=RefundStatus.PROCESSING, target=RefundStatus.REFUNDED)
    def complete(self, provider_ref: str, was_post_payout: bool, attempts: int = 1):
        """Provider accepted the refund."""
        self.provider_ref = provider_ref
        self.was_post_payout = was_post_payout
        self.attempts = attempts
        self.refunded_at = timezone.now()
        self.failed_at = None
        self.failure_reason = ""

    @transition(field=status, source=RefundStatus.PROCESSING, target=RefundStatus.FAILED)
    def fail(self, reason: str, attempts: int = 1):
        """Provider call failed; the refund stays re-runnable."""
        self.failure_reason = reason
        self.attempts = attempts
        self.failed_at = timezone.now()

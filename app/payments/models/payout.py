"""
Payout model for seller disbursements.

A Payout is the platform's obligation to pay a seller for one delivered
order. Exactly one exists per order, enforced by a unique constraint so
concurrent delivery signals cannot create two.

Usage:
    from payments.models import Payout

    # Claim for execution (conditional update, never an FSM save)
    if not Payout.objects.claim(payout.id):
        raise SettlementInProgressError(...)

    # After the provider call, under select_for_update
    payout.complete(provider_ref="tr_123")
    payout.save()
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import F
from django.utils import timezone
from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from payments.state_machines import RUNNABLE_PAYOUT_STATUSES, PayoutStatus


class PayoutQuerySet(models.QuerySet):
    def claim(self, payout_id) -> bool:
        """
        Move a runnable payout to PROCESSING.

        Returns True only for the single caller whose UPDATE matched;
        every concurrent caller observes zero rows and must back off.
        """
        now = timezone.now()
        updated = self.filter(
            pk=payout_id,
            status__in=RUNNABLE_PAYOUT_STATUSES,
        ).update(
            status=PayoutStatus.PROCESSING,
            processing_started_at=now,
            runs=F("runs") + 1,
            failure_reason="",
            updated_at=now,
        )
        return updated == 1

    def processing_since(self, cutoff):
        """Payouts stuck in PROCESSING since before `cutoff`."""
        return self.filter(
            status=PayoutStatus.PROCESSING,
            processing_started_at__lt=cutoff,
        )


class Payout(UUIDPrimaryKeyMixin, BaseModel):
    """
    Money owed to a seller for one delivered order.

    State Flow:
        PENDING -> PROCESSING -> PAID
        PENDING -> PROCESSING -> FAILED -> PROCESSING (re-run)
        PENDING/FAILED/PROCESSING -> PAID (manual override)

    Fields:
        order: Delivered order this payout settles (unique)
        seller: Seller being paid
        amount_cents: Seller due (order total minus commission)
        commission_cents: Commission withheld by the platform
        currency: ISO 4217 currency code
        destination: Payout destination captured at checkout
        status: Current FSM status
        provider: Provider that executed the last run
        provider_ref: Provider reference once paid
        attempts: Provider calls made during the last run
        runs: How many times the record was claimed for execution
        processing_started_at: When the current/last run claimed the row
        paid_at / failed_at: Outcome timestamps
        failure_reason: Human-readable reason of the last failure
        metadata: Extra context (manual override details)

    Note:
        There is deliberately no "approved" field. Approval is the
        presence of a payout_approved audit entry.
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="payouts",
    )
    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="payouts",
    )

    # ==========================================================================
    # Amount & Destination
    # ==========================================================================

    amount_cents = models.PositiveBigIntegerField(
        help_text="Payout amount in smallest currency unit",
    )
    commission_cents = models.PositiveBigIntegerField(default=0)
    currency = models.CharField(max_length=3, default="RON")
    destination = models.CharField(max_length=255, blank=True, default="")

    # ==========================================================================
    # State
    # ==========================================================================

    status = FSMField(
        default=PayoutStatus.PENDING,
        choices=PayoutStatus.choices,
        db_index=True,
        help_text="Current status of the payout (managed by FSM)",
    )

    # ==========================================================================
    # Provider Integration
    # ==========================================================================

    provider = models.CharField(max_length=30, blank=True, default="")
    provider_ref = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        unique=True,
        help_text="Provider transfer reference",
    )
    attempts = models.PositiveIntegerField(default=0)
    runs = models.PositiveIntegerField(
        default=0,
        help_text="Number of times the record was claimed for execution",
    )

    # ==========================================================================
    # Timestamps & Error Info
    # ==========================================================================

    processing_started_at = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    failed_at = models.DateTimeField(null=True, blank=True)
    failure_reason = models.TextField(blank=True, default="")
    metadata = models.JSONField(default=dict, blank=True)

    objects = PayoutQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payout"
        verbose_name_plural = "Payouts"
        constraints = [
            models.UniqueConstraint(fields=["order"], name="payout_one_per_order"),
            models.CheckConstraint(
                condition=models.Q(amount_cents__gt=0),
                name="payout_amount_positive",
            ),
        ]
        indexes = [
            models.Index(fields=["status", "created_at"], name="payout_status_created_idx"),
        ]

    def __str__(self) -> str:
        amount_display = f"{self.amount_cents / 100:.2f} {self.currency}"
        return f"Payout({self.id}, {self.status}, {amount_display})"

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(field=status, source=PayoutStatus.PROCESSING, target=PayoutStatus.PAID)
    def complete(self, provider_ref: str, attempts: int = 1):
        """Provider accepted the transfer."""
        self.provider_ref = provider_ref
        self.attempts = attempts
        self.paid_at = timezone.now()
        self.failed_at = None
        self.failure_reason = ""

    @transition(field=status, source=PayoutStatus.PROCESSING, target=PayoutStatus.FAILED)
    def fail(self, reason: str, attempts: int = 1):
        """Provider call failed; the payout stays re-runnable."""
        self.failure_reason = reason
        self.attempts = attempts
        self.failed_at = timezone.now()

    @transition(
        field=status,
        source=[PayoutStatus.PENDING, PayoutStatus.FAILED, PayoutStatus.PROCESSING],
        target=PayoutStatus.PAID,
    )
    def mark_paid_manually(self, provider_ref: str | None, reason: str, actor_id=None):
        """
        Privileged override for money moved outside the engine.

        Transition: PENDING/FAILED/PROCESSING -> PAID
        """
        if provider_ref:
            self.provider_ref = provider_ref
        self.paid_at = timezone.now()
        self.failure_reason = ""
        self.metadata = {
            **(self.metadata or {}),
            "manual_override": {
                "reason": reason,
                "actor_id": actor_id,
                "provider_ref": provider_ref,
            },
        }

    # ==========================================================================
    # Properties
    # ==========================================================================

    @property
    def is_paid(self) -> bool:
        return self.status == PayoutStatus.PAID

    @property
    def is_runnable(self) -> bool:
        return self.status in RUNNABLE_PAYOUT_STATUSES

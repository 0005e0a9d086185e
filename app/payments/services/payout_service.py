"""
Payout service for seller disbursements.

This module owns the payout lifecycle:
    - Creation when an order reaches delivered (one per order)
    - Approval request and approval (recorded only in the audit trail)
    - Execution against the settlement provider with bounded retry
    - Manual "mark paid" override
    - Eligibility queries for batch runs and banking exports

Execution follows a claim / call / record pattern:
    1. Claim: conditional UPDATE pending|failed -> processing. Exactly one
       concurrent caller wins; everyone else is refused.
    2. Call: provider call with retry, outside any transaction or lock.
    3. Record: lock the order and payout rows, apply complete() or fail(),
       append the audit entry and outbox messages in one transaction.

Usage:
    from payments.services import PayoutService

    PayoutService.approve(payout.id, actor=admin)
    result = PayoutService.run_payout(payout.id, actor=admin)
    if not result.success:
        logger.warning(result.failure_reason)
"""

from __future__ import annotations

import datetime as dt
import uuid
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone
from django_fsm import TransitionNotAllowed

from audit.models import AuditAction, AuditEntityType, AuditLogEntry
from audit.services import AuditService
from core.exceptions import PermissionDeniedError
from core.services import BaseService
from notifications.models import OutboxTopic
from notifications.services import OutboxService
from orders.models import Order
from payments.adapters import (
    IdempotencyKeyGenerator,
    PayoutRequest,
    call_with_retry,
    get_settlement_provider,
)
from payments.exceptions import (
    InvalidSettlementStateError,
    NotApprovedError,
    ProviderError,
    SettlementInProgressError,
    SettlementNotFoundError,
)
from payments.models import Payout
from payments.services.types import SettlementRunResult
from payments.state_machines import PayoutStatus, SettlementType

if TYPE_CHECKING:
    from collections.abc import Callable

    from payments.adapters import RetryOutcome, SettlementProvider


class PayoutService(BaseService):
    """Create, approve and execute seller payouts."""

    # =========================================================================
    # Creation
    # =========================================================================

    @classmethod
    def create_for_delivered_order(cls, order: Order, actor=None) -> tuple[Payout | None, bool]:
        """
        Create the payout for a delivered order, at most once.

        Runs inside the caller's transaction. The insert is wrapped in a
        savepoint so that losing the race on the unique order constraint
        leaves the outer transaction usable.

        Returns:
            (payout, created). payout is None when nothing is owed.
        """
        logger = cls.get_logger()
        amount_cents = order.seller_due_cents
        if amount_cents <= 0:
            logger.warning(
                "Delivered order has nothing due to seller, no payout created",
                extra={"order_id": str(order.id), "amount_cents": amount_cents},
            )
            return None, False

        try:
            with transaction.atomic():
                payout = Payout.objects.create(
                    order=order,
                    seller_id=order.seller_id,
                    amount_cents=amount_cents,
                    commission_cents=order.commission_cents,
                    currency=order.currency,
                    destination=order.payout_destination,
                )
        except IntegrityError:
            existing = Payout.objects.get(order=order)
            logger.info(
                "Payout already exists for order",
                extra={"order_id": str(order.id), "payout_id": str(existing.id)},
            )
            return existing, False

        AuditService.record(
            action=AuditAction.PAYOUT_CREATED,
            entity_type=AuditEntityType.PAYOUT,
            entity_id=payout.id,
            actor=actor,
            message=f"Payout created for delivered order {order.id}",
            metadata={
                "order_id": str(order.id),
                "seller_id": order.seller_id,
                "amount_cents": amount_cents,
                "commission_cents": order.commission_cents,
                "currency": order.currency,
            },
        )
        OutboxService.enqueue(
            OutboxTopic.PAYOUT_READY,
            {
                "payout_id": str(payout.id),
                "order_id": str(order.id),
                "seller_id": order.seller_id,
                "amount_cents": amount_cents,
                "currency": order.currency,
            },
        )
        logger.info(
            "Payout created",
            extra={
                "payout_id": str(payout.id),
                "order_id": str(order.id),
                "amount_cents": amount_cents,
            },
        )
        return payout, True

    # =========================================================================
    # Approval
    # =========================================================================

    @classmethod
    def request_approval(cls, payout_id, actor, note: str = "") -> AuditLogEntry:
        """
        Record that a payout is ready for a second person to approve.

        Raises:
            SettlementNotFoundError: Unknown payout
            InvalidSettlementStateError: Payout already paid or approved
        """
        payout = cls._get_payout(payout_id)
        if payout.status == PayoutStatus.PAID:
            raise InvalidSettlementStateError(
                "Paid payouts do not need approval",
                details={"payout_id": str(payout.id), "status": payout.status},
            )
        if AuditService.is_payout_approved(payout.id):
            raise InvalidSettlementStateError(
                "Payout is already approved",
                details={"payout_id": str(payout.id)},
            )

        entry = AuditService.record(
            action=AuditAction.PAYOUT_APPROVAL_REQUESTED,
            entity_type=AuditEntityType.PAYOUT,
            entity_id=payout.id,
            actor=actor,
            message=note or "Payout approval requested",
            metadata={"order_id": str(payout.order_id), "amount_cents": payout.amount_cents},
        )
        cls.get_logger().info(
            "Payout approval requested",
            extra={"payout_id": str(payout.id), "actor_id": getattr(actor, "pk", None)},
        )
        return entry

    @classmethod
    def approve(cls, payout_id, actor, note: str = "") -> AuditLogEntry:
        """
        Approve a payout for execution.

        Idempotent: approving an approved payout returns the existing entry.
        When an approval request exists, its requester cannot approve.

        Raises:
            SettlementNotFoundError: Unknown payout
            InvalidSettlementStateError: Payout already paid
            PermissionDeniedError: Approver is the requester
        """
        payout = cls._get_payout(payout_id)
        logger = cls.get_logger()

        existing = AuditLogEntry.objects.filter(
            action=AuditAction.PAYOUT_APPROVED,
            entity_type=AuditEntityType.PAYOUT,
            entity_id=str(payout.id),
        ).first()
        if existing is not None:
            logger.info("Payout already approved", extra={"payout_id": str(payout.id)})
            return existing

        if payout.status == PayoutStatus.PAID:
            raise InvalidSettlementStateError(
                "Paid payouts cannot be approved",
                details={"payout_id": str(payout.id), "status": payout.status},
            )

        request_entry = AuditService.get_approval_request(payout.id)
        if (
            request_entry is not None
            and request_entry.actor_id is not None
            and request_entry.actor_id == getattr(actor, "pk", None)
        ):
            raise PermissionDeniedError(
                "A payout cannot be approved by the person who requested it",
                error_code="SAME_REQUESTER_APPROVER",
                details={"payout_id": str(payout.id)},
            )

        entry = AuditService.record(
            action=AuditAction.PAYOUT_APPROVED,
            entity_type=AuditEntityType.PAYOUT,
            entity_id=payout.id,
            actor=actor,
            message=note or "Payout approved for execution",
            metadata={
                "order_id": str(payout.order_id),
                "amount_cents": payout.amount_cents,
                "currency": payout.currency,
                "requested_by": request_entry.actor_id if request_entry else None,
            },
        )
        logger.info(
            "Payout approved",
            extra={"payout_id": str(payout.id), "actor_id": getattr(actor, "pk", None)},
        )
        return entry

    # =========================================================================
    # Execution
    # =========================================================================

    @classmethod
    def run_payout(
        cls,
        payout_id,
        actor=None,
        provider: SettlementProvider | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> SettlementRunResult:
        """
        Execute one payout.

        Provider failures never raise: they end in FAILED with a
        failure_reason, an audit entry and an admin alert, and the payout
        can be run again.

        Raises:
            SettlementNotFoundError: Unknown payout
            NotApprovedError: No payout_approved audit entry (no claim, no call)
            SettlementInProgressError: Another run holds the payout
        """
        logger = cls.get_logger()
        payout = cls._get_payout(payout_id)

        if not AuditService.is_payout_approved(payout.id):
            logger.warning(
                "Refusing to run unapproved payout",
                extra={"payout_id": str(payout.id)},
            )
            raise NotApprovedError(
                "Payout has not been approved",
                details={"payout_id": str(payout.id)},
            )

        if payout.status == PayoutStatus.PAID:
            return cls._already_paid(payout)

        if not Payout.objects.claim(payout.id):
            payout.refresh_from_db()
            if payout.status == PayoutStatus.PAID:
                return cls._already_paid(payout)
            logger.warning(
                "Payout could not be claimed",
                extra={"payout_id": str(payout.id), "status": payout.status},
            )
            raise SettlementInProgressError(
                f"Payout is {payout.status} and cannot be run now",
                details={"payout_id": str(payout.id), "status": payout.status},
            )

        payout.refresh_from_db()
        log_context = {"payout_id": str(payout.id), "run": payout.runs}
        logger.info("Payout claimed for execution", extra=log_context)

        provider_name = getattr(provider, "name", settings.SETTLEMENT_PROVIDER)
        try:
            provider = provider or get_settlement_provider()
            provider_name = provider.name
            request = PayoutRequest(
                payout_id=str(payout.id),
                seller_id=str(payout.seller_id),
                amount_cents=payout.amount_cents,
                currency=payout.currency,
                destination=payout.destination,
                idempotency_key=IdempotencyKeyGenerator.generate(
                    "payout", payout.id, run=payout.runs
                ),
            )
            outcome = call_with_retry(
                lambda: provider.send_payout(request),
                sleep=sleep,
                context=log_context,
            )
        except ProviderError as exc:
            return cls._record_failure(payout.id, exc.message, exc.attempts, provider_name, actor)
        except Exception as exc:  # noqa: BLE001 - captured into failure_reason
            logger.exception("Unexpected error running payout", extra=log_context)
            return cls._record_failure(
                payout.id, f"Unexpected error: {exc}", 1, provider_name, actor
            )

        return cls._record_success(payout.id, outcome, provider_name, actor)

    @classmethod
    def _record_success(
        cls, payout_id, outcome: RetryOutcome, provider_name: str, actor
    ) -> SettlementRunResult:
        logger = cls.get_logger()
        provider_ref = outcome.value.provider_ref

        with cls.atomic():
            payout = Payout.objects.select_related("order").get(pk=payout_id)
            # Serializes with refund finalization for the same order
            Order.objects.select_for_update().get(pk=payout.order_id)
            payout = Payout.objects.select_for_update().get(pk=payout_id)
            try:
                payout.complete(provider_ref=provider_ref, attempts=outcome.attempts)
            except TransitionNotAllowed:
                logger.error(
                    "Provider paid a payout that is no longer processing",
                    extra={
                        "payout_id": str(payout_id),
                        "status": payout.status,
                        "provider_ref": provider_ref,
                    },
                )
                AuditService.record(
                    action=AuditAction.PAYOUT_PAID,
                    entity_type=AuditEntityType.PAYOUT,
                    entity_id=payout_id,
                    actor=actor,
                    message="Provider confirmed payout after status changed elsewhere",
                    metadata={
                        "order_id": str(payout.order_id),
                        "provider": provider_name,
                        "provider_ref": provider_ref,
                        "status_at_confirmation": payout.status,
                        "conflict": True,
                    },
                )
                return SettlementRunResult(
                    settlement_id=str(payout_id),
                    settlement_type=SettlementType.PAYOUT,
                    status=payout.status,
                    success=True,
                    provider_ref=provider_ref,
                    attempts=outcome.attempts,
                )
            payout.provider = provider_name
            payout.save()

            AuditService.record(
                action=AuditAction.PAYOUT_PAID,
                entity_type=AuditEntityType.PAYOUT,
                entity_id=payout.id,
                actor=actor,
                message=f"Payout paid via {provider_name}",
                metadata={
                    "order_id": str(payout.order_id),
                    "provider": provider_name,
                    "provider_ref": provider_ref,
                    "attempts": outcome.attempts,
                    "amount_cents": payout.amount_cents,
                },
            )
            OutboxService.enqueue(
                OutboxTopic.SETTLEMENT_STATUS_CHANGED,
                cls._outbox_payload(payout),
            )

        logger.info(
            "Payout paid",
            extra={
                "payout_id": str(payout.id),
                "provider_ref": provider_ref,
                "attempts": outcome.attempts,
            },
        )
        return SettlementRunResult(
            settlement_id=str(payout.id),
            settlement_type=SettlementType.PAYOUT,
            status=payout.status,
            success=True,
            provider_ref=provider_ref,
            attempts=outcome.attempts,
        )

    @classmethod
    def _record_failure(
        cls, payout_id, reason: str, attempts: int, provider_name: str, actor
    ) -> SettlementRunResult:
        with cls.atomic():
            payout = Payout.objects.select_for_update().get(pk=payout_id)
            try:
                payout.fail(reason=reason, attempts=attempts)
            except TransitionNotAllowed:
                cls.get_logger().error(
                    "Payout run failed after status changed elsewhere",
                    extra={"payout_id": str(payout_id), "status": payout.status, "reason": reason},
                )
                return SettlementRunResult(
                    settlement_id=str(payout_id),
                    settlement_type=SettlementType.PAYOUT,
                    status=payout.status,
                    success=payout.status == PayoutStatus.PAID,
                    provider_ref=payout.provider_ref,
                    failure_reason=reason,
                    attempts=attempts,
                )
            payout.provider = provider_name or ""
            payout.save()

            AuditService.record(
                action=AuditAction.PAYOUT_FAILED,
                entity_type=AuditEntityType.PAYOUT,
                entity_id=payout.id,
                actor=actor,
                message=f"Payout failed: {reason}",
                metadata={
                    "order_id": str(payout.order_id),
                    "provider": provider_name,
                    "failure_reason": reason,
                    "attempts": attempts,
                },
            )
            OutboxService.enqueue(
                OutboxTopic.SETTLEMENT_STATUS_CHANGED,
                cls._outbox_payload(payout),
            )
            OutboxService.enqueue(
                OutboxTopic.SETTLEMENT_FAILED,
                {
                    **cls._outbox_payload(payout),
                    "failure_reason": reason,
                    "attempts": attempts,
                },
            )

        cls.get_logger().error(
            "Payout failed",
            extra={"payout_id": str(payout_id), "reason": reason, "attempts": attempts},
        )
        return SettlementRunResult(
            settlement_id=str(payout_id),
            settlement_type=SettlementType.PAYOUT,
            status=PayoutStatus.FAILED,
            success=False,
            failure_reason=reason,
            attempts=attempts,
        )

    # =========================================================================
    # Manual Override
    # =========================================================================

    @classmethod
    def mark_paid_manually(
        cls,
        payout_id,
        actor,
        reason: str,
        provider_ref: str | None = None,
    ) -> Payout:
        """
        Record a payout settled outside the engine.

        A payout in PROCESSING can only be overridden once it is older than
        SETTLEMENT_STALE_PROCESSING_MINUTES, so a live run is never raced.

        Raises:
            SettlementNotFoundError: Unknown payout
            InvalidSettlementStateError: Already paid, missing reason,
                or still actively processing
        """
        if not reason or not reason.strip():
            raise InvalidSettlementStateError(
                "A reason is required to mark a payout paid manually",
                error_code="REASON_REQUIRED",
            )

        with cls.atomic():
            payout = cls._get_payout(payout_id)
            Order.objects.select_for_update().get(pk=payout.order_id)
            payout = Payout.objects.select_for_update().get(pk=payout.pk)

            if payout.status == PayoutStatus.PAID:
                raise InvalidSettlementStateError(
                    "Payout is already paid",
                    details={"payout_id": str(payout.id)},
                )
            if payout.status == PayoutStatus.PROCESSING and not cls._is_stale(payout):
                raise InvalidSettlementStateError(
                    "Payout is being processed; wait for the run to finish",
                    details={"payout_id": str(payout.id)},
                )

            previous_status = payout.status
            payout.mark_paid_manually(
                provider_ref=provider_ref,
                reason=reason,
                actor_id=getattr(actor, "pk", None),
            )
            payout.save()

            AuditService.record(
                action=AuditAction.PAYOUT_MARKED_PAID_MANUALLY,
                entity_type=AuditEntityType.PAYOUT,
                entity_id=payout.id,
                actor=actor,
                message=f"Payout marked paid manually: {reason}",
                metadata={
                    "order_id": str(payout.order_id),
                    "from": previous_status,
                    "provider_ref": provider_ref,
                    "reason": reason,
                },
            )
            OutboxService.enqueue(
                OutboxTopic.SETTLEMENT_STATUS_CHANGED,
                cls._outbox_payload(payout),
            )

        cls.get_logger().info(
            "Payout marked paid manually",
            extra={"payout_id": str(payout.id), "actor_id": getattr(actor, "pk", None)},
        )
        return payout

    # =========================================================================
    # Queries
    # =========================================================================

    @classmethod
    def partition_due_payouts(
        cls, target: dt.date | dt.datetime
    ) -> tuple[list[Payout], list[Payout]]:
        """
        Pending payouts whose order was delivered at or before `target`.

        A date means "any time that day" in the current timezone.

        Returns:
            (approved, unapproved), each ordered by creation time
        """
        cutoff = cls._cutoff(target)
        candidates = list(
            Payout.objects.filter(
                status=PayoutStatus.PENDING,
                order__delivered_at__isnull=False,
                order__delivered_at__lte=cutoff,
            )
            .select_related("order")
            .order_by("created_at")
        )
        approved_ids = AuditService.approved_payout_ids(p.id for p in candidates)
        approved = [p for p in candidates if str(p.id) in approved_ids]
        unapproved = [p for p in candidates if str(p.id) not in approved_ids]
        return approved, unapproved

    @classmethod
    def export_queryset(cls, status: str | None = None, approved_only: bool = False):
        """Payouts for the banking CSV export."""
        queryset = Payout.objects.select_related("order", "seller").order_by("created_at")
        if status:
            queryset = queryset.filter(status=status)
        if approved_only:
            ids = AuditService.approved_payout_ids(queryset.values_list("id", flat=True))
            queryset = queryset.filter(id__in=[uuid.UUID(i) for i in ids])
        return queryset

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _get_payout(payout_id) -> Payout:
        payout = Payout.objects.filter(pk=payout_id).first()
        if payout is None:
            raise SettlementNotFoundError(
                f"Payout {payout_id} not found",
                details={"payout_id": str(payout_id)},
            )
        return payout

    @staticmethod
    def _cutoff(target: dt.date | dt.datetime) -> dt.datetime:
        if isinstance(target, dt.datetime):
            return target if timezone.is_aware(target) else timezone.make_aware(target)
        return timezone.make_aware(dt.datetime.combine(target, dt.time.max))

    @staticmethod
    def _is_stale(payout: Payout) -> bool:
        threshold = timezone.now() - dt.timedelta(
            minutes=settings.SETTLEMENT_STALE_PROCESSING_MINUTES
        )
        return (
            payout.processing_started_at is not None
            and payout.processing_started_at < threshold
        )

    @classmethod
    def _already_paid(cls, payout: Payout) -> SettlementRunResult:
        cls.get_logger().info(
            "Payout already paid, nothing to do",
            extra={"payout_id": str(payout.id)},
        )
        return SettlementRunResult(
            settlement_id=str(payout.id),
            settlement_type=SettlementType.PAYOUT,
            status=payout.status,
            success=True,
            provider_ref=payout.provider_ref,
            attempts=0,
            already_settled=True,
        )

    @staticmethod
    def _outbox_payload(payout: Payout) -> dict:
        return {
            "settlement_type": SettlementType.PAYOUT.value,
            "settlement_id": str(payout.id),
            "order_id": str(payout.order_id),
            "seller_id": payout.seller_id,
            "status": payout.status,
            "amount_cents": payout.amount_cents,
            "currency": payout.currency,
            "provider_ref": payout.provider_ref,
        }


__all__ = ["PayoutService"]

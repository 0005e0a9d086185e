"""
Refund service for money returned to buyers.

Refunds are requested by an admin, one per order, and executed with the
same claim / call / record flow as payouts. Refunds do not need the
payout approval gate.

When a refund completes, the order row is locked before the payout table
is read, so was_post_payout cannot disagree with a payout completing for
the same order at the same moment.

Usage:
    from payments.services import RefundService

    refund = RefundService.create_refund(order.id, amount_cents=2500,
                                         reason="Damaged", actor=admin)
    result = RefundService.run_refund(refund.id, actor=admin)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings
from django.db import IntegrityError, transaction

from audit.models import AuditAction, AuditEntityType
from audit.services import AuditService
from core.services import BaseService
from notifications.models import OutboxTopic
from notifications.services import OutboxService
from orders.exceptions import OrderNotFoundError
from orders.models import Order
from orders.states import OrderStatus
from payments.adapters import (
    IdempotencyKeyGenerator,
    RefundRequest,
    call_with_retry,
    get_settlement_provider,
)
from payments.exceptions import (
    ProviderError,
    RefundValidationError,
    SettlementInProgressError,
    SettlementNotFoundError,
)
from payments.models import Payout, Refund
from payments.services.types import SettlementRunResult
from payments.state_machines import PayoutStatus, RefundStatus, SettlementType

if TYPE_CHECKING:
    from collections.abc import Callable

    from payments.adapters import RetryOutcome, SettlementProvider

REFUNDABLE_ORDER_STATUSES = (OrderStatus.PAID, OrderStatus.DELIVERED)


class RefundService(BaseService):
    """Create and execute buyer refunds."""

    @classmethod
    def create_refund(
        cls,
        order_id,
        amount_cents: int | None = None,
        reason: str = "",
        actor=None,
    ) -> Refund:
        """
        Create the pending refund for an order.

        Args:
            order_id: Order to refund
            amount_cents: Amount to return; defaults to the order total
            reason: Free-text reason kept on the refund and in the audit trail
            actor: Admin requesting the refund

        Raises:
            OrderNotFoundError: Unknown order
            RefundValidationError: Order not refundable, bad amount, or
                a refund already exists
        """
        logger = cls.get_logger()
        with cls.atomic():
            order = Order.objects.select_for_update().filter(pk=order_id).first()
            if order is None:
                raise OrderNotFoundError(
                    f"Order {order_id} not found",
                    details={"order_id": str(order_id)},
                )
            if order.status not in REFUNDABLE_ORDER_STATUSES:
                raise RefundValidationError(
                    f"Orders in status '{order.status}' cannot be refunded",
                    error_code="ORDER_NOT_REFUNDABLE",
                    details={"order_id": str(order.id), "status": order.status},
                )

            amount = order.total_cents if amount_cents is None else int(amount_cents)
            if amount <= 0 or amount > order.total_cents:
                raise RefundValidationError(
                    "Refund amount must be positive and at most the order total",
                    error_code="INVALID_REFUND_AMOUNT",
                    details={
                        "amount_cents": amount,
                        "order_total_cents": order.total_cents,
                    },
                )

            try:
                with transaction.atomic():
                    refund = Refund.objects.create(
                        order=order,
                        amount_cents=amount,
                        currency=order.currency,
                        reason=reason,
                        requested_by=actor if getattr(actor, "is_authenticated", False) else None,
                    )
            except IntegrityError as exc:
                raise RefundValidationError(
                    "A refund already exists for this order",
                    error_code="REFUND_EXISTS",
                    details={"order_id": str(order.id)},
                ) from exc

            AuditService.record(
                action=AuditAction.REFUND_CREATED,
                entity_type=AuditEntityType.REFUND,
                entity_id=refund.id,
                actor=actor,
                message=reason or "Refund requested",
                metadata={
                    "order_id": str(order.id),
                    "amount_cents": amount,
                    "currency": order.currency,
                    "order_status": order.status,
                },
            )

        logger.info(
            "Refund created",
            extra={"refund_id": str(refund.id), "order_id": str(order.id), "amount_cents": amount},
        )
        return refund

    @classmethod
    def run_refund(
        cls,
        refund_id,
        actor=None,
        provider: SettlementProvider | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> SettlementRunResult:
        """
        Execute one refund.

        Raises:
            SettlementNotFoundError: Unknown refund
            SettlementInProgressError: Another run holds the refund
        """
        logger = cls.get_logger()
        refund = Refund.objects.select_related("order").filter(pk=refund_id).first()
        if refund is None:
            raise SettlementNotFoundError(
                f"Refund {refund_id} not found",
                details={"refund_id": str(refund_id)},
            )

        if refund.status == RefundStatus.REFUNDED:
            return cls._already_refunded(refund)

        if not Refund.objects.claim(refund.id):
            refund.refresh_from_db()
            if refund.status == RefundStatus.REFUNDED:
                return cls._already_refunded(refund)
            raise SettlementInProgressError(
                f"Refund is {refund.status} and cannot be run now",
                details={"refund_id": str(refund.id), "status": refund.status},
            )

        refund.refresh_from_db()
        log_context = {"refund_id": str(refund.id), "run": refund.runs}
        logger.info("Refund claimed for execution", extra=log_context)

        provider_name = getattr(provider, "name", settings.SETTLEMENT_PROVIDER)
        try:
            provider = provider or get_settlement_provider()
            provider_name = provider.name
            request = RefundRequest(
                refund_id=str(refund.id),
                order_id=str(refund.order_id),
                amount_cents=refund.amount_cents,
                currency=refund.currency,
                payment_reference=refund.order.payment_reference,
                idempotency_key=IdempotencyKeyGenerator.generate(
                    "refund", refund.id, run=refund.runs
                ),
            )
            outcome = call_with_retry(
                lambda: provider.send_refund(request),
                sleep=sleep,
                context=log_context,
            )
        except ProviderError as exc:
            return cls._record_failure(refund.id, exc.message, exc.attempts, provider_name, actor)
        except Exception as exc:  # noqa: BLE001 - captured into failure_reason
            logger.exception("Unexpected error running refund", extra=log_context)
            return cls._record_failure(
                refund.id, f"Unexpected error: {exc}", 1, provider_name, actor
            )

        return cls._record_success(refund.id, outcome, provider_name, actor)

    @classmethod
    def _record_success(
        cls, refund_id, outcome: RetryOutcome, provider_name: str, actor
    ) -> SettlementRunResult:
        provider_ref = outcome.value.provider_ref
        with cls.atomic():
            refund = Refund.objects.get(pk=refund_id)
            order = Order.objects.select_for_update().get(pk=refund.order_id)
            refund = Refund.objects.select_for_update().get(pk=refund_id)
            was_post_payout = Payout.objects.filter(
                order_id=order.id, status=PayoutStatus.PAID
            ).exists()

            refund.complete(
                provider_ref=provider_ref,
                was_post_payout=was_post_payout,
                attempts=outcome.attempts,
            )
            refund.provider = provider_name
            refund.save()

            AuditService.record(
                action=AuditAction.REFUND_REFUNDED,
                entity_type=AuditEntityType.REFUND,
                entity_id=refund.id,
                actor=actor,
                message=f"Refund issued via {provider_name}",
                metadata={
                    "order_id": str(order.id),
                    "provider": provider_name,
                    "provider_ref": provider_ref,
                    "attempts": outcome.attempts,
                    "amount_cents": refund.amount_cents,
                    "was_post_payout": was_post_payout,
                },
            )
            OutboxService.enqueue(
                OutboxTopic.SETTLEMENT_STATUS_CHANGED,
                cls._outbox_payload(refund, order),
            )

        cls.get_logger().info(
            "Refund issued",
            extra={
                "refund_id": str(refund.id),
                "provider_ref": provider_ref,
                "was_post_payout": was_post_payout,
            },
        )
        return SettlementRunResult(
            settlement_id=str(refund.id),
            settlement_type=SettlementType.REFUND,
            status=refund.status,
            success=True,
            provider_ref=provider_ref,
            attempts=outcome.attempts,
        )

    @classmethod
    def _record_failure(
        cls, refund_id, reason: str, attempts: int, provider_name: str, actor
    ) -> SettlementRunResult:
        with cls.atomic():
            refund = Refund.objects.select_for_update().get(pk=refund_id)
            refund.fail(reason=reason, attempts=attempts)
            refund.provider = provider_name or ""
            refund.save()
            order = Order.objects.get(pk=refund.order_id)

            AuditService.record(
                action=AuditAction.REFUND_FAILED,
                entity_type=AuditEntityType.REFUND,
                entity_id=refund.id,
                actor=actor,
                message=f"Refund failed: {reason}",
                metadata={
                    "order_id": str(refund.order_id),
                    "provider": provider_name,
                    "failure_reason": reason,
                    "attempts": attempts,
                },
            )
            payload = cls._outbox_payload(refund, order)
            OutboxService.enqueue(OutboxTopic.SETTLEMENT_STATUS_CHANGED, payload)
            OutboxService.enqueue(
                OutboxTopic.SETTLEMENT_FAILED,
                {**payload, "failure_reason": reason, "attempts": attempts},
            )

        cls.get_logger().error(
            "Refund failed",
            extra={"refund_id": str(refund_id), "reason": reason, "attempts": attempts},
        )
        return SettlementRunResult(
            settlement_id=str(refund_id),
            settlement_type=SettlementType.REFUND,
            status=RefundStatus.FAILED,
            success=False,
            failure_reason=reason,
            attempts=attempts,
        )

    @classmethod
    def _already_refunded(cls, refund: Refund) -> SettlementRunResult:
        cls.get_logger().info(
            "Refund already issued, nothing to do",
            extra={"refund_id": str(refund.id)},
        )
        return SettlementRunResult(
            settlement_id=str(refund.id),
            settlement_type=SettlementType.REFUND,
            status=refund.status,
            success=True,
            provider_ref=refund.provider_ref,
            attempts=0,
            already_settled=True,
        )

    @staticmethod
    def _outbox_payload(refund: Refund, order: Order) -> dict:
        return {
            "settlement_type": SettlementType.REFUND.value,
            "settlement_id": str(refund.id),
            "order_id": str(order.id),
            "buyer_id": order.buyer_id,
            "status": refund.status,
            "amount_cents": refund.amount_cents,
            "currency": refund.currency,
            "provider_ref": refund.provider_ref,
        }


__all__ = ["RefundService", "REFUNDABLE_ORDER_STATUSES"]

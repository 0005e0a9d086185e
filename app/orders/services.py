"""
Order lifecycle service.

OrderService.transition() is the single write path for order status. It
validates against the graph, applies a conditional UPDATE keyed on the
status it validated, then appends the audit entry and outbox messages in
the same transaction. Reaching delivered also creates the order's payout.

Usage:
    from orders.services import OrderService

    order = OrderService.transition(order.id, OrderStatus.SHIPPED, actor=seller)
"""

from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING

from django.conf import settings
from django.db.models import DateTimeField, F, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from audit.models import AuditAction, AuditEntityType
from audit.services import AuditService
from core.services import BaseService, ServiceResult
from notifications.models import OutboxTopic
from notifications.services import OutboxService
from orders.exceptions import IllegalTransitionError, OrderNotFoundError
from orders.models import Order
from orders.states import OrderStatus
from orders.transitions import (
    STATUS_TIMESTAMP_FIELDS,
    describe_transition,
    validate_transition,
)

if TYPE_CHECKING:
    from typing import Any
    from uuid import UUID


class OrderService(BaseService):
    """Status transitions and lifecycle maintenance for orders."""

    @classmethod
    def get_order(cls, order_id: UUID | str) -> Order:
        order = Order.objects.filter(pk=order_id).first()
        if order is None:
            raise OrderNotFoundError(
                f"Order {order_id} not found",
                details={"order_id": str(order_id)},
            )
        return order

    @classmethod
    def transition(
        cls,
        order_id: UUID | str,
        target: str,
        actor=None,
        source: str = "manual",
        metadata: dict[str, Any] | None = None,
    ) -> Order:
        """
        Move an order to `target`.

        Args:
            order_id: Order to change
            target: Requested OrderStatus
            actor: User making the change, None for system triggers
            source: What triggered it (manual, webhook, auto_delivery)
            metadata: Extra context stored on the audit entry

        Returns:
            The order, reloaded after the change

        Raises:
            OrderNotFoundError: Unknown order
            IllegalTransitionError: Not on the graph, or the order changed
                status between the read and the write
        """
        logger = cls.get_logger()

        with cls.atomic():
            order = cls.get_order(order_id)
            current = order.status
            validate_transition(current, target)

            now = timezone.now()
            changes: dict[str, Any] = {"status": target, "updated_at": now}
            timestamp_field = STATUS_TIMESTAMP_FIELDS.get(target)
            if timestamp_field:
                changes[timestamp_field] = Coalesce(
                    F(timestamp_field), Value(now, output_field=DateTimeField())
                )

            updated = Order.objects.filter(pk=order.pk, status=current).update(**changes)
            if not updated:
                order.refresh_from_db(fields=["status"])
                logger.info(
                    "Order status changed concurrently, transition refused",
                    extra={
                        "order_id": str(order.pk),
                        "expected": current,
                        "actual": order.status,
                        "target": target,
                    },
                )
                raise IllegalTransitionError(current=order.status, target=target)

            order.refresh_from_db()
            AuditService.record(
                action=AuditAction.STATUS_CHANGE,
                entity_type=AuditEntityType.ORDER,
                entity_id=order.pk,
                actor=actor,
                message=describe_transition(current, target),
                metadata={
                    "from": current,
                    "to": target,
                    "source": source,
                    **(metadata or {}),
                },
            )

            event = {
                "order_id": str(order.pk),
                "buyer_id": order.buyer_id,
                "seller_id": order.seller_id,
                "from": current,
                "to": target,
            }
            OutboxService.enqueue(OutboxTopic.ORDER_STATUS_CHANGED, event)

            if target == OrderStatus.DELIVERED:
                from payments.services import PayoutService

                OutboxService.enqueue(OutboxTopic.ORDER_DELIVERED, event)
                PayoutService.create_for_delivered_order(order, actor=actor)

        logger.info(
            "Order status changed",
            extra={
                "order_id": str(order.pk),
                "from": current,
                "to": target,
                "source": source,
            },
        )
        return order

    @classmethod
    def try_transition(cls, order_id: UUID | str, target: str, **kwargs) -> ServiceResult[Order]:
        """
        Like transition(), but an illegal transition is an expected outcome.

        Used by automated triggers (carrier webhooks, auto-delivery) where
        another path may already have moved the order.
        """
        try:
            return ServiceResult.ok(cls.transition(order_id, target, **kwargs))
        except IllegalTransitionError as exc:
            return ServiceResult.failure(exc.message, error_code=exc.error_code)

    @classmethod
    def auto_deliver_stale_shipments(cls, now: dt.datetime | None = None) -> int:
        """
        Deliver orders shipped more than ORDER_AUTO_DELIVER_AFTER_DAYS ago.

        Orders delivered by a webhook in the meantime are skipped.

        Returns:
            Number of orders moved to delivered
        """
        now = now or timezone.now()
        cutoff = now - dt.timedelta(days=settings.ORDER_AUTO_DELIVER_AFTER_DAYS)
        order_ids = list(
            Order.objects.filter(
                status=OrderStatus.SHIPPED,
                shipped_at__lt=cutoff,
            ).values_list("pk", flat=True)
        )

        delivered = 0
        for order_id in order_ids:
            result = cls.try_transition(
                order_id,
                OrderStatus.DELIVERED,
                source="auto_delivery",
                metadata={"auto_deliver_after_days": settings.ORDER_AUTO_DELIVER_AFTER_DAYS},
            )
            if result:
                delivered += 1

        if order_ids:
            cls.get_logger().info(
                "Auto-delivery pass complete",
                extra={"candidates": len(order_ids), "delivered": delivered},
            )
        return delivered

    @classmethod
    def find_unaudited_status_changes(cls, since: dt.datetime | None = None) -> list[Order]:
        """
        Orders whose current status has no matching status_change entry.

        Only reachable if the audit write was lost after the status update;
        reported for out-of-band repair, never auto-corrected.
        """
        queryset = Order.objects.exclude(status=OrderStatus.PENDING)
        if since is not None:
            queryset = queryset.filter(updated_at__gte=since)

        inconsistent = []
        for order in queryset.iterator():
            latest = AuditService.latest_status_change(order.pk)
            if latest is None or latest.metadata.get("to") != order.status:
                inconsistent.append(order)

        if inconsistent:
            cls.get_logger().error(
                "Orders with unaudited status changes",
                extra={"order_ids": [str(o.pk) for o in inconsistent]},
            )
        return inconsistent


__all__ = ["OrderService"]

"""
Carrier webhook ingestion.

Order of operations per event:
    1. Insert WebhookEvent keyed by "<provider>:<event_id>" in its own
       transaction. A unique violation means the event was seen before:
       respond duplicate and do nothing else.
    2. Look up the order. Missing orders still consume the event.
    3. Store the carrier status on the order, and deliver it when the
       carrier says delivered and the order is shipped.
    4. Append a webhook_update audit entry.

Once step 1 commits, nothing downstream changes the response into a
retryable one. Downstream failures are recorded on the event row and in
the log for out-of-band repair.
"""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING

from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from audit.models import AuditAction, AuditEntityType
from audit.services import AuditService
from core.services import BaseService
from orders.exceptions import OrderNotFoundError
from orders.models import Order
from orders.services import OrderService
from orders.states import CarrierDeliveryStatus, OrderStatus
from payments.exceptions import DuplicateEventError, WebhookStoreUnavailableError
from payments.models import WebhookEvent
from payments.state_machines import WebhookOutcome

if TYPE_CHECKING:
    from typing import Any

REDACTED = "[REDACTED]"
SENSITIVE_KEY_MARKERS = ("token", "secret", "password", "authorization", "api_key", "signature")


def redact_secrets(value: Any) -> Any:
    """Copy of `value` with every sensitive-looking key masked, at any depth."""
    if isinstance(value, dict):
        return {
            key: REDACTED
            if any(marker in str(key).lower() for marker in SENSITIVE_KEY_MARKERS)
            else redact_secrets(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [redact_secrets(item) for item in value]
    return value


@dataclass
class WebhookIngestResult:
    ok: bool
    duplicate: bool
    idempotency_key: str
    outcome: str
    transitioned: bool = False

    def as_response(self) -> dict:
        return {"ok": self.ok, "duplicate": self.duplicate}

    def as_dict(self) -> dict:
        return asdict(self)


class CarrierWebhookService(BaseService):
    """Idempotent ingestion of carrier delivery events."""

    @classmethod
    def ingest(
        cls,
        provider: str,
        event_id: str,
        order_ref: str,
        status: str,
        meta: dict[str, Any] | None = None,
        raw_payload: dict[str, Any] | None = None,
    ) -> WebhookIngestResult:
        """
        Record and apply one carrier event.

        Raises:
            WebhookStoreUnavailableError: Event could not be recorded (retryable)
            OrderNotFoundError: Event recorded, but the order does not exist
        """
        logger = cls.get_logger()
        meta = redact_secrets(meta or {})
        key = WebhookEvent.build_key(provider, event_id)
        log_context = {"idempotency_key": key, "order_ref": order_ref, "status": status}

        try:
            event = cls._record_event(
                provider=provider,
                event_id=event_id,
                order_ref=order_ref,
                status=status,
                payload=redact_secrets(raw_payload or {}),
            )
        except DuplicateEventError:
            logger.info("Duplicate carrier webhook ignored", extra=log_context)
            return WebhookIngestResult(
                ok=True,
                duplicate=True,
                idempotency_key=key,
                outcome=WebhookOutcome.DUPLICATE,
            )

        order = cls._find_order(order_ref)
        if order is None:
            cls._close_event(event, WebhookOutcome.ERROR, "Order not found")
            AuditService.record(
                action=AuditAction.WEBHOOK_UPDATE,
                entity_type=AuditEntityType.WEBHOOK_EVENT,
                entity_id=event.id,
                message=f"Carrier event for unknown order {order_ref}",
                metadata={"provider": provider, "event_id": event_id, "status": status},
            )
            logger.warning("Carrier webhook for unknown order", extra=log_context)
            raise OrderNotFoundError(
                f"Order {order_ref} not found",
                details={"order_id": order_ref, "idempotency_key": key},
            )

        try:
            transitioned = cls._apply(event, order, provider, event_id, status, meta)
        except Exception as exc:  # noqa: BLE001 - event is consumed, failure kept on the row
            logger.exception("Carrier webhook side effects failed", extra=log_context)
            cls._close_event(event, WebhookOutcome.ERROR, f"{type(exc).__name__}: {exc}")
            return WebhookIngestResult(
                ok=True,
                duplicate=False,
                idempotency_key=key,
                outcome=WebhookOutcome.ERROR,
            )

        cls._close_event(event, WebhookOutcome.OK)
        logger.info(
            "Carrier webhook processed",
            extra={**log_context, "transitioned": transitioned},
        )
        return WebhookIngestResult(
            ok=True,
            duplicate=False,
            idempotency_key=key,
            outcome=WebhookOutcome.OK,
            transitioned=transitioned,
        )

    # =========================================================================
    # Steps
    # =========================================================================

    @classmethod
    def _record_event(
        cls,
        provider: str,
        event_id: str,
        order_ref: str,
        status: str,
        payload: dict[str, Any],
    ) -> WebhookEvent:
        """
        Insert the event row, committing it on its own.

        Raises:
            DuplicateEventError: The idempotency key already exists
            WebhookStoreUnavailableError: Any other database failure
        """
        key = WebhookEvent.build_key(provider, event_id)
        try:
            with transaction.atomic():
                return WebhookEvent.objects.create(
                    provider=provider,
                    event_id=event_id,
                    idempotency_key=key,
                    order_ref=order_ref,
                    normalized_status=status,
                    payload=payload,
                )
        except IntegrityError as exc:
            raise DuplicateEventError(key) from exc
        except DatabaseError as exc:
            cls.get_logger().error(
                "Could not record carrier webhook",
                extra={"idempotency_key": key},
                exc_info=True,
            )
            raise WebhookStoreUnavailableError(
                "Webhook event could not be recorded, retry later",
                details={"idempotency_key": key},
            ) from exc

    @staticmethod
    def _find_order(order_ref: str) -> Order | None:
        try:
            order_id = uuid.UUID(str(order_ref))
        except ValueError:
            return None
        return Order.objects.filter(pk=order_id).first()

    @classmethod
    def _apply(
        cls,
        event: WebhookEvent,
        order: Order,
        provider: str,
        event_id: str,
        status: str,
        meta: dict[str, Any],
    ) -> bool:
        logger = cls.get_logger()
        transitioned = False

        with transaction.atomic():
            order = Order.objects.select_for_update().get(pk=order.pk)
            order.delivery_status = status
            order.carrier_meta = meta
            order.save(update_fields=["delivery_status", "carrier_meta", "updated_at"])

            if status == CarrierDeliveryStatus.DELIVERED and order.status == OrderStatus.SHIPPED:
                result = OrderService.try_transition(
                    order.pk,
                    OrderStatus.DELIVERED,
                    source="webhook",
                    metadata={"provider": provider, "event_id": event_id},
                )
                transitioned = result.success
                if not result:
                    logger.info(
                        "Carrier delivery did not move order",
                        extra={
                            "order_id": str(order.pk),
                            "reason": result.error,
                            "idempotency_key": event.idempotency_key,
                        },
                    )

            AuditService.record(
                action=AuditAction.WEBHOOK_UPDATE,
                entity_type=AuditEntityType.ORDER,
                entity_id=order.pk,
                message=f"{provider} reported {status}",
                metadata={
                    "provider": provider,
                    "event_id": event_id,
                    "status": status,
                    "webhook_event_id": str(event.id),
                    "transitioned": transitioned,
                },
            )
        return transitioned

    @staticmethod
    def _close_event(event: WebhookEvent, outcome: str, error_message: str = "") -> None:
        WebhookEvent.objects.filter(pk=event.pk).update(
            outcome=outcome,
            error_message=error_message,
            processed_at=timezone.now(),
            updated_at=timezone.now(),
        )
        event.outcome = outcome
        event.error_message = error_message


__all__ = ["CarrierWebhookService", "WebhookIngestResult", "redact_secrets"]

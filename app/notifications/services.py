"""
Outbox service.

Related files:
    - models.py: OutboxMessage
    - handlers.py: Topic handler registry
    - tasks.py: Periodic dispatcher task

Usage:
    # Inside the transaction that changes state
    with transaction.atomic():
        ...
        OutboxService.enqueue(OutboxTopic.PAYOUT_READY, {"payout_id": str(p.id)})

    # From the dispatcher
    summary = OutboxService.dispatch_pending(batch_size=100)
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.conf import settings
from django.db.models import F, Q
from django.utils import timezone

from core.services import BaseService
from notifications.models import OutboxMessage, OutboxStatus

if TYPE_CHECKING:
    from typing import Any


@dataclass
class DispatchSummary:
    """Counts from one dispatcher pass."""

    dispatched: int = 0
    retried: int = 0
    failed: int = 0
    skipped: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "dispatched": self.dispatched,
            "retried": self.retried,
            "failed": self.failed,
            "skipped": self.skipped,
        }


class OutboxService(BaseService):
    """Write and drain the notifications outbox."""

    @classmethod
    def enqueue(cls, topic: str, payload: dict[str, Any]) -> OutboxMessage:
        """
        Insert a pending outbox message.

        Call inside the caller's transaction; the message commits or rolls
        back together with the state change it describes.
        """
        message = OutboxMessage.objects.create(topic=topic, payload=payload)
        cls.get_logger().debug(
            "Outbox message enqueued",
            extra={"topic": topic, "message_id": str(message.id)},
        )
        return message

    @classmethod
    def dispatch_pending(cls, batch_size: int = 100) -> DispatchSummary:
        """
        Dispatch pending messages in creation order.

        Each message is claimed with a conditional update so concurrent
        dispatchers never deliver the same message twice. A handler error
        puts the message back to PENDING until OUTBOX_MAX_ATTEMPTS is
        reached, then marks it FAILED.

        Messages stuck in DISPATCHING for longer than
        OUTBOX_DISPATCH_STALE_MINUTES belonged to a worker that died
        mid-send; they are claimed again like pending ones.
        """
        from notifications.handlers import dispatch_message

        max_attempts = settings.OUTBOX_MAX_ATTEMPTS
        summary = DispatchSummary()
        logger = cls.get_logger()
        stale_cutoff = timezone.now() - dt.timedelta(
            minutes=settings.OUTBOX_DISPATCH_STALE_MINUTES
        )
        claimable = Q(status=OutboxStatus.PENDING) | Q(
            status=OutboxStatus.DISPATCHING, updated_at__lt=stale_cutoff
        )

        pending_ids = list(
            OutboxMessage.objects.filter(claimable)
            .order_by("created_at")
            .values_list("id", flat=True)[:batch_size]
        )

        for message_id in pending_ids:
            claimed = OutboxMessage.objects.filter(claimable, id=message_id).update(
                status=OutboxStatus.DISPATCHING,
                attempts=F("attempts") + 1,
                updated_at=timezone.now(),
            )
            if not claimed:
                summary.skipped += 1
                continue

            message = OutboxMessage.objects.get(id=message_id)
            if message.attempts > max_attempts:
                # Every allowed attempt was lost with its worker
                OutboxMessage.objects.filter(id=message_id).update(
                    status=OutboxStatus.FAILED,
                    last_error="Dispatch abandoned: worker stopped during every attempt",
                    updated_at=timezone.now(),
                )
                logger.error(
                    "Outbox message abandoned after repeated worker loss",
                    extra={"message_id": str(message_id), "topic": message.topic},
                )
                summary.failed += 1
                continue

            try:
                dispatch_message(message)
            except Exception as exc:  # noqa: BLE001 - recorded on the message
                exhausted = message.attempts >= max_attempts
                next_status = OutboxStatus.FAILED if exhausted else OutboxStatus.PENDING
                OutboxMessage.objects.filter(id=message_id).update(
                    status=next_status,
                    last_error=f"{type(exc).__name__}: {exc}",
                    updated_at=timezone.now(),
                )
                logger.warning(
                    "Outbox dispatch failed",
                    extra={
                        "message_id": str(message_id),
                        "topic": message.topic,
                        "attempts": message.attempts,
                        "final": exhausted,
                    },
                    exc_info=True,
                )
                if exhausted:
                    summary.failed += 1
                else:
                    summary.retried += 1
                continue

            now = timezone.now()
            OutboxMessage.objects.filter(id=message_id).update(
                status=OutboxStatus.DISPATCHED,
                dispatched_at=now,
                last_error="",
                updated_at=now,
            )
            summary.dispatched += 1

        if pending_ids:
            logger.info("Outbox dispatch pass complete", extra=summary.as_dict())
        return summary


__all__ = ["OutboxService", "DispatchSummary"]

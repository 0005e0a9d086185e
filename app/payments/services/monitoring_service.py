"""
Operational checks over settlement records.

A payout or refund stuck in PROCESSING means a run died between the claim
and the record step. The provider may or may not have moved money, so the
record is never retried automatically: an admin is alerted once per stuck
run and resolves it (mark paid manually or re-run after checking the
provider).
"""

from __future__ import annotations

import datetime as dt

from django.conf import settings
from django.utils import timezone

from audit.models import AuditAction, AuditEntityType, AuditLogEntry
from audit.services import AuditService
from core.services import BaseService
from notifications.models import OutboxTopic
from notifications.services import OutboxService
from payments.models import Payout, Refund
from payments.state_machines import SettlementType


class SettlementMonitoringService(BaseService):
    """Detect settlements stuck in processing."""

    @classmethod
    def alert_stale_processing(cls, now: dt.datetime | None = None) -> int:
        """
        Audit and alert every stale processing payout/refund not yet alerted.

        Returns:
            Number of new alerts raised
        """
        now = now or timezone.now()
        cutoff = now - dt.timedelta(minutes=settings.SETTLEMENT_STALE_PROCESSING_MINUTES)
        raised = 0

        stale = [
            (SettlementType.PAYOUT, AuditEntityType.PAYOUT, record)
            for record in Payout.objects.processing_since(cutoff)
        ] + [
            (SettlementType.REFUND, AuditEntityType.REFUND, record)
            for record in Refund.objects.processing_since(cutoff)
        ]

        for settlement_type, entity_type, record in stale:
            already_alerted = AuditLogEntry.objects.filter(
                action=AuditAction.SETTLEMENT_STALE,
                entity_type=entity_type,
                entity_id=str(record.id),
                created_at__gte=record.processing_started_at,
            ).exists()
            if already_alerted:
                continue

            with cls.atomic():
                AuditService.record(
                    action=AuditAction.SETTLEMENT_STALE,
                    entity_type=entity_type,
                    entity_id=record.id,
                    message=f"{settlement_type.label} stuck in processing",
                    metadata={
                        "order_id": str(record.order_id),
                        "processing_since": record.processing_started_at,
                        "run": record.runs,
                    },
                )
                OutboxService.enqueue(
                    OutboxTopic.SETTLEMENT_STALE,
                    {
                        "settlement_type": settlement_type.value,
                        "settlement_id": str(record.id),
                        "order_id": str(record.order_id),
                        "processing_since": record.processing_started_at,
                    },
                )
            raised += 1
            cls.get_logger().error(
                "Settlement stuck in processing",
                extra={
                    "settlement_type": settlement_type.value,
                    "settlement_id": str(record.id),
                    "processing_since": record.processing_started_at.isoformat(),
                },
            )

        return raised


__all__ = ["SettlementMonitoringService"]

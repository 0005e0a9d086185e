"""
Batch payout execution.

run_batch(date) runs every pending, approved payout whose order was
delivered on or before the date. Unapproved payouts are counted and left
untouched. One payout failing never stops the rest of the batch.

The batch writes two audit entries (started / completed) keyed by a
generated batch id, so a partially failed batch can be reviewed from the
trail alone.
"""

from __future__ import annotations

import datetime as dt
import uuid
from typing import TYPE_CHECKING

from audit.models import AuditAction, AuditEntityType
from audit.services import AuditService
from core.exceptions import BaseApplicationError
from core.services import BaseService
from payments.services.payout_service import PayoutService
from payments.services.types import BatchRunResult, SettlementRunResult
from payments.state_machines import SettlementType

if TYPE_CHECKING:
    from collections.abc import Callable

    from payments.adapters import SettlementProvider


class PayoutBatchService(BaseService):
    """Run all due, approved payouts for a date."""

    @classmethod
    def run_batch(
        cls,
        target_date: dt.date,
        actor=None,
        provider: SettlementProvider | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> BatchRunResult:
        logger = cls.get_logger()
        batch_id = uuid.uuid4()
        approved, unapproved = PayoutService.partition_due_payouts(target_date)

        result = BatchRunResult(
            batch_id=str(batch_id),
            target_date=target_date.isoformat(),
            attempted=len(approved),
            approved_skipped=len(unapproved),
        )

        AuditService.record(
            action=AuditAction.PAYOUT_BATCH_STARTED,
            entity_type=AuditEntityType.PAYOUT_BATCH,
            entity_id=batch_id,
            actor=actor,
            message=(
                f"Payout batch for {result.target_date}: {result.attempted} to run, "
                f"{result.approved_skipped} skipped (not approved)"
            ),
            metadata={
                "target_date": result.target_date,
                "attempted": result.attempted,
                "approved_skipped": result.approved_skipped,
                "payout_ids": [str(p.id) for p in approved],
                "skipped_payout_ids": [str(p.id) for p in unapproved],
            },
        )
        logger.info(
            "Payout batch started",
            extra={"batch_id": str(batch_id), **result.counts()},
        )

        for payout in unapproved:
            result.items.append(
                SettlementRunResult(
                    settlement_id=str(payout.id),
                    settlement_type=SettlementType.PAYOUT,
                    status=payout.status,
                    success=False,
                    failure_reason="not_approved",
                )
            )

        try:
            for payout in approved:
                item = cls._run_item(batch_id, payout, actor, provider, sleep)
                result.items.append(item)
                if item.success:
                    result.succeeded += 1
                else:
                    result.failed += 1
        finally:
            cls._record_completion(batch_id, result, actor)
        return result

    @classmethod
    def _run_item(cls, batch_id, payout, actor, provider, sleep) -> SettlementRunResult:
        logger = cls.get_logger()
        try:
            return PayoutService.run_payout(
                payout.id, actor=actor, provider=provider, sleep=sleep
            )
        except BaseApplicationError as exc:
            logger.warning(
                "Batch item could not be run",
                extra={
                    "batch_id": str(batch_id),
                    "payout_id": str(payout.id),
                    "error_code": exc.error_code,
                },
            )
            reason = exc.message
        except Exception as exc:  # noqa: BLE001 - one payout never aborts the batch
            logger.exception(
                "Batch item raised unexpectedly",
                extra={"batch_id": str(batch_id), "payout_id": str(payout.id)},
            )
            reason = f"{type(exc).__name__}: {exc}"
        return SettlementRunResult(
            settlement_id=str(payout.id),
            settlement_type=SettlementType.PAYOUT,
            status=payout.status,
            success=False,
            failure_reason=reason,
        )

    @classmethod
    def _record_completion(cls, batch_id, result: BatchRunResult, actor) -> None:
        AuditService.record(
            action=AuditAction.PAYOUT_BATCH_COMPLETED,
            entity_type=AuditEntityType.PAYOUT_BATCH,
            entity_id=batch_id,
            actor=actor,
            message=(
                f"Payout batch for {result.target_date} finished: "
                f"{result.succeeded} succeeded, {result.failed} failed"
            ),
            metadata={
                "target_date": result.target_date,
                **result.counts(),
                "failed_payout_ids": [
                    i.settlement_id
                    for i in result.items
                    if not i.success and i.failure_reason != "not_approved"
                ],
            },
        )
        cls.get_logger().info(
            "Payout batch completed",
            extra={"batch_id": str(batch_id), **result.counts()},
        )


__all__ = ["PayoutBatchService"]

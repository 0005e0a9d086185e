"""
Settlement executor worker.

Celery entrypoints for the settlement engine. They call the same service
methods as the admin API, so scheduled and manual runs share one path.

Tasks:
- run_payout_batch: Daily batch of approved, due payouts (celery-beat)
- execute_single_payout: Run one payout
- execute_single_refund: Run one refund

Usage:
    from payments.workers import run_payout_batch, execute_single_payout

    run_payout_batch.delay("2024-05-01")
    execute_single_payout.delay(str(payout.id))
"""

from __future__ import annotations

import datetime as dt
import logging

from celery import shared_task
from django.utils import timezone

from core.exceptions import BaseApplicationError

logger = logging.getLogger(__name__)


# =============================================================================
# Batch Task
# =============================================================================


@shared_task(acks_late=True)
def run_payout_batch(target_date: str | None = None) -> dict:
    """
    Run every approved payout delivered on or before `target_date`.

    Args:
        target_date: ISO date; defaults to today in the project timezone

    Returns:
        BatchRunResult.as_dict()
    """
    from payments.services import PayoutBatchService

    date = dt.date.fromisoformat(target_date) if target_date else timezone.localdate()
    logger.info("Starting scheduled payout batch", extra={"target_date": date.isoformat()})
    result = PayoutBatchService.run_batch(date)
    return result.as_dict()


# =============================================================================
# Individual Execution Tasks
# =============================================================================


@shared_task(acks_late=True)
def execute_single_payout(payout_id: str) -> dict:
    """
    Run one payout.

    Provider failures are already recorded on the payout by the service;
    refusals (not approved, in progress, not found) come back as
    {"status": "refused", "error_code": ...} instead of failing the task.
    """
    from payments.services import PayoutService

    try:
        result = PayoutService.run_payout(payout_id)
    except BaseApplicationError as exc:
        logger.warning(
            "Payout run refused",
            extra={"payout_id": str(payout_id), "error_code": exc.error_code},
        )
        return {"status": "refused", "payout_id": str(payout_id), **exc.to_dict()}
    return result.as_dict()


@shared_task(acks_late=True)
def execute_single_refund(refund_id: str) -> dict:
    """Run one refund; see execute_single_payout for the result shape."""
    from payments.services import RefundService

    try:
        result = RefundService.run_refund(refund_id)
    except BaseApplicationError as exc:
        logger.warning(
            "Refund run refused",
            extra={"refund_id": str(refund_id), "error_code": exc.error_code},
        )
        return {"status": "refused", "refund_id": str(refund_id), **exc.to_dict()}
    return result.as_dict()

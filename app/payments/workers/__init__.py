"""
Workers for async settlement processing.

This module contains Celery tasks for background settlement operations:
- PayoutExecutor: Batch and single payout/refund runs
- SettlementMonitor: Alerts for settlements stuck in processing

Usage:
    from payments.workers import run_payout_batch, execute_single_payout

    run_payout_batch.delay()
    execute_single_payout.delay(str(payout_id))
"""

from payments.workers.payout_executor import (
    execute_single_payout,
    execute_single_refund,
    run_payout_batch,
)
from payments.workers.settlement_monitor import alert_stale_settlements

__all__ = [
    # Payout Executor
    "execute_single_payout",
    "execute_single_refund",
    "run_payout_batch",
    # Settlement Monitor
    "alert_stale_settlements",
]

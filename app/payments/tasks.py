"""
Celery task registry for the payments app.

Celery's autodiscovery imports <app>.tasks; the settlement tasks live in
payments.workers and are re-exported here so they register.

Usage:
    from payments.tasks import execute_single_payout

    execute_single_payout.delay(str(payout_id))
"""

from payments.workers import (
    alert_stale_settlements,
    execute_single_payout,
    execute_single_refund,
    run_payout_batch,
)

__all__ = [
    "alert_stale_settlements",
    "execute_single_payout",
    "execute_single_refund",
    "run_payout_batch",
]

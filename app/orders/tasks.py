"""
Celery tasks for order lifecycle maintenance.

Tasks:
- auto_deliver_orders: Deliver orders that have been shipped for too long
- check_audit_consistency: Report orders whose status has no audit entry

Both run from celery-beat (see orders/migrations/0002_add_order_schedules.py).
"""

from __future__ import annotations

import logging

from celery import shared_task

from orders.services import OrderService

logger = logging.getLogger(__name__)


@shared_task
def auto_deliver_orders() -> dict:
    """
    Move long-shipped orders to delivered.

    Uses the regular transition path, so payout creation, audit and
    notifications happen exactly as for a carrier-confirmed delivery.
    """
    delivered = OrderService.auto_deliver_stale_shipments()
    return {"delivered_count": delivered}


@shared_task
def check_audit_consistency() -> dict:
    """Log orders whose current status is missing from the audit trail."""
    inconsistent = OrderService.find_unaudited_status_changes()
    if inconsistent:
        logger.error(
            "Audit consistency check found orders without a status_change entry",
            extra={"inconsistent_count": len(inconsistent), "order_ids": [str(o.pk) for o in inconsistent]},
        )
    return {
        "inconsistent_count": len(inconsistent),
        "order_ids": [str(o.pk) for o in inconsistent],
    }


__all__ = ["auto_deliver_orders", "check_audit_consistency"]

"""
Settlement monitor worker.

Tasks:
- alert_stale_settlements: Alert on payouts/refunds stuck in processing
"""

from __future__ import annotations

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task
def alert_stale_settlements() -> dict:
    """
    Raise one alert per settlement stuck in processing.

    Stuck records are never retried here: whether the provider moved money
    is unknown, so an admin decides.
    """
    from payments.services import SettlementMonitoringService

    raised = SettlementMonitoringService.alert_stale_processing()
    if raised:
        logger.warning(
            "Stale settlement alerts raised", extra={"alerts_raised": raised}
        )
    return {"alerts_raised": raised}

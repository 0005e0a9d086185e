"""
Celery tasks for the notifications outbox.

Tasks:
    dispatch_outbox_messages: Drain pending outbox messages (celery-beat)

The schedule is created by migration 0002_add_outbox_dispatch_schedule.
"""

from __future__ import annotations

import logging

from celery import shared_task
from django.conf import settings

from notifications.services import OutboxService

logger = logging.getLogger(__name__)


@shared_task(name="notifications.tasks.dispatch_outbox_messages")
def dispatch_outbox_messages(batch_size: int | None = None) -> dict:
    """
    Dispatch one batch of pending outbox messages.

    Returns:
        Dict with dispatched / retried / failed / skipped counts
    """
    summary = OutboxService.dispatch_pending(
        batch_size=batch_size or settings.OUTBOX_DISPATCH_BATCH_SIZE
    )
    return summary.as_dict()

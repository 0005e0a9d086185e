"""
Factory Boy factories for the notifications outbox.

Usage:
    from notifications.tests.factories import OutboxMessageFactory

    message = OutboxMessageFactory(topic=OutboxTopic.PAYOUT_READY)
"""

import uuid

import factory
from factory.django import DjangoModelFactory

from notifications.models import OutboxMessage, OutboxStatus, OutboxTopic


class OutboxMessageFactory(DjangoModelFactory):
    """Pending order status change for an order that needs no database row."""

    class Meta:
        model = OutboxMessage

    topic = OutboxTopic.ORDER_STATUS_CHANGED
    status = OutboxStatus.PENDING
    attempts = 0
    payload = factory.LazyFunction(
        lambda: {
            "order_id": str(uuid.uuid4()),
            "buyer_id": None,
            "seller_id": None,
            "from": "paid",
            "to": "packed",
        }
    )

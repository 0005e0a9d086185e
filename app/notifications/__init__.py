"""
Durable outbound notifications.

State changes write an OutboxMessage in the same transaction that changed
the state. A Celery dispatcher drains the outbox and hands each message to
the handler registered for its topic (buyer/seller emails, admin alerts).
A handler failure marks the message, never the originating record.

Usage:
    from notifications.services import OutboxService
    from notifications.models import OutboxTopic

    OutboxService.enqueue(OutboxTopic.ORDER_DELIVERED, {"order_id": str(order.id)})
"""

"""
Outbox topic handlers.

Each handler receives one OutboxMessage and either returns normally
(message is marked dispatched) or raises (dispatcher retries it later).
Handlers only send mail; they never change order or settlement state.

Usage:
    from notifications.handlers import register_handler

    @register_handler(OutboxTopic.PAYOUT_READY)
    def handle_payout_ready(message: OutboxMessage) -> None:
        ...
"""

from __future__ import annotations

import logging
from typing import Callable

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.mail import send_mail

from notifications.models import OutboxMessage, OutboxTopic

logger = logging.getLogger(__name__)


# =============================================================================
# Handler Registry
# =============================================================================


OUTBOX_HANDLERS: dict[str, Callable[[OutboxMessage], None]] = {}


def register_handler(topic: str) -> Callable:
    """Decorator registering a handler for an outbox topic."""

    def decorator(func: Callable[[OutboxMessage], None]) -> Callable:
        OUTBOX_HANDLERS[topic] = func
        logger.debug("Registered outbox handler", extra={"topic": topic})
        return func

    return decorator


def dispatch_message(message: OutboxMessage) -> None:
    """
    Route a message to its topic handler.

    Topics without a handler are treated as delivered; they exist for
    consumers that read the outbox table directly.
    """
    handler = OUTBOX_HANDLERS.get(message.topic)
    if handler is None:
        logger.debug(
            "No outbox handler for topic",
            extra={"message_id": str(message.id), "topic": message.topic},
        )
        return
    handler(message)


# =============================================================================
# Helpers
# =============================================================================


def _email_user(user_id, subject: str, body: str) -> None:
    if not user_id:
        return
    user = get_user_model().objects.filter(pk=user_id).first()
    if user is None or not user.email:
        logger.info(
            "Notification recipient has no email, skipping",
            extra={"user_id": user_id, "subject": subject},
        )
        return
    send_mail(
        subject=subject,
        message=body,
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[user.email],
    )


def _alert_admins(subject: str, body: str) -> None:
    recipients = list(settings.ADMIN_ALERT_EMAILS)
    if not recipients:
        logger.warning(
            "No ADMIN_ALERT_EMAILS configured, alert logged only",
            extra={"subject": subject},
        )
        return
    send_mail(
        subject=subject,
        message=body,
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=recipients,
    )


def _format_amount(amount_cents, currency) -> str:
    if amount_cents is None:
        return ""
    return f"{int(amount_cents) / 100:.2f} {currency or ''}".strip()


# =============================================================================
# Order Handlers
# =============================================================================


@register_handler(OutboxTopic.ORDER_STATUS_CHANGED)
def handle_order_status_changed(message: OutboxMessage) -> None:
    payload = message.payload
    if payload.get("to") != "shipped":
        return
    _email_user(
        payload.get("buyer_id"),
        subject="Your order has shipped",
        body=f"Order {payload['order_id']} has been handed to the carrier.",
    )


@register_handler(OutboxTopic.ORDER_DELIVERED)
def handle_order_delivered(message: OutboxMessage) -> None:
    payload = message.payload
    _email_user(
        payload.get("buyer_id"),
        subject="Your order was delivered",
        body=f"Order {payload['order_id']} has been delivered.",
    )
    _email_user(
        payload.get("seller_id"),
        subject="Order delivered",
        body=(
            f"Order {payload['order_id']} was delivered. "
            "Your payout will be scheduled after approval."
        ),
    )


# =============================================================================
# Settlement Handlers
# =============================================================================


@register_handler(OutboxTopic.PAYOUT_READY)
def handle_payout_ready(message: OutboxMessage) -> None:
    payload = message.payload
    _email_user(
        payload.get("seller_id"),
        subject="Payout created",
        body=(
            f"A payout of {_format_amount(payload.get('amount_cents'), payload.get('currency'))} "
            f"was created for order {payload['order_id']}."
        ),
    )


@register_handler(OutboxTopic.SETTLEMENT_STATUS_CHANGED)
def handle_settlement_status_changed(message: OutboxMessage) -> None:
    payload = message.payload
    kind = payload.get("settlement_type")
    status = payload.get("status")
    amount = _format_amount(payload.get("amount_cents"), payload.get("currency"))
    if kind == "payout" and status == "paid":
        _email_user(
            payload.get("seller_id"),
            subject="Payout sent",
            body=f"Your payout of {amount} for order {payload['order_id']} was sent.",
        )
    elif kind == "refund" and status == "refunded":
        _email_user(
            payload.get("buyer_id"),
            subject="Refund issued",
            body=f"A refund of {amount} for order {payload['order_id']} was issued.",
        )


@register_handler(OutboxTopic.SETTLEMENT_FAILED)
def handle_settlement_failed(message: OutboxMessage) -> None:
    payload = message.payload
    _alert_admins(
        subject=f"[ALERT] {payload.get('settlement_type', 'settlement')} failed",
        body=(
            f"{payload.get('settlement_type')} {payload.get('settlement_id')} "
            f"for order {payload.get('order_id')} failed after "
            f"{payload.get('attempts')} attempt(s).\n"
            f"Reason: {payload.get('failure_reason')}"
        ),
    )


@register_handler(OutboxTopic.SETTLEMENT_STALE)
def handle_settlement_stale(message: OutboxMessage) -> None:
    payload = message.payload
    _alert_admins(
        subject=f"[ALERT] {payload.get('settlement_type')} stuck in processing",
        body=(
            f"{payload.get('settlement_type')} {payload.get('settlement_id')} "
            f"has been processing since {payload.get('processing_since')}. "
            "It will not be retried automatically; check the provider before "
            "marking it paid or failed."
        ),
    )


__all__ = ["OUTBOX_HANDLERS", "register_handler", "dispatch_message"]

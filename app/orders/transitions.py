"""
Order transition rules.

Pure functions over statuses: nothing here touches the database, so the
checks are safe to repeat before and after acquiring any guard.

Usage:
    from orders.transitions import validate_transition

    validate_transition(order.status, OrderStatus.SHIPPED)  # raises on illegal
"""

from __future__ import annotations

from orders.exceptions import IllegalTransitionError
from orders.states import OrderStatus

VALID_TRANSITIONS: dict[str, frozenset[str]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PAID, OrderStatus.CANCELED}),
    OrderStatus.PAID: frozenset({OrderStatus.PACKED, OrderStatus.CANCELED}),
    OrderStatus.PACKED: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELED: frozenset(),
}

# Timestamp stamped the first time an order reaches each status
STATUS_TIMESTAMP_FIELDS: dict[str, str] = {
    OrderStatus.PAID: "paid_at",
    OrderStatus.PACKED: "packed_at",
    OrderStatus.SHIPPED: "shipped_at",
    OrderStatus.DELIVERED: "delivered_at",
    OrderStatus.CANCELED: "canceled_at",
}

_DESCRIPTIONS: dict[tuple[str, str], str] = {
    (OrderStatus.PENDING, OrderStatus.PAID): "Payment confirmed",
    (OrderStatus.PAID, OrderStatus.PACKED): "Order packed by seller",
    (OrderStatus.PACKED, OrderStatus.SHIPPED): "Order handed to carrier",
    (OrderStatus.SHIPPED, OrderStatus.DELIVERED): "Order delivered to buyer",
}


def validate_transition(current: str, target: str) -> None:
    """
    Check that `current -> target` is on the order graph.

    Raises:
        IllegalTransitionError: If the transition is not allowed,
            including unknown statuses and self-transitions
    """
    if target not in VALID_TRANSITIONS.get(current, frozenset()):
        raise IllegalTransitionError(current=current, target=target)


def get_valid_next_statuses(current: str) -> list[str]:
    """Statuses reachable in one step, in lifecycle order."""
    allowed = VALID_TRANSITIONS.get(current, frozenset())
    return [status for status in OrderStatus.values if status in allowed]


def can_cancel(current: str) -> bool:
    return OrderStatus.CANCELED in VALID_TRANSITIONS.get(current, frozenset())


def is_terminal(current: str) -> bool:
    return not VALID_TRANSITIONS.get(current)


def describe_transition(current: str, target: str) -> str:
    """Human-readable summary used as the audit message."""
    if target == OrderStatus.CANCELED:
        return f"Order canceled (was {current})"
    return _DESCRIPTIONS.get((current, target), f"Status changed {current} -> {target}")


__all__ = [
    "VALID_TRANSITIONS",
    "STATUS_TIMESTAMP_FIELDS",
    "validate_transition",
    "get_valid_next_statuses",
    "can_cancel",
    "is_terminal",
    "describe_transition",
]

"""
Order lifecycle exceptions.

Exception Hierarchy:
    ConflictError (core)
    └── IllegalTransitionError - Status change not on the order graph
    NotFoundError (core)
    └── OrderNotFoundError - Order id does not exist
"""

from __future__ import annotations

from core.exceptions import ConflictError, NotFoundError


class IllegalTransitionError(ConflictError):
    """
    Raised when a status change is not on the legal graph.

    Always recoverable: the caller re-reads the current status and decides
    again.

    Attributes:
        current: Status the order was in
        target: Status that was requested
    """

    default_error_code = "ILLEGAL_TRANSITION"

    def __init__(self, current: str, target: str, message: str | None = None):
        self.current = current
        self.target = target
        super().__init__(
            message or f"Cannot transition order from '{current}' to '{target}'",
            details={"current": current, "target": target},
        )


class OrderNotFoundError(NotFoundError):
    """Raised when an order id does not exist."""

    default_error_code = "ORDER_NOT_FOUND"


__all__ = ["IllegalTransitionError", "OrderNotFoundError"]

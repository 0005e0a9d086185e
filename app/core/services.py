"""
Base service layer patterns for business logic encapsulation.

- ServiceResult: Standard result wrapper for expected outcomes
- BaseService: Base class with logging and transaction helpers

Services hold the marketplace rules. Views translate HTTP into service calls,
Celery tasks translate schedules into service calls, and models only describe
data and row-level transitions.

Pattern Comparison:
    - ServiceResult: expected outcomes a caller branches on (skipped, rejected)
    - Exceptions: caller-actionable failures (illegal transition, not approved)

Usage:
    class OrderService(BaseService):
        @classmethod
        def transition(cls, order_id, target, actor) -> Order:
            with cls.atomic():
                ...
            cls.get_logger().info(
                "Order transitioned",
                extra={"order_id": str(order_id), "to": target},
            )
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful
        error: Error message if failed
        error_code: Machine-readable error code
        errors: Field-level errors for validation failures

    Usage:
        result = RefundService.create_refund(order_id, amount_cents, actor=user)
        if result.success:
            refund = result.data
        else:
            logger.warning(result.error, extra={"code": result.error_code})
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)

    @classmethod
    def ok(cls, data: T) -> ServiceResult[T]:
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code for client handling
            errors: Field-level errors (for validation failures)
        """
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
        )

    def to_response(self) -> dict[str, Any]:
        """Convert to a DRF-friendly response body."""
        if self.success:
            return {"success": True, "data": self.data}

        response: dict[str, Any] = {
            "success": False,
            "error": self.error,
        }
        if self.error_code:
            response["error_code"] = self.error_code
        if self.errors:
            response["errors"] = self.errors
        return response

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Design Notes:
        - Services are stateless; use @classmethod
        - Use ServiceResult for expected outcomes
        - Raise BaseApplicationError subclasses for caller-actionable failures
        - Never call an external provider while holding a row lock
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Logger named after the service class for easy filtering."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        Nested use creates a savepoint, so an IntegrityError caught inside
        an inner block does not poison the outer transaction.
        """
        with transaction.atomic():
            yield


__all__ = ["ServiceResult", "BaseService"]

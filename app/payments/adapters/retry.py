"""
Bounded retry with exponential backoff for provider calls.

Policy (from settings):
    SETTLEMENT_MAX_ATTEMPTS          3
    SETTLEMENT_BACKOFF_BASE_SECONDS  1
    SETTLEMENT_BACKOFF_MULTIPLIER    2
    SETTLEMENT_BACKOFF_MAX_SECONDS   4

Only ProviderError instances with is_retryable=True are retried. Any other
exception propagates on the first attempt.

Usage:
    outcome = call_with_retry(lambda: provider.send_payout(request))
    outcome.value      # SettlementResult
    outcome.attempts   # 1..max_attempts
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar

from django.conf import settings

from payments.exceptions import ProviderError

if TYPE_CHECKING:
    from collections.abc import Callable

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 1.0
    multiplier: float = 2.0
    max_delay: float = 4.0

    @classmethod
    def from_settings(cls) -> RetryPolicy:
        return cls(
            max_attempts=settings.SETTLEMENT_MAX_ATTEMPTS,
            base_delay=settings.SETTLEMENT_BACKOFF_BASE_SECONDS,
            multiplier=settings.SETTLEMENT_BACKOFF_MULTIPLIER,
            max_delay=settings.SETTLEMENT_BACKOFF_MAX_SECONDS,
        )

    def delay_after(self, attempt: int) -> float:
        """
        Seconds to wait after failed attempt number `attempt` (1-indexed).

        Example (defaults):
            attempt 1 -> 1.0, attempt 2 -> 2.0, attempt 3 -> 4.0, then capped
        """
        return min(self.base_delay * (self.multiplier ** (attempt - 1)), self.max_delay)


@dataclass
class RetryOutcome(Generic[T]):
    value: T
    attempts: int


def call_with_retry(
    func: Callable[[], T],
    policy: RetryPolicy | None = None,
    sleep: Callable[[float], None] | None = None,
    context: dict | None = None,
) -> RetryOutcome[T]:
    """
    Call `func` until it succeeds, fails terminally, or attempts run out.

    Raises:
        ProviderError: The last error, with `attempts` set to the number
            of calls made
    """
    policy = policy or RetryPolicy.from_settings()
    sleep = sleep or time.sleep
    context = context or {}
    attempt = 0

    while True:
        attempt += 1
        try:
            return RetryOutcome(value=func(), attempts=attempt)
        except ProviderError as exc:
            exc.attempts = attempt
            if not exc.is_retryable or attempt >= policy.max_attempts:
                logger.warning(
                    "Provider call failed, not retrying",
                    extra={
                        **context,
                        "attempt": attempt,
                        "error_code": exc.error_code,
                        "retryable": exc.is_retryable,
                    },
                )
                raise

            delay = policy.delay_after(attempt)
            logger.info(
                "Transient provider error, retrying",
                extra={
                    **context,
                    "attempt": attempt,
                    "delay_seconds": delay,
                    "error_code": exc.error_code,
                },
            )
            sleep(delay)


__all__ = ["RetryPolicy", "RetryOutcome", "call_with_retry"]

"""
Settlement-specific exceptions.

Exception Hierarchy:
    ExternalServiceError (core)
    └── ProviderError - Settlement provider call failed
        ├── ProviderTransientError - 5xx / connection reset / timeout (retry)
        └── ProviderRejectedError - 4xx / validation / auth (never retry)
    ExternalServiceError (core)
    └── WebhookStoreUnavailableError - Event could not be recorded (503)
    PermissionDeniedError (core)
    └── NotApprovedError - Payout run without a payout_approved entry
    ConflictError (core)
    ├── DuplicateEventError - Webhook idempotency key already recorded
    ├── SettlementInProgressError - Record is already being executed
    └── InvalidSettlementStateError - Action not allowed in current status
    NotFoundError (core)
    └── SettlementNotFoundError - Payout / refund id does not exist
    ValidationError (core)
    ├── RefundValidationError - Refund request breaks a refund rule
    └── WebhookPayloadError - Carrier webhook payload rejected (422)
    PermissionDeniedError (core)
    └── WebhookSignatureError - Carrier webhook signature missing or wrong

Usage:
    from payments.exceptions import ProviderTransientError

    if response.status_code >= 500:
        raise ProviderTransientError(
            f"Bank API error: {response.status_code}",
            provider="bank_transfer",
            status_code=response.status_code,
        )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import (
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Provider Exceptions
# =============================================================================


class ProviderError(ExternalServiceError):
    """
    Base exception for settlement provider failures.

    Attributes:
        provider: Provider name (stripe, bank_transfer, mock)
        status_code: HTTP status returned by the provider, if any
        attempts: Number of calls made before giving up (set by the retry loop)
        is_retryable: Whether repeating the same call may succeed
    """

    default_error_code: str = "PROVIDER_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        provider: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if provider:
            details["provider"] = provider
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, error_code=error_code, details=details)
        self.provider = provider
        self.status_code = status_code
        self.attempts = 1


class ProviderTransientError(ProviderError):
    """
    Transient provider failure, safe to retry with backoff.

    Raised for HTTP 5xx, connection resets and timeouts.
    """

    default_error_code: str = "PROVIDER_TRANSIENT_ERROR"
    is_retryable: bool = True


class ProviderRejectedError(ProviderError):
    """
    Provider definitively rejected the request.

    Raised for every HTTP 4xx (429 included), validation and
    authentication failures. Retrying wastes budget and hides
    configuration bugs.
    """

    default_error_code: str = "PROVIDER_REJECTED"
    is_retryable: bool = False


class WebhookStoreUnavailableError(ExternalServiceError):
    """
    The webhook event could not be durably recorded.

    Surfaced as 503 so the sender retries the delivery.
    """

    default_error_code: str = "WEBHOOK_STORE_UNAVAILABLE"
    http_status: int = 503
    is_retryable: bool = True


# =============================================================================
# Approval & State Exceptions
# =============================================================================


class NotApprovedError(PermissionDeniedError):
    """
    Raised when a payout is executed without an approval audit entry.

    Raised before the record is claimed and before any provider call.
    """

    default_error_code: str = "PAYOUT_NOT_APPROVED"


class DuplicateEventError(ConflictError):
    """
    Raised when a webhook idempotency key was already recorded.

    Not an error for the sender: the ingestion layer turns it into a
    successful "duplicate" response.
    """

    default_error_code: str = "DUPLICATE_EVENT"

    def __init__(self, idempotency_key: str):
        self.idempotency_key = idempotency_key
        super().__init__(
            f"Webhook event {idempotency_key} was already processed",
            details={"idempotency_key": idempotency_key},
        )


class SettlementInProgressError(ConflictError):
    """
    Raised when a run cannot claim the record.

    Either another caller already moved it to processing, or it is in a
    status from which it cannot be run (paid / refunded).
    """

    default_error_code: str = "SETTLEMENT_NOT_RUNNABLE"


class InvalidSettlementStateError(ConflictError):
    """Raised when an admin action does not fit the record's status."""

    default_error_code: str = "INVALID_SETTLEMENT_STATE"


class SettlementNotFoundError(NotFoundError):
    """Raised when a payout or refund id does not exist."""

    default_error_code: str = "SETTLEMENT_NOT_FOUND"


class RefundValidationError(ValidationError):
    """Raised when a refund request breaks a refund rule."""

    default_error_code: str = "REFUND_VALIDATION_ERROR"


class WebhookPayloadError(ValidationError):
    """Raised when a carrier webhook payload fails validation."""

    default_error_code: str = "INVALID_WEBHOOK_PAYLOAD"
    http_status: int = 422


class WebhookSignatureError(PermissionDeniedError):
    """Raised when WEBHOOK_SHARED_SECRET is set and the signature does not match."""

    default_error_code: str = "INVALID_WEBHOOK_SIGNATURE"


__all__ = [
    "ProviderError",
    "ProviderTransientError",
    "ProviderRejectedError",
    "WebhookStoreUnavailableError",
    "NotApprovedError",
    "DuplicateEventError",
    "SettlementInProgressError",
    "InvalidSettlementStateError",
    "SettlementNotFoundError",
    "RefundValidationError",
    "WebhookPayloadError",
    "WebhookSignatureError",
]

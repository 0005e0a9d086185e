"""
Settlement provider contract.

Every provider turns a PayoutRequest / RefundRequest into a
SettlementResult or raises ProviderTransientError / ProviderRejectedError.
Providers make exactly one call per invocation; retry policy lives in
payments.adapters.retry so it is identical for every provider.
"""

from __future__ import annotations

import hashlib
import uuid
from dataclasses import dataclass, field
from typing import Any, Protocol

from django.conf import settings

# =============================================================================
# Data Types
# =============================================================================


@dataclass
class PayoutRequest:
    """
    Input for a seller disbursement.

    Attributes:
        payout_id: Payout being executed
        seller_id: Seller receiving the money
        amount_cents: Amount in minor units
        currency: ISO 4217 code
        destination: IBAN / connected account id captured at checkout
        idempotency_key: Stable key so provider-side retries never duplicate
    """

    payout_id: str
    seller_id: str
    amount_cents: int
    currency: str
    destination: str
    idempotency_key: str


@dataclass
class RefundRequest:
    """
    Input for a buyer refund.

    Attributes:
        refund_id: Refund being executed
        order_id: Order being refunded
        amount_cents: Amount in minor units
        currency: ISO 4217 code
        payment_reference: Provider id of the original buyer payment
        idempotency_key: Stable key so provider-side retries never duplicate
    """

    refund_id: str
    order_id: str
    amount_cents: int
    currency: str
    payment_reference: str
    idempotency_key: str


@dataclass
class SettlementResult:
    """Successful provider response."""

    provider_ref: str
    raw_response: dict[str, Any] = field(default_factory=dict)


class SettlementProvider(Protocol):
    """Anything that can move money out for payouts and refunds."""

    name: str

    def send_payout(self, request: PayoutRequest) -> SettlementResult: ...

    def send_refund(self, request: RefundRequest) -> SettlementResult: ...


# =============================================================================
# Idempotency Key Generator
# =============================================================================


class IdempotencyKeyGenerator:
    """
    Generate idempotency keys for provider calls.

    Format: "{operation}:{entity_id}:{run}:{hash}"

    The same payout run reuses one key across its retry attempts, so a
    request that reached the provider before a timeout is not executed
    twice. A new run (after FAILED) gets a new run number and a new key.

    Example:
        key = IdempotencyKeyGenerator.generate("payout", payout.id, run=2)
        # "payout:550e8400-e29b-41d4-a716-446655440000:2:a1b2c3d4"
    """

    @staticmethod
    def generate(operation: str, entity_id: uuid.UUID | str, run: int = 1) -> str:
        entity_str = str(entity_id)
        hash_input = f"{operation}:{entity_str}:{run}:{settings.SECRET_KEY}"
        short_hash = hashlib.sha256(hash_input.encode()).hexdigest()[:8]
        return f"{operation}:{entity_str}:{run}:{short_hash}"


__all__ = [
    "PayoutRequest",
    "RefundRequest",
    "SettlementResult",
    "SettlementProvider",
    "IdempotencyKeyGenerator",
]

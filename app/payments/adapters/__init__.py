"""
Settlement provider adapters.

All money movement goes through a SettlementProvider so that error
classification, idempotency keys and logging are consistent. The active
provider is chosen by settings.SETTLEMENT_PROVIDER.

Usage:
    from payments.adapters import get_settlement_provider

    provider = get_settlement_provider()
    result = provider.send_payout(request)

Tests swap the provider with set_settlement_provider(MockSettlementProvider()).
"""

from __future__ import annotations

from django.conf import settings

from payments.adapters.bank_transfer import BankTransferSettlementProvider
from payments.adapters.base import (
    IdempotencyKeyGenerator,
    PayoutRequest,
    RefundRequest,
    SettlementProvider,
    SettlementResult,
)
from payments.adapters.mock import MockSettlementProvider
from payments.adapters.retry import RetryOutcome, RetryPolicy, call_with_retry
from payments.adapters.stripe_adapter import StripeSettlementProvider
from payments.exceptions import ProviderRejectedError

PROVIDERS = {
    "mock": MockSettlementProvider,
    "stripe": StripeSettlementProvider,
    "bank_transfer": BankTransferSettlementProvider,
}

_provider_override: SettlementProvider | None = None


def get_settlement_provider() -> SettlementProvider:
    """
    Return the configured provider.

    Raises:
        ProviderRejectedError: Unknown provider name or missing credentials
    """
    if _provider_override is not None:
        return _provider_override
    name = settings.SETTLEMENT_PROVIDER
    provider_class = PROVIDERS.get(name)
    if provider_class is None:
        raise ProviderRejectedError(
            f"Unknown settlement provider '{name}'",
            error_code="PROVIDER_MISCONFIGURED",
            provider=name,
        )
    return provider_class()


def set_settlement_provider(provider: SettlementProvider | None) -> None:
    """Override the provider (None restores settings-based lookup)."""
    global _provider_override
    _provider_override = provider


__all__ = [
    "BankTransferSettlementProvider",
    "IdempotencyKeyGenerator",
    "MockSettlementProvider",
    "PayoutRequest",
    "RefundRequest",
    "RetryOutcome",
    "RetryPolicy",
    "SettlementProvider",
    "SettlementResult",
    "StripeSettlementProvider",
    "call_with_retry",
    "get_settlement_provider",
    "set_settlement_provider",
]

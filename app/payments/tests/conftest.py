"""
Pytest fixtures for settlement tests.

Providers are injected directly into run_payout / run_refund, and `sleep`
is always a recorder so retry backoff never slows the suite.

Usage:
    def test_run(approved_payout, mock_provider, no_sleep):
        PayoutService.run_payout(approved_payout.id, provider=mock_provider, sleep=no_sleep)
"""

import pytest

from audit.models import AuditAction, AuditEntityType
from audit.services import AuditService
from payments.adapters import MockSettlementProvider
from payments.exceptions import ProviderRejectedError, ProviderTransientError
from payments.tests.factories import PayoutFactory, RefundFactory
from payments.tests.providers import ScriptedProvider, SleepRecorder


# =============================================================================
# Provider Fixtures
# =============================================================================


@pytest.fixture
def no_sleep():
    return SleepRecorder()


@pytest.fixture
def mock_provider():
    return MockSettlementProvider()


@pytest.fixture
def scripted_provider():
    """Factory: scripted_provider([transient_error(), None])."""
    return ScriptedProvider


@pytest.fixture
def transient_error():
    def _make(message="Bank API error: 503"):
        return ProviderTransientError(message, provider="mock", status_code=503)

    return _make


@pytest.fixture
def rejected_error():
    def _make(message="Bank API error: 400 - invalid IBAN"):
        return ProviderRejectedError(message, provider="mock", status_code=400)

    return _make


# =============================================================================
# Settlement Fixtures
# =============================================================================


@pytest.fixture
def approve_payout():
    """Write the payout_approved audit entry directly."""

    def _approve(payout, actor=None):
        return AuditService.record(
            action=AuditAction.PAYOUT_APPROVED,
            entity_type=AuditEntityType.PAYOUT,
            entity_id=payout.id,
            actor=actor,
            message="Payout approved for execution",
        )

    return _approve


@pytest.fixture
def payout(db):
    return PayoutFactory()


@pytest.fixture
def approved_payout(db, admin_user, approve_payout):
    payout = PayoutFactory()
    approve_payout(payout, actor=admin_user)
    return payout


@pytest.fixture
def refund(db):
    return RefundFactory()

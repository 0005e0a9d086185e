"""
In-process settlement provider for development and tests.

Always succeeds unless `fail_with` is set. References look like
"MOCK-<payout id>".
"""

from __future__ import annotations

import logging

from payments.adapters.base import PayoutRequest, RefundRequest, SettlementResult
from payments.exceptions import ProviderError

logger = logging.getLogger(__name__)


class MockSettlementProvider:
    name = "mock"

    def __init__(self, fail_with: ProviderError | None = None):
        self.fail_with = fail_with
        self.calls: list[PayoutRequest | RefundRequest] = []

    def send_payout(self, request: PayoutRequest) -> SettlementResult:
        self.calls.append(request)
        if self.fail_with is not None:
            raise self.fail_with
        logger.info("Mock payout sent", extra={"payout_id": request.payout_id})
        return SettlementResult(provider_ref=f"MOCK-{request.payout_id}")

    def send_refund(self, request: RefundRequest) -> SettlementResult:
        self.calls.append(request)
        if self.fail_with is not None:
            raise self.fail_with
        logger.info("Mock refund sent", extra={"refund_id": request.refund_id})
        return SettlementResult(provider_ref=f"MOCK-REFUND-{request.refund_id}")

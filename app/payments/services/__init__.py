"""
Settlement services.

This module provides:
- PayoutService: Payout creation, approval, execution and manual override
- RefundService: Refund creation and execution
- PayoutBatchService: Date-scoped batch runs of approved payouts
- SettlementMonitoringService: Alerts for settlements stuck in processing

Usage:
    from payments.services import PayoutService

    PayoutService.approve(payout_id, actor=admin)
    result = PayoutService.run_payout(payout_id, actor=admin)

    # Run every approved payout delivered up to today
    from payments.services import PayoutBatchService

    batch = PayoutBatchService.run_batch(date.today())
    print(batch.counts())

    # Refund an order
    from payments.services import RefundService

    refund = RefundService.create_refund(order.id, amount_cents=2500,
                                         reason="Customer request")
    result = RefundService.run_refund(refund.id)
"""

from payments.services.batch_service import PayoutBatchService
from payments.services.monitoring_service import SettlementMonitoringService
from payments.services.payout_service import PayoutService
from payments.services.refund_service import RefundService
from payments.services.types import BatchRunResult, SettlementRunResult

__all__ = [
    "BatchRunResult",
    "PayoutBatchService",
    "PayoutService",
    "RefundService",
    "SettlementMonitoringService",
    "SettlementRunResult",
]

"""
State machine enums for settlement models.
"""

from payments.state_machines.states import (
    RUNNABLE_PAYOUT_STATUSES,
    RUNNABLE_REFUND_STATUSES,
    PayoutStatus,
    RefundStatus,
    SettlementType,
    WebhookOutcome,
)

__all__ = [
    "PayoutStatus",
    "RefundStatus",
    "SettlementType",
    "WebhookOutcome",
    "RUNNABLE_PAYOUT_STATUSES",
    "RUNNABLE_REFUND_STATUSES",
]

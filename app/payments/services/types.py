"""
Result types returned by settlement services.

Services return these instead of model instances so that views, Celery
tasks and batch summaries serialize the same shape.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass
class SettlementRunResult:
    """
    Outcome of one runPayout / runRefund call.

    Attributes:
        settlement_id: Payout or refund id
        settlement_type: "payout" or "refund"
        status: Record status after the run (or a skip marker in batches)
        success: Whether money moved (or had already moved)
        provider_ref: Provider reference when paid/refunded
        failure_reason: Reason when the run failed or was skipped
        attempts: Provider calls made in this run
        already_settled: True when the record was already paid/refunded
    """

    settlement_id: str
    settlement_type: str
    status: str
    success: bool
    provider_ref: str | None = None
    failure_reason: str | None = None
    attempts: int = 0
    already_settled: bool = False

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class BatchRunResult:
    """
    Outcome of a batch payout run.

    Counts:
        attempted: Approved, due payouts handed to runPayout
        approved_skipped: Due payouts skipped because they lack approval
        succeeded: Runs that ended paid
        failed: Runs that ended failed or could not be claimed
    """

    batch_id: str
    target_date: str
    attempted: int = 0
    approved_skipped: int = 0
    succeeded: int = 0
    failed: int = 0
    items: list[SettlementRunResult] = field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {
            "attempted": self.attempted,
            "approved_skipped": self.approved_skipped,
            "succeeded": self.succeeded,
            "failed": self.failed,
        }

    def as_dict(self) -> dict[str, Any]:
        return {
            "batch_id": self.batch_id,
            "target_date": self.target_date,
            **self.counts(),
            "items": [item.as_dict() for item in self.items],
        }


__all__ = ["SettlementRunResult", "BatchRunResult"]

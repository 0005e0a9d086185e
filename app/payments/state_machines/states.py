"""
State enums for settlement models.

These are Django TextChoices for database storage and admin integration;
Payout and Refund drive them with django-fsm.

State Machines Overview:

Payout States:
    pending → processing → paid
    pending → processing → failed → processing (re-run)
    pending/failed/processing → paid (manual override)

Refund States:
    pending → processing → refunded
    pending → processing → failed → processing (re-run)

The pending/failed → processing step is never an FSM save: it is a
conditional UPDATE so that exactly one concurrent caller wins the claim.
"""

from django.db import models


class PayoutStatus(models.TextChoices):
    """
    States for the Payout lifecycle.

    Terminal state: PAID. FAILED is re-runnable.
    """

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    PAID = "paid", "Paid"
    FAILED = "failed", "Failed"


class RefundStatus(models.TextChoices):
    """
    States for the Refund lifecycle.

    Terminal state: REFUNDED. FAILED is re-runnable.
    """

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    REFUNDED = "refunded", "Refunded"
    FAILED = "failed", "Failed"


class WebhookOutcome(models.TextChoices):
    """
    Processing outcome of a carrier webhook.

    OK and ERROR are stored on the event row. DUPLICATE is only ever a
    response outcome: a duplicate delivery never gets a row of its own.
    """

    OK = "ok", "OK"
    DUPLICATE = "duplicate", "Duplicate"
    ERROR = "error", "Error"


class SettlementType(models.TextChoices):
    PAYOUT = "payout", "Payout"
    REFUND = "refund", "Refund"


# Statuses from which runPayout / runRefund may claim a record
RUNNABLE_PAYOUT_STATUSES = (PayoutStatus.PENDING, PayoutStatus.FAILED)
RUNNABLE_REFUND_STATUSES = (RefundStatus.PENDING, RefundStatus.FAILED)

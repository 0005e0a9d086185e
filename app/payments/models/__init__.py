"""
Settlement domain models.

- Payout: Money owed to a seller for a delivered order
- Refund: Money returned to a buyer
- WebhookEvent: Carrier webhook deduplication record
"""

from payments.models.payout import Payout
from payments.models.refund import Refund
from payments.models.webhook_event import WebhookEvent

__all__ = [
    "Payout",
    "Refund",
    "WebhookEvent",
]

"""
Order model.

Orders are created by checkout (outside this project) in PENDING and are
never deleted. Status only changes through OrderService.transition(),
which applies a conditional update so the row itself is the guard.

Amounts are integer minor units (cents / bani), never floats.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from orders.states import OrderStatus


class Order(UUIDPrimaryKeyMixin, BaseModel):
    """
    A buyer's order fulfilled by a single seller.

    Fields:
        status: Lifecycle status (see orders.states)
        buyer / seller: Parties to the order
        total_cents: Amount charged to the buyer
        commission_cents: Platform commission withheld from the seller
        currency: ISO 4217 code
        paid_at .. canceled_at: First time each status was reached
        delivery_status: Latest free-form carrier status (informational)
        carrier_meta: Opaque carrier data from the last webhook
        payment_reference: Provider id of the buyer payment, for refunds
        payout_destination: Where the seller is paid (IBAN or account id)
    """

    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
        db_index=True,
    )
    buyer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders_placed",
    )
    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders_sold",
    )
    total_cents = models.BigIntegerField(
        help_text="Order total in minor currency units",
    )
    commission_cents = models.BigIntegerField(
        default=0,
        help_text="Platform commission in minor currency units",
    )
    currency = models.CharField(max_length=3, default="RON")

    paid_at = models.DateTimeField(null=True, blank=True)
    packed_at = models.DateTimeField(null=True, blank=True)
    shipped_at = models.DateTimeField(null=True, blank=True, db_index=True)
    delivered_at = models.DateTimeField(null=True, blank=True, db_index=True)
    canceled_at = models.DateTimeField(null=True, blank=True)

    payment_reference = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Provider reference of the buyer payment (used for refunds)",
    )
    payout_destination = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Seller payout destination captured at checkout (IBAN or account id)",
    )

    delivery_status = models.CharField(max_length=50, blank=True, default="")
    carrier_meta = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_cents__gte=0),
                name="order_total_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(commission_cents__gte=0)
                & models.Q(commission_cents__lte=models.F("total_cents")),
                name="order_commission_within_total",
            ),
        ]

    def __str__(self) -> str:
        return f"Order {self.id} ({self.status})"

    @property
    def seller_due_cents(self) -> int:
        """Amount owed to the seller once the order is delivered."""
        return self.total_cents - self.commission_cents

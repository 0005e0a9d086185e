"""
Order status definitions.

Flow:
    PENDING -> PAID -> PACKED -> SHIPPED -> DELIVERED
        |        |        |
        +--------+--------+--> CANCELED

DELIVERED and CANCELED are terminal. Forward steps cannot be skipped
because each step stamps a timestamp that downstream automation reads
(for example auto-delivery N days after shipping).
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    PACKED = "packed", "Packed"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    CANCELED = "canceled", "Canceled"


class CarrierDeliveryStatus(models.TextChoices):
    """Normalized carrier statuses accepted from shipping webhooks."""

    IN_TRANSIT = "in_transit", "In Transit"
    OUT_FOR_DELIVERY = "out_for_delivery", "Out For Delivery"
    DELIVERED = "delivered", "Delivered"
    RETURN = "return", "Returned To Sender"


__all__ = ["OrderStatus", "CarrierDeliveryStatus"]

"""Serializers for the orders API."""

from rest_framework import serializers

from orders.models import Order
from orders.states import OrderStatus
from orders.transitions import get_valid_next_statuses


class OrderSerializer(serializers.ModelSerializer):
    """Order as returned after a status change."""

    next_statuses = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "status",
            "next_statuses",
            "buyer",
            "seller",
            "total_cents",
            "commission_cents",
            "currency",
            "paid_at",
            "packed_at",
            "shipped_at",
            "delivered_at",
            "canceled_at",
            "delivery_status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_next_statuses(self, obj: Order) -> list[str]:
        return get_valid_next_statuses(obj.status)


class OrderStatusUpdateSerializer(serializers.Serializer):
    """Body of PATCH /orders/<id>/status/."""

    status = serializers.ChoiceField(choices=OrderStatus.choices)
    note = serializers.CharField(required=False, allow_blank=True, max_length=500)

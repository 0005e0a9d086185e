"""
Carrier webhook payload validation.

Expected body:
    {
        "provider": "cargus",
        "event_id": "E-123",
        "order_id": "<order uuid>",
        "status": "delivered",
        "meta": {...}            # optional, opaque
    }
"""

from django.conf import settings
from rest_framework import serializers

from orders.states import CarrierDeliveryStatus


class CarrierWebhookSerializer(serializers.Serializer):
    provider = serializers.CharField(max_length=50)
    event_id = serializers.CharField(max_length=255)
    order_id = serializers.CharField(max_length=64)
    status = serializers.ChoiceField(choices=CarrierDeliveryStatus.choices)
    meta = serializers.DictField(required=False, default=dict)

    def validate_provider(self, value: str) -> str:
        value = value.strip().lower()
        if value not in settings.WEBHOOK_ALLOWED_PROVIDERS:
            raise serializers.ValidationError(f"Unknown provider '{value}'")
        return value

    def validate_event_id(self, value: str) -> str:
        value = value.strip()
        if not value:
            raise serializers.ValidationError("event_id must not be blank")
        return value

    def validate_order_id(self, value: str) -> str:
        value = value.strip()
        if not value:
            raise serializers.ValidationError("order_id must not be blank")
        return value

"""
DRF serializers for the settlement admin API.

Related files:
    - models/: Payout, Refund
    - views.py: Settlement admin views

Usage:
    serializer = PayoutSerializer(payout)
    data = serializer.data
"""

from __future__ import annotations

from rest_framework import serializers

from payments.models import Payout, Refund
from payments.state_machines import PayoutStatus


class PayoutSerializer(serializers.ModelSerializer):
    """Payout as shown to admins."""

    order_id = serializers.UUIDField(read_only=True)
    seller_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Payout
        fields = [
            "id",
            "order_id",
            "seller_id",
            "amount_cents",
            "commission_cents",
            "currency",
            "destination",
            "status",
            "provider",
            "provider_ref",
            "attempts",
            "runs",
            "failure_reason",
            "processing_started_at",
            "paid_at",
            "failed_at",
            "created_at",
        ]
        read_only_fields = fields


class RefundSerializer(serializers.ModelSerializer):
    """Refund as shown to admins."""

    order_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Refund
        fields = [
            "id",
            "order_id",
            "amount_cents",
            "currency",
            "reason",
            "status",
            "provider",
            "provider_ref",
            "attempts",
            "runs",
            "was_post_payout",
            "failure_reason",
            "refunded_at",
            "failed_at",
            "created_at",
        ]
        read_only_fields = fields


class ApprovalNoteSerializer(serializers.Serializer):
    note = serializers.CharField(required=False, allow_blank=True, max_length=500)


class MarkPaidSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=1000)
    provider_ref = serializers.CharField(required=False, allow_blank=True, max_length=255)

    def validate_reason(self, value: str) -> str:
        if not value.strip():
            raise serializers.ValidationError("A reason is required")
        return value.strip()


class BatchRunQuerySerializer(serializers.Serializer):
    """?date=YYYY-MM-DD; defaults to today."""

    date = serializers.DateField(required=False)


class PayoutExportQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=PayoutStatus.choices, required=False)
    approved_only = serializers.BooleanField(required=False, default=False)


class RefundCreateSerializer(serializers.Serializer):
    amount_cents = serializers.IntegerField(required=False, min_value=1)
    reason = serializers.CharField(required=False, allow_blank=True, max_length=1000)

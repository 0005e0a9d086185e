"""
Webhook endpoint views for shipping carriers.

The view:
1. Verifies the HMAC signature when WEBHOOK_SHARED_SECRET is set
2. Validates the payload (422 on anything malformed, before any insert)
3. Hands the event to CarrierWebhookService.ingest()
4. Returns {"ok": true, "duplicate": bool}

Usage:
    # In config/urls.py
    path("webhooks/carriers/", CarrierWebhookView.as_view(), name="carrier_webhook")
"""

from __future__ import annotations

import hashlib
import hmac
import logging

from django.conf import settings
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from payments.exceptions import WebhookPayloadError, WebhookSignatureError
from payments.webhooks.serializers import CarrierWebhookSerializer
from payments.webhooks.services import CarrierWebhookService

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Webhook-Signature"


def verify_signature(body: bytes, signature: str, secret: str) -> bool:
    """Compare a hex HMAC-SHA256 of the raw body against the header."""
    expected = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature.strip().lower())


class CarrierWebhookView(APIView):
    """
    Receive carrier delivery events.

    Security:
    - No user authentication; carriers authenticate with the shared secret
    - CSRF does not apply (no session authentication)

    Idempotency:
    - (provider, event_id) is unique; redeliveries return 200 with
      duplicate=true and cause no side effects
    """

    authentication_classes = []
    permission_classes = [AllowAny]
    throttle_classes = []

    @extend_schema(
        summary="Carrier delivery webhook",
        tags=["Webhooks"],
        request=CarrierWebhookSerializer,
        responses={
            200: OpenApiResponse(description="Event accepted (new or duplicate)"),
            403: OpenApiResponse(description="Bad signature"),
            404: OpenApiResponse(description="Order not found (event still consumed)"),
            422: OpenApiResponse(description="Invalid payload"),
            503: OpenApiResponse(description="Event store unavailable, retry"),
        },
    )
    def post(self, request):
        secret = settings.WEBHOOK_SHARED_SECRET
        if secret:
            signature = request.headers.get(SIGNATURE_HEADER, "")
            if not signature or not verify_signature(request.body, signature, secret):
                logger.warning("Carrier webhook signature verification failed")
                raise WebhookSignatureError("Invalid webhook signature")

        serializer = CarrierWebhookSerializer(data=request.data)
        if not serializer.is_valid():
            logger.warning(
                "Carrier webhook payload rejected",
                extra={"errors": serializer.errors},
            )
            raise WebhookPayloadError(
                "Invalid webhook payload",
                details={"fields": serializer.errors},
            )

        data = serializer.validated_data
        result = CarrierWebhookService.ingest(
            provider=data["provider"],
            event_id=data["event_id"],
            order_ref=data["order_id"],
            status=data["status"],
            meta=data.get("meta") or {},
            raw_payload=dict(request.data),
        )
        return Response(result.as_response())

"""
Tests for carrier webhook ingestion.

Covers the service (idempotency, delivery transition, redaction, unknown
orders, store failures) and the HTTP endpoint (signature, 422, 404).
"""

import hashlib
import hmac
import json

import pytest
from django.db import DatabaseError

from audit.models import AuditAction, AuditEntityType, AuditLogEntry
from orders.exceptions import OrderNotFoundError
from orders.states import OrderStatus
from orders.tests.factories import OrderFactory
from payments.exceptions import WebhookStoreUnavailableError
from payments.models import Payout, WebhookEvent
from payments.state_machines import WebhookOutcome
from payments.webhooks.services import CarrierWebhookService, redact_secrets
from payments.webhooks.views import verify_signature


class TestRedactSecrets:
    def test_masks_sensitive_keys_at_any_depth(self):
        payload = {
            "awb": "123",
            "api_key": "k",
            "auth": {"Authorization": "Bearer x", "user": "cargus"},
            "items": [{"signature": "s", "weight": 2}],
        }

        assert redact_secrets(payload) == {
            "awb": "123",
            "api_key": "[REDACTED]",
            "auth": {"Authorization": "[REDACTED]", "user": "cargus"},
            "items": [{"signature": "[REDACTED]", "weight": 2}],
        }

    def test_leaves_input_untouched(self):
        payload = {"token": "abc"}

        redact_secrets(payload)

        assert payload == {"token": "abc"}


@pytest.mark.django_db
class TestIngest:
    def ingest(self, order, event_id="E1", status="in_transit", **kwargs):
        return CarrierWebhookService.ingest(
            provider="cargus",
            event_id=event_id,
            order_ref=str(order.id),
            status=status,
            **kwargs,
        )

    def test_records_event_and_updates_order(self):
        order = OrderFactory(shipped=True)

        result = self.ingest(order, meta={"awb": "A1", "carrier_token": "t"})

        order.refresh_from_db()
        assert result.as_response() == {"ok": True, "duplicate": False}
        assert order.delivery_status == "in_transit"
        assert order.carrier_meta == {"awb": "A1", "carrier_token": "[REDACTED]"}
        event = WebhookEvent.objects.get(idempotency_key="cargus:E1")
        assert event.outcome == WebhookOutcome.OK
        assert event.processed_at is not None

    def test_delivered_moves_shipped_order_and_creates_payout(self):
        order = OrderFactory(shipped=True)

        result = self.ingest(order, status="delivered")

        order.refresh_from_db()
        assert result.transitioned is True
        assert order.status == OrderStatus.DELIVERED
        assert Payout.objects.filter(order=order).count() == 1
        status_entry = AuditLogEntry.objects.get(action=AuditAction.STATUS_CHANGE)
        assert status_entry.metadata["source"] == "webhook"
        assert status_entry.metadata["event_id"] == "E1"

    def test_duplicate_event_has_no_side_effects(self):
        order = OrderFactory(shipped=True)
        self.ingest(order, status="delivered")
        audit_count = AuditLogEntry.objects.count()

        result = self.ingest(order, status="delivered")

        assert result.duplicate is True
        assert result.as_response() == {"ok": True, "duplicate": True}
        assert WebhookEvent.objects.count() == 1
        assert AuditLogEntry.objects.count() == audit_count
        assert Payout.objects.filter(order=order).count() == 1

    def test_new_event_for_delivered_order_changes_nothing(self):
        order = OrderFactory(shipped=True)
        self.ingest(order, event_id="E1", status="delivered")

        result = self.ingest(order, event_id="E2", status="delivered")

        assert result.duplicate is False
        assert result.transitioned is False
        assert (
            AuditLogEntry.objects.filter(
                action=AuditAction.STATUS_CHANGE, entity_id=str(order.id)
            ).count()
            == 1
        )
        assert Payout.objects.filter(order=order).count() == 1

    def test_delivered_for_unshipped_order_only_records_status(self):
        order = OrderFactory(paid=True)

        result = self.ingest(order, status="delivered")

        order.refresh_from_db()
        assert result.transitioned is False
        assert order.status == OrderStatus.PAID
        assert order.delivery_status == "delivered"

    def test_every_event_gets_webhook_audit_entry(self):
        order = OrderFactory(shipped=True)

        self.ingest(order)

        entry = AuditLogEntry.objects.get(action=AuditAction.WEBHOOK_UPDATE)
        assert entry.entity_type == AuditEntityType.ORDER
        assert entry.entity_id == str(order.id)
        assert entry.metadata["provider"] == "cargus"
        assert entry.metadata["transitioned"] is False

    def test_raw_payload_is_redacted(self):
        order = OrderFactory(shipped=True)

        self.ingest(order, raw_payload={"event_id": "E1", "secret": "s3cr3t"})

        event = WebhookEvent.objects.get()
        assert event.payload == {"event_id": "E1", "secret": "[REDACTED]"}

    def test_unknown_order_consumes_event(self):
        with pytest.raises(OrderNotFoundError):
            CarrierWebhookService.ingest(
                provider="cargus",
                event_id="E9",
                order_ref="not-a-uuid",
                status="delivered",
            )

        event = WebhookEvent.objects.get(idempotency_key="cargus:E9")
        assert event.outcome == WebhookOutcome.ERROR
        assert event.error_message == "Order not found"
        assert AuditLogEntry.objects.filter(
            action=AuditAction.WEBHOOK_UPDATE,
            entity_type=AuditEntityType.WEBHOOK_EVENT,
        ).exists()

    def test_unknown_order_redelivery_is_duplicate(self):
        with pytest.raises(OrderNotFoundError):
            CarrierWebhookService.ingest(
                provider="cargus", event_id="E9", order_ref="x", status="delivered"
            )

        result = CarrierWebhookService.ingest(
            provider="cargus", event_id="E9", order_ref="x", status="delivered"
        )

        assert result.duplicate is True

    def test_side_effect_failure_is_kept_on_event(self, mocker):
        order = OrderFactory(shipped=True)
        mocker.patch(
            "payments.webhooks.services.AuditService.record",
            side_effect=RuntimeError("audit down"),
        )

        result = self.ingest(order)

        event = WebhookEvent.objects.get()
        assert result.ok is True
        assert result.outcome == WebhookOutcome.ERROR
        assert event.outcome == WebhookOutcome.ERROR
        assert "audit down" in event.error_message

    def test_store_failure_is_retryable(self, mocker):
        order = OrderFactory(shipped=True)
        mocker.patch(
            "payments.webhooks.services.WebhookEvent.objects.create",
            side_effect=DatabaseError("connection lost"),
        )

        with pytest.raises(WebhookStoreUnavailableError) as exc_info:
            self.ingest(order)

        assert exc_info.value.http_status == 503


# =============================================================================
# Endpoint
# =============================================================================


def sign(body: bytes, secret: str) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


@pytest.mark.django_db
class TestCarrierWebhookView:
    url = "/api/v1/webhooks/carriers/"

    def body(self, order_id, **overrides):
        data = {
            "provider": "cargus",
            "event_id": "E1",
            "order_id": str(order_id),
            "status": "delivered",
            "meta": {"awb": "A1"},
        }
        data.update(overrides)
        return data

    def test_accepts_event_without_authentication(self, api_client, settings):
        settings.WEBHOOK_SHARED_SECRET = ""
        order = OrderFactory(shipped=True)

        response = api_client.post(self.url, self.body(order.id), format="json")

        order.refresh_from_db()
        assert response.status_code == 200
        assert response.json() == {"ok": True, "duplicate": False}
        assert order.status == OrderStatus.DELIVERED

    def test_duplicate_returns_200(self, api_client, settings):
        settings.WEBHOOK_SHARED_SECRET = ""
        order = OrderFactory(shipped=True)
        api_client.post(self.url, self.body(order.id), format="json")

        response = api_client.post(self.url, self.body(order.id), format="json")

        assert response.status_code == 200
        assert response.json() == {"ok": True, "duplicate": True}

    @pytest.mark.parametrize(
        "overrides",
        [
            {"status": "teleported"},
            {"event_id": "   "},
            {"order_id": ""},
            {"provider": "unknown-carrier"},
        ],
    )
    def test_invalid_payload_is_422_and_not_recorded(self, api_client, settings, overrides):
        settings.WEBHOOK_SHARED_SECRET = ""
        order = OrderFactory(shipped=True)

        response = api_client.post(self.url, self.body(order.id, **overrides), format="json")

        assert response.status_code == 422
        assert response.json()["error_code"] == "INVALID_WEBHOOK_PAYLOAD"
        assert not WebhookEvent.objects.exists()

    def test_missing_fields_is_422(self, api_client, settings):
        settings.WEBHOOK_SHARED_SECRET = ""

        response = api_client.post(self.url, {"provider": "cargus"}, format="json")

        assert response.status_code == 422
        assert "event_id" in response.json()["details"]["fields"]

    def test_unknown_order_is_404(self, api_client, settings):
        settings.WEBHOOK_SHARED_SECRET = ""

        response = api_client.post(
            self.url,
            self.body("00000000-0000-0000-0000-000000000000"),
            format="json",
        )

        assert response.status_code == 404
        assert response.json()["error_code"] == "ORDER_NOT_FOUND"
        assert WebhookEvent.objects.count() == 1

    def test_valid_signature_accepted(self, api_client, settings):
        settings.WEBHOOK_SHARED_SECRET = "shh"
        order = OrderFactory(shipped=True)
        raw = json.dumps(self.body(order.id)).encode()

        response = api_client.post(
            self.url,
            raw,
            content_type="application/json",
            HTTP_X_WEBHOOK_SIGNATURE=sign(raw, "shh"),
        )

        assert response.status_code == 200

    def test_bad_signature_rejected(self, api_client, settings):
        settings.WEBHOOK_SHARED_SECRET = "shh"
        order = OrderFactory(shipped=True)
        raw = json.dumps(self.body(order.id)).encode()

        response = api_client.post(
            self.url,
            raw,
            content_type="application/json",
            HTTP_X_WEBHOOK_SIGNATURE="deadbeef",
        )

        assert response.status_code == 403
        assert not WebhookEvent.objects.exists()

    def test_verify_signature_helper(self):
        assert verify_signature(b"{}", sign(b"{}", "k").upper(), "k")
        assert not verify_signature(b"{}", sign(b"{}", "other"), "k")

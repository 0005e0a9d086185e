"""
Tests for the order status endpoint.

PATCH /api/v1/orders/<id>/status/
"""

import pytest
from django.urls import reverse

from audit.models import AuditAction, AuditLogEntry
from core.tests.factories import UserFactory
from orders.states import OrderStatus


def status_url(order):
    return reverse("orders:order_status", kwargs={"order_id": order.id})


@pytest.mark.django_db
class TestOrderStatusView:
    def test_seller_moves_order_forward(self, api_client, paid_order, seller):
        api_client.force_authenticate(user=seller)

        response = api_client.patch(
            status_url(paid_order), {"status": "packed", "note": "Boxed"}, format="json"
        )

        assert response.status_code == 200
        assert response.data["status"] == OrderStatus.PACKED
        assert response.data["next_statuses"] == [OrderStatus.SHIPPED, OrderStatus.CANCELED]
        entry = AuditLogEntry.objects.get(action=AuditAction.STATUS_CHANGE)
        assert entry.actor == seller
        assert entry.metadata["source"] == "seller"
        assert entry.metadata["note"] == "Boxed"

    def test_admin_can_change_any_order(self, admin_client, admin_user, paid_order):
        response = admin_client.patch(
            status_url(paid_order), {"status": "canceled"}, format="json"
        )

        assert response.status_code == 200
        entry = AuditLogEntry.objects.get(action=AuditAction.STATUS_CHANGE)
        assert entry.metadata["source"] == "admin"
        assert entry.actor == admin_user

    def test_illegal_transition_returns_409(self, api_client, pending_order, seller):
        api_client.force_authenticate(user=seller)

        response = api_client.patch(
            status_url(pending_order), {"status": "delivered"}, format="json"
        )

        assert response.status_code == 409
        assert response.data["error_code"] == "ILLEGAL_TRANSITION"
        assert response.data["details"] == {"current": "pending", "target": "delivered"}

    def test_other_user_is_forbidden(self, api_client, paid_order):
        api_client.force_authenticate(user=UserFactory())

        response = api_client.patch(status_url(paid_order), {"status": "packed"}, format="json")

        assert response.status_code == 403
        paid_order.refresh_from_db()
        assert paid_order.status == OrderStatus.PAID

    def test_requires_authentication(self, api_client, paid_order):
        response = api_client.patch(status_url(paid_order), {"status": "packed"}, format="json")

        assert response.status_code == 401

    def test_unknown_status_value_is_400(self, api_client, paid_order, seller):
        api_client.force_authenticate(user=seller)

        response = api_client.patch(status_url(paid_order), {"status": "lost"}, format="json")

        assert response.status_code == 400

    def test_unknown_order_is_404(self, admin_client):
        response = admin_client.patch(
            "/api/v1/orders/00000000-0000-0000-0000-000000000000/status/",
            {"status": "paid"},
            format="json",
        )

        assert response.status_code == 404
        assert response.data["error_code"] == "ORDER_NOT_FOUND"

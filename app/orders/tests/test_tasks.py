"""
Tests for order Celery tasks.
"""

import datetime as dt

import pytest
from django.utils import timezone

from orders.models import Order
from orders.states import OrderStatus
from orders.tasks import auto_deliver_orders, check_audit_consistency
from orders.tests.factories import OrderFactory


@pytest.mark.django_db
class TestAutoDeliverOrders:
    def test_returns_count(self, settings):
        settings.ORDER_AUTO_DELIVER_AFTER_DAYS = 2
        order = OrderFactory(shipped=True)
        Order.objects.filter(pk=order.pk).update(
            shipped_at=timezone.now() - dt.timedelta(days=3)
        )

        result = auto_deliver_orders.apply().get()

        assert result == {"delivered_count": 1}


@pytest.mark.django_db
class TestCheckAuditConsistency:
    def test_reports_unaudited_orders(self):
        order = OrderFactory(status=OrderStatus.PAID)

        result = check_audit_consistency.apply().get()

        assert result["inconsistent_count"] == 1
        assert result["order_ids"] == [str(order.id)]

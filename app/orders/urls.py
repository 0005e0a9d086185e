"""
URL configuration for the orders app.

All routes are prefixed with /api/v1/orders/ when included in the main URLconf.
"""

from django.urls import path

from orders.views import OrderStatusView

app_name = "orders"

urlpatterns = [
    path("<uuid:order_id>/status/", OrderStatusView.as_view(), name="order_status"),
]

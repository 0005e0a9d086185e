from django.contrib import admin

from orders.models import Order


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ["id", "status", "seller", "buyer", "total_cents", "currency", "delivered_at"]
    list_filter = ["status", "currency"]
    search_fields = ["id", "payment_reference"]
    # Status only changes through OrderService so the audit trail stays complete
    readonly_fields = [
        "status",
        "paid_at",
        "packed_at",
        "shipped_at",
        "delivered_at",
        "canceled_at",
        "delivery_status",
        "carrier_meta",
        "created_at",
        "updated_at",
    ]

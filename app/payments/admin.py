"""
Settlement admin configuration.

Status fields are read-only: payouts and refunds change status only through
the services so every change is audited.
"""

from django.contrib import admin

from payments.models import Payout, Refund, WebhookEvent

__all__ = ["PayoutAdmin", "RefundAdmin", "WebhookEventAdmin"]


@admin.register(Payout)
class PayoutAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "order",
        "seller",
        "amount_cents",
        "currency",
        "status",
        "runs",
        "paid_at",
        "created_at",
    ]
    list_filter = ["status", "provider", "currency"]
    search_fields = ["id", "order__id", "provider_ref", "seller__email"]
    readonly_fields = [field.name for field in Payout._meta.fields]
    ordering = ["-created_at"]

    def has_add_permission(self, request):
        return False


@admin.register(Refund)
class RefundAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "order",
        "amount_cents",
        "currency",
        "status",
        "was_post_payout",
        "refunded_at",
        "created_at",
    ]
    list_filter = ["status", "was_post_payout"]
    search_fields = ["id", "order__id", "provider_ref"]
    readonly_fields = [field.name for field in Refund._meta.fields]
    ordering = ["-created_at"]

    def has_add_permission(self, request):
        return False


@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    list_display = ["idempotency_key", "order_ref", "normalized_status", "outcome", "created_at"]
    list_filter = ["provider", "outcome", "normalized_status"]
    search_fields = ["idempotency_key", "order_ref"]
    readonly_fields = [field.name for field in WebhookEvent._meta.fields]
    ordering = ["-created_at"]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

"""Admin for the notifications outbox."""

from django.contrib import admin

from notifications.models import OutboxMessage, OutboxStatus


@admin.register(OutboxMessage)
class OutboxMessageAdmin(admin.ModelAdmin):
    list_display = ["created_at", "topic", "status", "attempts", "dispatched_at"]
    list_filter = ["topic", "status"]
    readonly_fields = [
        "id",
        "topic",
        "payload",
        "attempts",
        "last_error",
        "dispatched_at",
        "created_at",
        "updated_at",
    ]
    actions = ["requeue_failed"]

    @admin.action(description="Requeue selected failed messages")
    def requeue_failed(self, request, queryset):
        count = queryset.filter(status=OutboxStatus.FAILED).update(
            status=OutboxStatus.PENDING, attempts=0
        )
        self.message_user(request, f"Requeued {count} message(s).")

"""Read-only admin for the audit trail."""

from django.contrib import admin

from audit.models import AuditLogEntry


@admin.register(AuditLogEntry)
class AuditLogEntryAdmin(admin.ModelAdmin):
    list_display = ["created_at", "action", "entity_type", "entity_id", "actor"]
    list_filter = ["action", "entity_type"]
    search_fields = ["entity_id", "message"]
    ordering = ["-created_at"]
    readonly_fields = [field.name for field in AuditLogEntry._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

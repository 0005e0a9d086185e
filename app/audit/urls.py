"""
URL configuration for the audit app.

All routes are prefixed with /api/v1/audit/ when included in the main URLconf.
"""

from django.urls import path

from audit.views import AuditLogExportView, AuditLogListView

app_name = "audit"

urlpatterns = [
    path("logs/", AuditLogListView.as_view(), name="log_list"),
    path("logs/export/", AuditLogExportView.as_view(), name="log_export"),
]

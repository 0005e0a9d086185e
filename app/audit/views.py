"""
DRF views for the audit trail.

Endpoints:
    GET /api/v1/audit/logs/ - Paginated, filterable audit trail
    GET /api/v1/audit/logs/export/ - Same filters, CSV download

Security:
    - Admin users only
"""

from __future__ import annotations

import csv
import json
import logging

from django.http import HttpResponse
from rest_framework.generics import ListAPIView
from rest_framework.permissions import IsAdminUser
from rest_framework.views import APIView

from audit.serializers import AuditLogEntrySerializer, AuditLogFilterSerializer
from audit.services import AuditService

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    "created_at",
    "actor_id",
    "action",
    "entity_type",
    "entity_id",
    "message",
    "metadata",
]


def _filtered_queryset(request):
    filters = AuditLogFilterSerializer(data=request.query_params)
    filters.is_valid(raise_exception=True)
    return AuditService.search(**filters.to_search_kwargs())


class AuditLogListView(ListAPIView):
    """
    List audit entries.

    GET /api/v1/audit/logs/?action=payout_approved&entity_id=<uuid>
    """

    permission_classes = [IsAdminUser]
    serializer_class = AuditLogEntrySerializer

    def get_queryset(self):
        return _filtered_queryset(self.request)


class AuditLogExportView(APIView):
    """
    Export audit entries as CSV.

    GET /api/v1/audit/logs/export/
    """

    permission_classes = [IsAdminUser]

    def get(self, request):
        queryset = _filtered_queryset(request)

        response = HttpResponse(content_type="text/csv")
        response["Content-Disposition"] = 'attachment; filename="audit-log.csv"'
        writer = csv.writer(response)
        writer.writerow(EXPORT_COLUMNS)

        count = 0
        for entry in queryset.iterator():
            writer.writerow(
                [
                    entry.created_at.isoformat(),
                    entry.actor_id or "",
                    entry.action,
                    entry.entity_type,
                    entry.entity_id,
                    entry.message,
                    json.dumps(entry.metadata, sort_keys=True, default=str),
                ]
            )
            count += 1

        logger.info(
            "Audit log exported",
            extra={"rows": count, "user_id": request.user.pk},
        )
        return response

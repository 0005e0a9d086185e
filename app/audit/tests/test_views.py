"""
Tests for the audit trail API.

GET /api/v1/audit/logs/
GET /api/v1/audit/logs/export/
"""

import csv
import io

import pytest
from django.urls import reverse

from audit.models import AuditAction, AuditEntityType
from audit.tests.factories import AuditLogEntryFactory
from core.tests.factories import UserFactory


@pytest.mark.django_db
class TestAuditLogListView:
    def test_lists_entries_newest_first(self, admin_client):
        AuditLogEntryFactory(message="first")
        AuditLogEntryFactory(message="second")

        response = admin_client.get(reverse("audit:log_list"))

        assert response.status_code == 200
        assert response.data["count"] == 2
        assert response.data["results"][0]["message"] == "second"

    def test_filters_by_action(self, admin_client):
        AuditLogEntryFactory(action=AuditAction.PAYOUT_APPROVED, entity_type=AuditEntityType.PAYOUT)
        AuditLogEntryFactory()

        response = admin_client.get(reverse("audit:log_list"), {"action": "payout_approved"})

        assert response.data["count"] == 1
        assert response.data["results"][0]["action"] == "payout_approved"

    def test_invalid_filter_is_400(self, admin_client):
        response = admin_client.get(reverse("audit:log_list"), {"action": "nope"})

        assert response.status_code == 400

    def test_non_admin_forbidden(self, api_client):
        api_client.force_authenticate(user=UserFactory())

        response = api_client.get(reverse("audit:log_list"))

        assert response.status_code == 403


@pytest.mark.django_db
class TestAuditLogExportView:
    def test_exports_csv(self, admin_client):
        entry = AuditLogEntryFactory(metadata={"to": "paid"})

        response = admin_client.get(reverse("audit:log_export"))

        assert response.status_code == 200
        assert response["Content-Type"] == "text/csv"
        rows = list(csv.reader(io.StringIO(response.content.decode())))
        assert rows[0][:3] == ["created_at", "actor_id", "action"]
        assert rows[1][4] == entry.entity_id
        assert rows[1][6] == '{"to": "paid"}'

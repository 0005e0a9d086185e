"""
Tests for AuditService.

Covers recording, the approval lookups that gate payouts, trail queries
and search.
"""

import datetime as dt
import uuid

import pytest
from django.contrib.auth.models import AnonymousUser
from django.utils import timezone

from audit.models import AuditAction, AuditEntityType
from audit.services import AuditService
from audit.tests.factories import AuditLogEntryFactory
from core.tests.factories import UserFactory


@pytest.mark.django_db
class TestRecord:
    def test_records_actor_and_metadata(self):
        user = UserFactory()
        entity_id = uuid.uuid4()

        entry = AuditService.record(
            action=AuditAction.STATUS_CHANGE,
            entity_type=AuditEntityType.ORDER,
            entity_id=entity_id,
            actor=user,
            message="Payment confirmed",
            metadata={"from": "pending", "to": "paid"},
        )

        assert entry.actor == user
        assert entry.entity_id == str(entity_id)
        assert entry.metadata == {"from": "pending", "to": "paid"}
        assert entry.created_at is not None

    def test_system_entries_have_no_actor(self):
        entry = AuditService.record(
            action=AuditAction.WEBHOOK_UPDATE,
            entity_type=AuditEntityType.ORDER,
            entity_id="x",
        )

        assert entry.actor is None
        assert entry.metadata == {}

    def test_anonymous_actor_is_stored_as_system(self):
        entry = AuditService.record(
            action=AuditAction.WEBHOOK_UPDATE,
            entity_type=AuditEntityType.ORDER,
            entity_id="x",
            actor=AnonymousUser(),
        )

        assert entry.actor is None


@pytest.mark.django_db
class TestApprovalLookups:
    def test_unapproved_without_entry(self):
        assert AuditService.is_payout_approved(uuid.uuid4()) is False

    def test_approved_with_entry(self):
        payout_id = uuid.uuid4()
        AuditLogEntryFactory(
            action=AuditAction.PAYOUT_APPROVED,
            entity_type=AuditEntityType.PAYOUT,
            entity_id=str(payout_id),
        )

        assert AuditService.is_payout_approved(payout_id) is True

    def test_request_entry_is_not_approval(self):
        payout_id = uuid.uuid4()
        AuditLogEntryFactory(
            action=AuditAction.PAYOUT_APPROVAL_REQUESTED,
            entity_type=AuditEntityType.PAYOUT,
            entity_id=str(payout_id),
        )

        assert AuditService.is_payout_approved(payout_id) is False
        assert AuditService.get_approval_request(payout_id) is not None

    def test_approved_payout_ids_filters_in_bulk(self):
        approved, pending = uuid.uuid4(), uuid.uuid4()
        AuditLogEntryFactory(
            action=AuditAction.PAYOUT_APPROVED,
            entity_type=AuditEntityType.PAYOUT,
            entity_id=str(approved),
        )

        assert AuditService.approved_payout_ids([approved, pending]) == {str(approved)}
        assert AuditService.approved_payout_ids([]) == set()


@pytest.mark.django_db
class TestTrailQueries:
    def test_entity_trail_oldest_first(self):
        entity_id = str(uuid.uuid4())
        now = timezone.now()
        later = AuditLogEntryFactory(entity_id=entity_id, created_at=now)
        earlier = AuditLogEntryFactory(
            entity_id=entity_id, created_at=now - dt.timedelta(minutes=1)
        )

        trail = list(AuditService.get_entity_trail(AuditEntityType.ORDER, entity_id))

        assert trail == [earlier, later]

    def test_order_trail_includes_settlement_entries(self):
        order_id = str(uuid.uuid4())
        AuditLogEntryFactory(entity_id=order_id)
        AuditLogEntryFactory(
            action=AuditAction.PAYOUT_CREATED,
            entity_type=AuditEntityType.PAYOUT,
            metadata={"order_id": order_id},
        )
        AuditLogEntryFactory()

        assert AuditService.get_order_trail(order_id).count() == 2

    def test_latest_status_change(self):
        order_id = str(uuid.uuid4())
        now = timezone.now()
        AuditLogEntryFactory(
            entity_id=order_id, metadata={"to": "paid"}, created_at=now - dt.timedelta(hours=1)
        )
        AuditLogEntryFactory(entity_id=order_id, metadata={"to": "packed"}, created_at=now)

        assert AuditService.latest_status_change(order_id).metadata["to"] == "packed"


@pytest.mark.django_db
class TestSearch:
    def test_filters_combine(self):
        user = UserFactory()
        match = AuditLogEntryFactory(
            actor=user,
            action=AuditAction.PAYOUT_APPROVED,
            entity_type=AuditEntityType.PAYOUT,
        )
        AuditLogEntryFactory(actor=user)
        AuditLogEntryFactory(action=AuditAction.PAYOUT_APPROVED, entity_type=AuditEntityType.PAYOUT)

        results = AuditService.search(actor_id=user.pk, action=AuditAction.PAYOUT_APPROVED)

        assert list(results) == [match]

    def test_text_matches_message(self):
        match = AuditLogEntryFactory(message="Carrier reported delivered")
        AuditLogEntryFactory(message="Payment confirmed")

        assert list(AuditService.search(text="carrier")) == [match]

    def test_date_range(self):
        now = timezone.now()
        AuditLogEntryFactory(created_at=now - dt.timedelta(days=3))
        recent = AuditLogEntryFactory(created_at=now)

        results = AuditService.search(date_from=now - dt.timedelta(days=1))

        assert list(results) == [recent]

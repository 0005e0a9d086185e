"""
Factory Boy factories for audit entries.

Usage:
    from audit.tests.factories import AuditLogEntryFactory

    AuditLogEntryFactory(action=AuditAction.PAYOUT_APPROVED, entity_id=str(payout.id))
"""

import uuid

import factory

from audit.models import AuditAction, AuditEntityType, AuditLogEntry


class AuditLogEntryFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = AuditLogEntry

    action = AuditAction.STATUS_CHANGE
    entity_type = AuditEntityType.ORDER
    entity_id = factory.LazyFunction(lambda: str(uuid.uuid4()))
    message = "Status changed"
    metadata = factory.LazyFunction(dict)

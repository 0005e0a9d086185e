"""
Audit trail service.

Writes go through AuditService.record(); reads that drive business
decisions (payout approval) and compliance exports go through the query
helpers below, so the "approved" fact is derived in exactly one place.

Usage:
    from audit.services import AuditService

    AuditService.record(
        action=AuditAction.PAYOUT_APPROVED,
        entity_type=AuditEntityType.PAYOUT,
        entity_id=payout.id,
        actor=request.user,
        message="Payout approved for execution",
    )

    if not AuditService.is_payout_approved(payout.id):
        raise NotApprovedError(...)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db.models import Q

from audit.models import AuditAction, AuditEntityType, AuditLogEntry
from core.services import BaseService

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime
    from typing import Any
    from uuid import UUID

    from django.db.models import QuerySet


class AuditService(BaseService):
    """Append and query audit log entries."""

    @classmethod
    def record(
        cls,
        action: str,
        entity_type: str,
        entity_id: UUID | str,
        message: str = "",
        metadata: dict[str, Any] | None = None,
        actor=None,
    ) -> AuditLogEntry:
        """
        Append one audit entry.

        Args:
            action: AuditAction value
            entity_type: AuditEntityType value
            entity_id: Primary key of the referenced record
            message: Human-readable summary
            metadata: Structured context; must be JSON-serializable
            actor: User performing the action, None for the system

        Returns:
            The created AuditLogEntry
        """
        entry = AuditLogEntry.objects.create(
            actor=actor if actor is not None and actor.is_authenticated else None,
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id),
            message=message,
            metadata=metadata or {},
        )
        cls.get_logger().debug(
            "Audit entry recorded",
            extra={
                "audit_action": action,
                "entity_type": entity_type,
                "entity_id": str(entity_id),
            },
        )
        return entry

    # =========================================================================
    # Approval
    # =========================================================================

    @classmethod
    def is_payout_approved(cls, payout_id: UUID | str) -> bool:
        """Whether a payout_approved entry exists for this payout."""
        return AuditLogEntry.objects.filter(
            action=AuditAction.PAYOUT_APPROVED,
            entity_type=AuditEntityType.PAYOUT,
            entity_id=str(payout_id),
        ).exists()

    @classmethod
    def approved_payout_ids(cls, payout_ids: Iterable[UUID | str]) -> set[str]:
        """
        Filter payout ids down to the approved ones in a single query.

        Returns:
            Set of approved payout ids, as strings
        """
        ids = [str(pid) for pid in payout_ids]
        if not ids:
            return set()
        return set(
            AuditLogEntry.objects.filter(
                action=AuditAction.PAYOUT_APPROVED,
                entity_type=AuditEntityType.PAYOUT,
                entity_id__in=ids,
            ).values_list("entity_id", flat=True)
        )

    @classmethod
    def get_approval_request(cls, payout_id: UUID | str) -> AuditLogEntry | None:
        """Most recent approval request for a payout, if any."""
        return (
            AuditLogEntry.objects.filter(
                action=AuditAction.PAYOUT_APPROVAL_REQUESTED,
                entity_type=AuditEntityType.PAYOUT,
                entity_id=str(payout_id),
            )
            .order_by("-created_at")
            .first()
        )

    # =========================================================================
    # Trail Queries
    # =========================================================================

    @classmethod
    def get_entity_trail(
        cls, entity_type: str, entity_id: UUID | str
    ) -> QuerySet[AuditLogEntry]:
        """All entries for one record, oldest first."""
        return AuditLogEntry.objects.filter(
            entity_type=entity_type,
            entity_id=str(entity_id),
        ).order_by("created_at")

    @classmethod
    def get_order_trail(cls, order_id: UUID | str) -> QuerySet[AuditLogEntry]:
        """
        Entries for an order and for the settlements and webhooks tied to it.

        Settlement and webhook entries carry the order id in metadata.
        """
        return AuditLogEntry.objects.filter(
            Q(entity_type=AuditEntityType.ORDER, entity_id=str(order_id))
            | Q(metadata__order_id=str(order_id))
        ).order_by("created_at")

    @classmethod
    def search(
        cls,
        *,
        actor_id: int | str | None = None,
        action: str | None = None,
        entity_type: str | None = None,
        entity_id: str | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        text: str | None = None,
    ) -> QuerySet[AuditLogEntry]:
        """
        Filtered view over the trail for compliance tooling.

        All filters are optional and combined with AND. `text` matches the
        message, action, or entity id case-insensitively.
        """
        queryset = AuditLogEntry.objects.select_related("actor")
        if actor_id:
            queryset = queryset.filter(actor_id=actor_id)
        if action:
            queryset = queryset.filter(action=action)
        if entity_type:
            queryset = queryset.filter(entity_type=entity_type)
        if entity_id:
            queryset = queryset.filter(entity_id=entity_id)
        if date_from:
            queryset = queryset.filter(created_at__gte=date_from)
        if date_to:
            queryset = queryset.filter(created_at__lte=date_to)
        if text:
            queryset = queryset.filter(
                Q(message__icontains=text)
                | Q(action__icontains=text)
                | Q(entity_id__icontains=text)
            )
        return queryset.order_by("-created_at")

    @classmethod
    def latest_status_change(cls, order_id: UUID | str) -> AuditLogEntry | None:
        """Most recent status_change entry for an order."""
        return (
            AuditLogEntry.objects.filter(
                action=AuditAction.STATUS_CHANGE,
                entity_type=AuditEntityType.ORDER,
                entity_id=str(order_id),
            )
            .order_by("-created_at")
            .first()
        )


__all__ = ["AuditService"]

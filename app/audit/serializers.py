"""
Serializers for the audit trail API.

Read-only: the trail is written by services, never by clients.
"""

from rest_framework import serializers

from audit.models import AuditAction, AuditEntityType, AuditLogEntry


class AuditLogEntrySerializer(serializers.ModelSerializer):
    """Audit entry as exposed to compliance tooling."""

    actor_email = serializers.EmailField(source="actor.email", read_only=True)

    class Meta:
        model = AuditLogEntry
        fields = [
            "id",
            "actor",
            "actor_email",
            "action",
            "entity_type",
            "entity_id",
            "message",
            "metadata",
            "created_at",
        ]
        read_only_fields = fields


class AuditLogFilterSerializer(serializers.Serializer):
    """Query parameters accepted by the audit list and export endpoints."""

    actor_id = serializers.IntegerField(required=False)
    action = serializers.ChoiceField(choices=AuditAction.choices, required=False)
    entity_type = serializers.ChoiceField(
        choices=AuditEntityType.choices, required=False
    )
    entity_id = serializers.CharField(required=False, max_length=64)
    date_from = serializers.DateTimeField(required=False)
    date_to = serializers.DateTimeField(required=False)
    q = serializers.CharField(required=False, max_length=200)

    def to_search_kwargs(self) -> dict:
        data = self.validated_data
        return {
            "actor_id": data.get("actor_id"),
            "action": data.get("action"),
            "entity_type": data.get("entity_type"),
            "entity_id": data.get("entity_id"),
            "date_from": data.get("date_from"),
            "date_to": data.get("date_to"),
            "text": data.get("q"),
        }

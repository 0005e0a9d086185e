import uuid

import django.core.serializers.json
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="AuditLogEntry",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("status_change", "Order Status Change"),
                            ("webhook_update", "Carrier Webhook Update"),
                            ("payout_created", "Payout Created"),
                            ("payout_approval_requested", "Payout Approval Requested"),
                            ("payout_approved", "Payout Approved"),
                            ("payout_paid", "Payout Paid"),
                            ("payout_failed", "Payout Failed"),
                            ("payout_marked_paid_manually", "Payout Marked Paid Manually"),
                            ("refund_created", "Refund Created"),
                            ("refund_refunded", "Refund Completed"),
                            ("refund_failed", "Refund Failed"),
                            ("payout_batch_started", "Payout Batch Started"),
                            ("payout_batch_completed", "Payout Batch Completed"),
                            ("settlement_stale", "Settlement Stuck In Processing"),
                        ],
                        db_index=True,
                        max_length=50,
                    ),
                ),
                (
                    "entity_type",
                    models.CharField(
                        choices=[
                            ("order", "Order"),
                            ("payout", "Payout"),
                            ("refund", "Refund"),
                            ("webhook_event", "Webhook Event"),
                            ("payout_batch", "Payout Batch"),
                        ],
                        max_length=30,
                    ),
                ),
                (
                    "entity_id",
                    models.CharField(
                        help_text="Primary key of the referenced record, as text",
                        max_length=64,
                    ),
                ),
                ("message", models.TextField(blank=True, default="")),
                (
                    "metadata",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        encoder=django.core.serializers.json.DjangoJSONEncoder,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        db_index=True, default=django.utils.timezone.now
                    ),
                ),
                (
                    "actor",
                    models.ForeignKey(
                        blank=True,
                        help_text="User who performed the action (null for system)",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="audit_entries",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "audit log entry",
                "verbose_name_plural": "audit log entries",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["entity_type", "entity_id"],
                        name="audit_entity_idx",
                    ),
                    models.Index(
                        fields=["action", "entity_id"],
                        name="audit_action_entity_idx",
                    ),
                ],
            },
        ),
    ]

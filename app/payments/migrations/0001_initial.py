import uuid

import django.db.models.deletion
import django_fsm
from django.conf import settings
from django.db import migrations, models


def timestamp_fields():
    return [
        (
            "created_at",
            models.DateTimeField(
                auto_now_add=True,
                db_index=True,
                help_text="Timestamp when this record was created",
            ),
        ),
        (
            "updated_at",
            models.DateTimeField(
                auto_now=True,
                help_text="Timestamp when this record was last modified",
            ),
        ),
    ]


def uuid_pk():
    return (
        "id",
        models.UUIDField(
            default=uuid.uuid4,
            editable=False,
            primary_key=True,
            serialize=False,
        ),
    )


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Payout",
            fields=[
                uuid_pk(),
                *timestamp_fields(),
                (
                    "amount_cents",
                    models.PositiveBigIntegerField(
                        help_text="Payout amount in smallest currency unit",
                    ),
                ),
                ("commission_cents", models.PositiveBigIntegerField(default=0)),
                ("currency", models.CharField(default="RON", max_length=3)),
                ("destination", models.CharField(blank=True, default="", max_length=255)),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("pending", "Pending"),
                            ("processing", "Processing"),
                            ("paid", "Paid"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Current status of the payout (managed by FSM)",
                        max_length=50,
                    ),
                ),
                ("provider", models.CharField(blank=True, default="", max_length=30)),
                (
                    "provider_ref",
                    models.CharField(
                        blank=True,
                        help_text="Provider transfer reference",
                        max_length=255,
                        null=True,
                        unique=True,
                    ),
                ),
                ("attempts", models.PositiveIntegerField(default=0)),
                (
                    "runs",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Number of times the record was claimed for execution",
                    ),
                ),
                ("processing_started_at", models.DateTimeField(blank=True, null=True)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("failed_at", models.DateTimeField(blank=True, null=True)),
                ("failure_reason", models.TextField(blank=True, default="")),
                ("metadata", models.JSONField(blank=True, default=dict)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payouts",
                        to="orders.order",
                    ),
                ),
                (
                    "seller",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payouts",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Payout",
                "verbose_name_plural": "Payouts",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["status", "created_at"],
                        name="payout_status_created_idx",
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=["order"], name="payout_one_per_order"),
                    models.CheckConstraint(
                        condition=models.Q(amount_cents__gt=0),
                        name="payout_amount_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Refund",
            fields=[
                uuid_pk(),
                *timestamp_fields(),
                (
                    "amount_cents",
                    models.PositiveBigIntegerField(
                        help_text="Refund amount in smallest currency unit",
                    ),
                ),
                ("currency", models.CharField(default="RON", max_length=3)),
                ("reason", models.TextField(blank=True, default="")),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("pending", "Pending"),
                            ("processing", "Processing"),
                            ("refunded", "Refunded"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Current status of the refund (managed by FSM)",
                        max_length=50,
                    ),
                ),
                ("provider", models.CharField(blank=True, default="", max_length=30)),
                (
                    "provider_ref",
                    models.CharField(
                        blank=True,
                        help_text="Provider refund reference",
                        max_length=255,
                        null=True,
                        unique=True,
                    ),
                ),
                ("attempts", models.PositiveIntegerField(default=0)),
                (
                    "runs",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Number of times the record was claimed for execution",
                    ),
                ),
                (
                    "was_post_payout",
                    models.BooleanField(
                        blank=True,
                        help_text="Payout for this order was already paid when the refund completed",
                        null=True,
                    ),
                ),
                ("processing_started_at", models.DateTimeField(blank=True, null=True)),
                ("refunded_at", models.DateTimeField(blank=True, null=True)),
                ("failed_at", models.DateTimeField(blank=True, null=True)),
                ("failure_reason", models.TextField(blank=True, default="")),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="refunds",
                        to="orders.order",
                    ),
                ),
                (
                    "requested_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="refunds_requested",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Refund",
                "verbose_name_plural": "Refunds",
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(fields=["order"], name="refund_one_per_order"),
                    models.CheckConstraint(
                        condition=models.Q(amount_cents__gt=0),
                        name="refund_amount_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="WebhookEvent",
            fields=[
                uuid_pk(),
                *timestamp_fields(),
                ("provider", models.CharField(max_length=50)),
                ("event_id", models.CharField(max_length=255)),
                (
                    "idempotency_key",
                    models.CharField(
                        help_text="provider:event_id",
                        max_length=310,
                        unique=True,
                    ),
                ),
                ("order_ref", models.CharField(db_index=True, max_length=64)),
                ("normalized_status", models.CharField(max_length=50)),
                ("payload", models.JSONField(blank=True, default=dict)),
                (
                    "outcome",
                    models.CharField(
                        choices=[
                            ("ok", "OK"),
                            ("duplicate", "Duplicate"),
                            ("error", "Error"),
                        ],
                        default="ok",
                        max_length=20,
                    ),
                ),
                ("error_message", models.TextField(blank=True, default="")),
                ("processed_at", models.DateTimeField(blank=True, null=True)),
            ],
            options={
                "verbose_name": "Webhook Event",
                "verbose_name_plural": "Webhook Events",
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=["provider", "event_id"],
                        name="webhook_event_provider_event_unique",
                    ),
                ],
            },
        ),
    ]

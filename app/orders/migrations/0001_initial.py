import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
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
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("paid", "Paid"),
                            ("packed", "Packed"),
                            ("shipped", "Shipped"),
                            ("delivered", "Delivered"),
                            ("canceled", "Canceled"),
                        ],
                        db_index=True,
                        default="pending",
                        max_length=20,
                    ),
                ),
                (
                    "total_cents",
                    models.BigIntegerField(
                        help_text="Order total in minor currency units",
                    ),
                ),
                (
                    "commission_cents",
                    models.BigIntegerField(
                        default=0,
                        help_text="Platform commission in minor currency units",
                    ),
                ),
                ("currency", models.CharField(default="RON", max_length=3)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("packed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "shipped_at",
                    models.DateTimeField(blank=True, db_index=True, null=True),
                ),
                (
                    "delivered_at",
                    models.DateTimeField(blank=True, db_index=True, null=True),
                ),
                ("canceled_at", models.DateTimeField(blank=True, null=True)),
                (
                    "payment_reference",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Provider reference of the buyer payment (used for refunds)",
                        max_length=255,
                    ),
                ),
                (
                    "payout_destination",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Seller payout destination captured at checkout (IBAN or account id)",
                        max_length=255,
                    ),
                ),
                (
                    "delivery_status",
                    models.CharField(blank=True, default="", max_length=50),
                ),
                ("carrier_meta", models.JSONField(blank=True, default=dict)),
                (
                    "buyer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders_placed",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "seller",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders_sold",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(total_cents__gte=0),
                        name="order_total_non_negative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(commission_cents__gte=0)
                        & models.Q(commission_cents__lte=models.F("total_cents")),
                        name="order_commission_within_total",
                    ),
                ],
            },
        ),
    ]

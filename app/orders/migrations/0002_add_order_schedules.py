"""
Add celery-beat schedules for order maintenance.

- Auto-deliver long-shipped orders every hour
- Audit consistency check every day at 03:30
"""

from django.db import migrations

AUTO_DELIVER_TASK = "Auto-Deliver Shipped Orders"
AUDIT_CHECK_TASK = "Check Order Audit Consistency"


def create_periodic_tasks(apps, schema_editor):
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    CrontabSchedule = apps.get_model("django_celery_beat", "CrontabSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    hourly, _ = IntervalSchedule.objects.get_or_create(every=1, period="hours")
    PeriodicTask.objects.get_or_create(
        name=AUTO_DELIVER_TASK,
        defaults={
            "task": "orders.tasks.auto_deliver_orders",
            "interval": hourly,
            "enabled": True,
            "description": (
                "Moves orders shipped more than ORDER_AUTO_DELIVER_AFTER_DAYS "
                "ago to delivered, creating their payouts."
            ),
        },
    )

    nightly, _ = CrontabSchedule.objects.get_or_create(
        minute="30",
        hour="3",
        day_of_week="*",
        day_of_month="*",
        month_of_year="*",
    )
    PeriodicTask.objects.get_or_create(
        name=AUDIT_CHECK_TASK,
        defaults={
            "task": "orders.tasks.check_audit_consistency",
            "crontab": nightly,
            "enabled": True,
            "description": "Reports orders whose status has no status_change audit entry.",
        },
    )


def remove_periodic_tasks(apps, schema_editor):
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")
    PeriodicTask.objects.filter(name__in=[AUTO_DELIVER_TASK, AUDIT_CHECK_TASK]).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("orders", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_tasks, remove_periodic_tasks),
    ]

"""
Add celery-beat schedules for settlement execution.

- Daily payout batch at 06:00 (approved payouts delivered up to today)
- Stale processing check every 15 minutes
"""

from django.db import migrations

BATCH_TASK = "Run Daily Payout Batch"
STALE_TASK = "Alert Stale Settlements"


def create_periodic_tasks(apps, schema_editor):
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    CrontabSchedule = apps.get_model("django_celery_beat", "CrontabSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    daily, _ = CrontabSchedule.objects.get_or_create(
        minute="0",
        hour="6",
        day_of_week="*",
        day_of_month="*",
        month_of_year="*",
    )
    PeriodicTask.objects.get_or_create(
        name=BATCH_TASK,
        defaults={
            "task": "payments.workers.payout_executor.run_payout_batch",
            "crontab": daily,
            "enabled": True,
            "description": (
                "Runs every pending, approved payout whose order was "
                "delivered on or before today."
            ),
        },
    )

    every_15_minutes, _ = IntervalSchedule.objects.get_or_create(
        every=15,
        period="minutes",
    )
    PeriodicTask.objects.get_or_create(
        name=STALE_TASK,
        defaults={
            "task": "payments.workers.settlement_monitor.alert_stale_settlements",
            "interval": every_15_minutes,
            "enabled": True,
            "description": (
                "Alerts admins about payouts and refunds stuck in processing. "
                "Never retries them."
            ),
        },
    )


def remove_periodic_tasks(apps, schema_editor):
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")
    PeriodicTask.objects.filter(name__in=[BATCH_TASK, STALE_TASK]).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("payments", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_tasks, remove_periodic_tasks),
    ]

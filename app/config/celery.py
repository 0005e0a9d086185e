"""
Celery configuration for the marketplace service.

Celery runs the scheduled entrypoints (payout batch, auto-delivery,
stale settlement alerts, outbox dispatch). Schedules live in the database
(django-celery-beat) and are created by data migrations.

This configuration uses Redis as both the message broker and result backend.
Tasks are auto-discovered from the tasks.py module of every installed app.

Usage:
    celery -A config worker -l info
    celery -A config beat -l info
"""

import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()

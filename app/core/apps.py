"""Core app configuration."""

from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Shared infrastructure: base models, errors, services, health."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "core"
    verbose_name = "Core"

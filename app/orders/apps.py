"""Orders app configuration."""

from django.apps import AppConfig


class OrdersConfig(AppConfig):
    """Configuration for the order lifecycle app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "orders"
    verbose_name = "Orders"

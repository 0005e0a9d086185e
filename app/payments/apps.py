"""
Payments app configuration.

This app provides the settlement side of the marketplace:
- Payout and refund records
- Settlement provider adapters with retry
- Carrier webhook ingestion
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"

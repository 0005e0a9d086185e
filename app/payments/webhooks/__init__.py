"""
Carrier webhook ingestion.

Modules:
- serializers: Payload validation
- services: Idempotent ingestion (CarrierWebhookService)
- views: HTTP endpoint
"""

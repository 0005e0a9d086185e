"""
URL configuration for the marketplace service.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/auth/token/            - Obtain JWT pair (POST)
    /api/v1/auth/token/refresh/    - Refresh access token (POST)
    /api/v1/webhooks/carriers/     - Carrier delivery webhook (POST, no auth)
    /api/v1/orders/
        {id}/status/               - Change order status (PATCH)
    /api/v1/payments/
        payouts/run-batch/         - Batch run for ?date= (POST)
        payouts/export/            - Banking CSV (GET)
        payouts/{id}/run/          - Run one payout (POST)
        payouts/{id}/request-approval/ - Request approval (POST)
        payouts/{id}/approve/      - Approve (POST)
        payouts/{id}/mark-paid/    - Manual override (POST)
        refunds/{order_id}/        - Create and run refund (POST)
        refunds/{refund_id}/run/   - Re-run refund (POST)
    /api/v1/audit/
        logs/                      - Audit trail (GET)
        logs/export/               - Audit CSV (GET)
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from core.views import health_check
from payments.webhooks.views import CarrierWebhookView

# =============================================================================
# API v1 Routes
# =============================================================================
api_v1_patterns = [
    # Authentication (simplejwt)
    path("auth/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    # Carrier webhooks
    path("webhooks/carriers/", CarrierWebhookView.as_view(), name="carrier_webhook"),
    # Orders
    path("orders/", include("orders.urls")),
    # Payments
    path("payments/", include("payments.urls")),
    # Audit
    path("audit/", include("audit.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Marketplace Admin"
admin.site.site_title = "Marketplace Admin"
admin.site.index_title = "Orders, settlements and audit"

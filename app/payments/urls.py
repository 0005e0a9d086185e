"""
URL configuration for the payments app.

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.

Usage:
    # In config/urls.py
    api_v1_patterns = [
        path("payments/", include("payments.urls")),
    ]
"""

from django.urls import path

from payments import views

app_name = "payments"

urlpatterns = [
    # Payouts
    path("payouts/run-batch/", views.PayoutBatchRunView.as_view(), name="payout_run_batch"),
    path("payouts/export/", views.PayoutExportView.as_view(), name="payout_export"),
    path("payouts/<uuid:payout_id>/run/", views.PayoutRunView.as_view(), name="payout_run"),
    path(
        "payouts/<uuid:payout_id>/request-approval/",
        views.PayoutRequestApprovalView.as_view(),
        name="payout_request_approval",
    ),
    path("payouts/<uuid:payout_id>/approve/", views.PayoutApproveView.as_view(), name="payout_approve"),
    path("payouts/<uuid:payout_id>/mark-paid/", views.PayoutMarkPaidView.as_view(), name="payout_mark_paid"),
    # Refunds
    path("refunds/<uuid:order_id>/", views.RefundCreateView.as_view(), name="refund_create"),
    path("refunds/<uuid:refund_id>/run/", views.RefundRunView.as_view(), name="refund_run"),
]

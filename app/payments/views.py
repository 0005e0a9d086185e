"""
DRF views for the settlement admin API.

Endpoints:
    POST /api/v1/payments/payouts/<id>/run/ - Run one payout
    POST /api/v1/payments/payouts/run-batch/?date=YYYY-MM-DD - Batch run
    POST /api/v1/payments/payouts/<id>/request-approval/ - Ask for approval
    POST /api/v1/payments/payouts/<id>/approve/ - Approve
    POST /api/v1/payments/payouts/<id>/mark-paid/ - Manual override
    GET  /api/v1/payments/payouts/export/ - Banking CSV
    POST /api/v1/payments/refunds/<order_id>/ - Create and run a refund
    POST /api/v1/payments/refunds/<refund_id>/run/ - Re-run a refund

Security:
    - Admin users only
"""

from __future__ import annotations

import csv
import logging

from django.http import HttpResponse
from django.utils import timezone
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from payments.serializers import (
    ApprovalNoteSerializer,
    BatchRunQuerySerializer,
    MarkPaidSerializer,
    PayoutExportQuerySerializer,
    PayoutSerializer,
    RefundCreateSerializer,
    RefundSerializer,
)
from payments.services import PayoutBatchService, PayoutService, RefundService

logger = logging.getLogger(__name__)

PAYOUT_EXPORT_COLUMNS = [
    "payout_id",
    "order_id",
    "seller_id",
    "seller_email",
    "destination",
    "amount",
    "currency",
    "status",
    "provider_ref",
    "delivered_at",
    "created_at",
]


# =============================================================================
# Payouts
# =============================================================================


class PayoutRunView(APIView):
    permission_classes = [IsAdminUser]

    @extend_schema(
        summary="Run one payout",
        tags=["Payouts"],
        request=None,
        responses={
            200: OpenApiResponse(description="Run finished (paid, failed or already paid)"),
            403: OpenApiResponse(description="Payout not approved"),
            409: OpenApiResponse(description="Payout already processing"),
        },
    )
    def post(self, request, payout_id):
        result = PayoutService.run_payout(payout_id, actor=request.user)
        return Response(result.as_dict())


class PayoutBatchRunView(APIView):
    permission_classes = [IsAdminUser]

    @extend_schema(
        summary="Run all approved, due payouts",
        tags=["Payouts"],
        request=None,
        parameters=[BatchRunQuerySerializer],
        responses={200: OpenApiResponse(description="Per-item results and counts")},
    )
    def post(self, request):
        query = BatchRunQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        target_date = query.validated_data.get("date") or timezone.localdate()
        result = PayoutBatchService.run_batch(target_date, actor=request.user)
        return Response(result.as_dict())


class PayoutRequestApprovalView(APIView):
    permission_classes = [IsAdminUser]

    @extend_schema(summary="Request payout approval", tags=["Payouts"], request=ApprovalNoteSerializer)
    def post(self, request, payout_id):
        body = ApprovalNoteSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        entry = PayoutService.request_approval(
            payout_id, actor=request.user, note=body.validated_data.get("note", "")
        )
        return Response(
            {"payout_id": str(payout_id), "audit_entry_id": str(entry.id)},
            status=status.HTTP_201_CREATED,
        )


class PayoutApproveView(APIView):
    permission_classes = [IsAdminUser]

    @extend_schema(summary="Approve payout", tags=["Payouts"], request=ApprovalNoteSerializer)
    def post(self, request, payout_id):
        body = ApprovalNoteSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        entry = PayoutService.approve(
            payout_id, actor=request.user, note=body.validated_data.get("note", "")
        )
        return Response({"payout_id": str(payout_id), "audit_entry_id": str(entry.id)})


class PayoutMarkPaidView(APIView):
    permission_classes = [IsAdminUser]

    @extend_schema(
        summary="Mark payout paid manually",
        tags=["Payouts"],
        request=MarkPaidSerializer,
        responses={200: PayoutSerializer},
    )
    def post(self, request, payout_id):
        body = MarkPaidSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        payout = PayoutService.mark_paid_manually(
            payout_id,
            actor=request.user,
            reason=body.validated_data["reason"],
            provider_ref=body.validated_data.get("provider_ref") or None,
        )
        return Response(PayoutSerializer(payout).data)


class PayoutExportView(APIView):
    """
    Banking CSV.

    GET /api/v1/payments/payouts/export/?status=pending&approved_only=true
    """

    permission_classes = [IsAdminUser]

    @extend_schema(summary="Export payouts as CSV", tags=["Payouts"], parameters=[PayoutExportQuerySerializer])
    def get(self, request):
        query = PayoutExportQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        queryset = PayoutService.export_queryset(
            status=query.validated_data.get("status"),
            approved_only=query.validated_data["approved_only"],
        )

        response = HttpResponse(content_type="text/csv")
        response["Content-Disposition"] = 'attachment; filename="payouts.csv"'
        writer = csv.writer(response)
        writer.writerow(PAYOUT_EXPORT_COLUMNS)

        count = 0
        for payout in queryset.iterator():
            writer.writerow(
                [
                    str(payout.id),
                    str(payout.order_id),
                    payout.seller_id,
                    payout.seller.email,
                    payout.destination,
                    f"{payout.amount_cents / 100:.2f}",
                    payout.currency,
                    payout.status,
                    payout.provider_ref or "",
                    payout.order.delivered_at.isoformat() if payout.order.delivered_at else "",
                    payout.created_at.isoformat(),
                ]
            )
            count += 1

        logger.info("Payouts exported", extra={"rows": count, "user_id": request.user.pk})
        return response


# =============================================================================
# Refunds
# =============================================================================


class RefundCreateView(APIView):
    permission_classes = [IsAdminUser]

    @extend_schema(
        summary="Create and run a refund",
        tags=["Refunds"],
        request=RefundCreateSerializer,
        responses={201: RefundSerializer},
    )
    def post(self, request, order_id):
        body = RefundCreateSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        refund = RefundService.create_refund(
            order_id,
            amount_cents=body.validated_data.get("amount_cents"),
            reason=body.validated_data.get("reason", ""),
            actor=request.user,
        )
        result = RefundService.run_refund(refund.id, actor=request.user)
        refund.refresh_from_db()
        return Response(
            {"refund": RefundSerializer(refund).data, "result": result.as_dict()},
            status=status.HTTP_201_CREATED,
        )


class RefundRunView(APIView):
    permission_classes = [IsAdminUser]

    @extend_schema(summary="Re-run a refund", tags=["Refunds"], request=None)
    def post(self, request, refund_id):
        result = RefundService.run_refund(refund_id, actor=request.user)
        return Response(result.as_dict())

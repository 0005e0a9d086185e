"""
DRF views for orders.

Endpoints:
    PATCH /api/v1/orders/<id>/status/ - Move an order along the status graph

Security:
    - The order's seller or an admin
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.serializers import OrderSerializer, OrderStatusUpdateSerializer
from orders.services import OrderService


class OrderStatusView(APIView):
    """Seller/admin status update."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Change order status",
        description=(
            "Moves the order one step along pending -> paid -> packed -> "
            "shipped -> delivered, or to canceled before shipping."
        ),
        tags=["Orders"],
        request=OrderStatusUpdateSerializer,
        responses={
            200: OrderSerializer,
            403: OpenApiResponse(description="Not the seller of this order"),
            404: OpenApiResponse(description="Order not found"),
            409: OpenApiResponse(description="Illegal transition"),
        },
    )
    def patch(self, request, order_id):
        order = OrderService.get_order(order_id)
        if not (request.user.is_staff or order.seller_id == request.user.pk):
            raise PermissionDenied("Only the seller or an admin can change this order")

        serializer = OrderStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        note = serializer.validated_data.get("note")

        order = OrderService.transition(
            order.pk,
            serializer.validated_data["status"],
            actor=request.user,
            source="admin" if request.user.is_staff else "seller",
            metadata={"note": note} if note else None,
        )
        return Response(OrderSerializer(order).data)

# orders/views/order.py

"""
======================================================
PATH: orders/views/order.py
======================================================
ORDER VIEWSET

Customers:
- POST /api/orders/                       create from cart_id or items
- GET  /api/orders/?page=&page_size=      own orders, newest first
- GET  /api/orders/<id>/                  own order (others read as 404)
- POST /api/orders/<id>/status/           cancel (pending / confirmed only)
- POST /api/orders/<id>/reorder/          copy an own order back into the cart
- GET  /api/orders/open-count/            own confirmed + processing orders

Staff / admin:
- GET  /api/orders/?status=&payment_status=&payment_method=   every order
- POST /api/orders/<id>/status/           fulfilment transitions
- POST /api/orders/<id>/payment-status/   record a payment outcome
- POST /api/orders/<id>/restore-inventory/   (admin) one-shot stock restore

Hard rules:
- All writes go through orders.services.
- Domain errors render as {"error": {"code", "message", "details"}}.
"""

from __future__ import annotations

import logging

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from carts.serializers import CartSerializer
from common.api import domain_error_response, error_response
from common.exceptions import OrderNotFoundError, StorefrontError
from orders.models import Order
from orders.serializers import (
    CreateOrderInputSerializer,
    OrderSerializer,
    PaymentStatusInputSerializer,
    UpdateStatusInputSerializer,
)
from orders.services import order_lifecycle, order_service
from users.permissions import IsAdmin, IsStaff, actor_role_for

logger = logging.getLogger(__name__)


def _invalid_input(serializer, message: str):
    details = []
    for name, errors in serializer.errors.items():
        details.extend(f"{name}: {e}" for e in (errors if isinstance(errors, list) else [errors]))
    return error_response(
        code="invalid_state",
        message=message,
        details=details,
        http_status=status.HTTP_400_BAD_REQUEST,
    )


def _is_staff(user) -> bool:
    return actor_role_for(user) in IsStaff.allowed_roles


class OrderViewSet(viewsets.GenericViewSet):
    serializer_class = OrderSerializer
    permission_classes = [IsAuthenticated]

    filter_backends = [DjangoFilterBackend]
    filterset_fields = ["status", "payment_status", "payment_method"]

    def get_queryset(self):
        qs = Order.objects.select_related("user").prefetch_related("items").order_by("-created_at")
        if not _is_staff(self.request.user):
            qs = qs.filter(user=self.request.user)
        return qs

    def _owner_scope(self, request):
        return None if _is_staff(request.user) else request.user.id

    # ======================================================
    # LIST
    # ======================================================

    @extend_schema(
        tags=["Orders"],
        parameters=[
            OpenApiParameter(name="page", type=int, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="page_size", type=int, location=OpenApiParameter.QUERY, required=False),
        ],
        responses={200: OrderSerializer(many=True)},
    )
    def list(self, request):
        params = request.query_params
        try:
            if _is_staff(request.user):
                page = order_service.paginate_orders(
                    self.filter_queryset(self.get_queryset()),
                    page=params.get("page"),
                    page_size=params.get("page_size"),
                )
            else:
                page = order_service.get_orders_for_owner(
                    request.user.id,
                    page=params.get("page"),
                    page_size=params.get("page_size"),
                    status=(params.get("status") or "").strip() or None,
                )
        except StorefrontError as exc:
            return domain_error_response(exc)

        return Response(
            {
                "orders": OrderSerializer(page.orders, many=True).data,
                "total": page.total,
                "page": page.page,
                "page_count": page.page_count,
            },
            status=status.HTTP_200_OK,
        )

    # ======================================================
    # RETRIEVE
    # ======================================================

    @extend_schema(tags=["Orders"], responses={200: OrderSerializer, 404: OpenApiResponse(description="Not found")})
    def retrieve(self, request, pk=None):
        order = order_service.get_order_by_id(pk, owner_id=self._owner_scope(request))
        if order is None:
            return domain_error_response(OrderNotFoundError(f"Order {pk} not found"))
        return Response(OrderSerializer(order).data, status=status.HTTP_200_OK)

    # ======================================================
    # CREATE
    # ======================================================

    @extend_schema(
        tags=["Orders"],
        request=CreateOrderInputSerializer,
        responses={
            201: OrderSerializer,
            400: OpenApiResponse(description="Invalid request"),
            404: OpenApiResponse(description="Product or variant not found"),
            409: OpenApiResponse(description="Insufficient inventory"),
        },
    )
    def create(self, request):
        s = CreateOrderInputSerializer(data=request.data)
        if not s.is_valid():
            return _invalid_input(s, "Invalid order request")
        data = s.validated_data

        items = [
            {
                "product_id": line["product_id"],
                "variant_id": line.get("variant_id"),
                "quantity": line["quantity"],
            }
            for line in data.get("items") or []
        ]

        try:
            order = order_service.create_order(
                order_service.CreateOrderRequest(
                    user=request.user,
                    cart_id=data.get("cart_id"),
                    items=items or None,
                    shipping_address=dict(data["shipping_address"]),
                    payment_method=data["payment_method"],
                    tax=data["tax"],
                    shipping=data["shipping"],
                    discount=data["discount"],
                    notes=data.get("notes") or "",
                )
            )
        except StorefrontError as exc:
            return domain_error_response(exc)

        order = order_service.get_order_by_id(order.id)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    # ======================================================
    # STATUS
    # ======================================================

    @extend_schema(
        tags=["Orders"],
        request=UpdateStatusInputSerializer,
        responses={200: OrderSerializer, 400: OpenApiResponse(description="Illegal transition")},
    )
    @action(detail=True, methods=["post"], url_path="status")
    def update_status(self, request, pk=None):
        s = UpdateStatusInputSerializer(data=request.data)
        if not s.is_valid():
            return _invalid_input(s, "Invalid status update")
        data = s.validated_data

        try:
            order_lifecycle.update_order_status(
                pk,
                data["status"],
                cancel_reason=data.get("cancel_reason"),
                actor_role=actor_role_for(request.user),
                owner_id=self._owner_scope(request),
                tracking_number=data.get("tracking_number"),
            )
        except StorefrontError as exc:
            return domain_error_response(exc)

        return Response(OrderSerializer(order_service.get_order_by_id(pk)).data, status=status.HTTP_200_OK)

    # ======================================================
    # PAYMENT STATUS (STAFF)
    # ======================================================

    @extend_schema(tags=["Orders"], request=PaymentStatusInputSerializer, responses={200: OrderSerializer})
    @action(detail=True, methods=["post"], url_path="payment-status", permission_classes=[IsStaff])
    def payment_status(self, request, pk=None):
        s = PaymentStatusInputSerializer(data=request.data)
        if not s.is_valid():
            return _invalid_input(s, "Invalid payment status update")

        try:
            order_lifecycle.update_payment_status(
                pk,
                s.validated_data["payment_status"],
                reference=s.validated_data.get("reference") or None,
            )
        except StorefrontError as exc:
            return domain_error_response(exc)

        return Response(OrderSerializer(order_service.get_order_by_id(pk)).data, status=status.HTTP_200_OK)

    # ======================================================
    # RESTORE INVENTORY (ADMIN)
    # ======================================================

    @extend_schema(tags=["Orders"], request=None, responses={200: OrderSerializer})
    @action(detail=True, methods=["post"], url_path="restore-inventory", permission_classes=[IsAdmin])
    def restore_inventory(self, request, pk=None):
        try:
            order_service.restore_inventory(pk)
        except StorefrontError as exc:
            return domain_error_response(exc)

        logger.info("Inventory restore requested", extra={"order_id": str(pk), "user_id": str(request.user.id)})
        return Response(OrderSerializer(order_service.get_order_by_id(pk)).data, status=status.HTTP_200_OK)

    # ======================================================
    # REORDER / OPEN COUNT (OWNER)
    # ======================================================

    @extend_schema(
        tags=["Orders"],
        request=None,
        responses={
            200: OpenApiResponse(description="Lines added to the caller's cart"),
            400: OpenApiResponse(description="Nothing could be added"),
            404: OpenApiResponse(description="Not found"),
        },
    )
    @action(detail=True, methods=["post"], url_path="reorder")
    def reorder(self, request, pk=None):
        try:
            result = order_service.reorder(pk, request.user)
        except StorefrontError as exc:
            return domain_error_response(exc)

        return Response(
            {
                "message": result.message,
                "added_items": result.added_items,
                "unavailable_items": result.unavailable_items,
                "cart": CartSerializer(result.cart).data,
            },
            status=status.HTTP_200_OK,
        )

    @extend_schema(tags=["Orders"], responses={200: OpenApiResponse(description='{"count": <int>}')})
    @action(detail=False, methods=["get"], url_path="open-count")
    def open_count(self, request):
        return Response({"count": order_service.count_open_orders(request.user.id)}, status=status.HTTP_200_OK)

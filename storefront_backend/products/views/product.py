# products/views/product.py

"""
PRODUCT VIEWSET

Purpose:
- Public read-only catalog browsing (active products only).
- Availability check for a product / variant (storefront "add to cart" guard).
- Staff stock adjustment routed through the inventory ledger.
"""

from django.db.models import Q
from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
)
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from common.api import domain_error_response, error_response
from common.exceptions import StorefrontError
from products.models import Product
from products.serializers import (
    AvailabilityQuerySerializer,
    AvailabilitySerializer,
    ProductSerializer,
    ProductVariantSerializer,
    StockAdjustmentSerializer,
)
from products.services import inventory
from users.permissions import IsStaff


class ProductViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Product endpoints.

    Public:
    - GET /api/products/?q=<search>&category=<uuid>
    - GET /api/products/<id>/
    - GET /api/products/<id>/availability/?quantity=<int>&variant_id=<uuid>

    Staff:
    - POST /api/products/<id>/adjust-stock/
    """

    serializer_class = ProductSerializer
    permission_classes = [AllowAny]

    def get_queryset(self):
        qs = (
            Product.objects.filter(is_active=True)
            .select_related("category")
            .prefetch_related("variants")
        )

        q = (self.request.query_params.get("q") or "").strip()
        if q:
            qs = qs.filter(Q(name__icontains=q) | Q(brand__icontains=q) | Q(variants__sku__iexact=q)).distinct()

        category = (self.request.query_params.get("category") or "").strip()
        if category:
            qs = qs.filter(Q(category__slug=category) | Q(category__name__iexact=category))

        return qs.order_by("-created_at")

    # -----------------------------
    # Availability (AllowAny)
    # -----------------------------
    @extend_schema(
        tags=["Products"],
        parameters=[
            OpenApiParameter(name="quantity", type=int, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="variant_id", type=str, location=OpenApiParameter.QUERY, required=False),
        ],
        responses={
            200: AvailabilitySerializer,
            404: OpenApiResponse(description="Product or variant not found"),
        },
    )
    @action(detail=True, methods=["get"], url_path="availability")
    def availability(self, request, pk=None):
        params = AvailabilityQuerySerializer(data=request.query_params)
        if not params.is_valid():
            return error_response(
                code="invalid_state",
                message="Invalid availability query",
                details=[f"{k}: {v[0]}" for k, v in params.errors.items()],
                http_status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            result = inventory.check_availability(
                product_id=pk,
                quantity=params.validated_data["quantity"],
                variant_id=params.validated_data.get("variant_id"),
            )
        except StorefrontError as exc:
            return domain_error_response(exc)

        return Response(AvailabilitySerializer(result.as_dict()).data, status=status.HTTP_200_OK)

    # -----------------------------
    # Staff: stock adjustment
    # -----------------------------
    @extend_schema(
        tags=["Products"],
        request=StockAdjustmentSerializer,
        responses={200: ProductSerializer, 409: OpenApiResponse(description="Would go below zero")},
    )
    @action(detail=True, methods=["post"], url_path="adjust-stock", permission_classes=[IsStaff])
    def adjust_stock(self, request, pk=None):
        s = StockAdjustmentSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            result = inventory.adjust_stock(
                product=pk,
                quantity_delta=s.validated_data["quantity_delta"],
                variant=s.validated_data.get("variant_id"),
            )
        except StorefrontError as exc:
            return domain_error_response(exc)

        if isinstance(result, Product):
            return Response(ProductSerializer(result).data, status=status.HTTP_200_OK)
        return Response(ProductVariantSerializer(result).data, status=status.HTTP_200_OK)

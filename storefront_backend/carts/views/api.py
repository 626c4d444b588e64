# carts/views/api.py

"""
CART API VIEWS

Purpose:
- Owner-scoped cart lifecycle for customers and guests.
- Add/update/remove/clear items (server-owned pricing).
- Validate the cart against the live catalog before checkout.

Hard rules:
- Every mutation goes through carts.services.cart_service.
- Domain errors render as {"error": {"code", "message", "details"}}.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.views import APIView

from carts.serializers import (
    AddCartItemInputSerializer,
    CartSerializer,
    CartValidationSerializer,
    UpdateCartItemInputSerializer,
)
from carts.services import cart_service
from common.api import domain_error_response
from common.exceptions import CartNotFoundError, StorefrontError

from .owner import attach_session_cookie, resolve_owner

EMPTY_CART = {
    "id": None,
    "owner_type": None,
    "items": [],
    "item_count": 0,
    "subtotal_amount": "0.00",
    "expires_at": None,
    "created_at": None,
    "updated_at": None,
}


class CartWriteThrottle(AnonRateThrottle):
    scope = "public_write"


def _cart_response(cart, owner, http_status=status.HTTP_200_OK):
    response = Response(CartSerializer(cart).data, status=http_status)
    return attach_session_cookie(response, owner)


class CartView(APIView):
    """
    GET    /api/cart/   current cart (empty shape when none exists)
    DELETE /api/cart/   remove every line
    """

    permission_classes = [AllowAny]
    serializer_class = CartSerializer

    @extend_schema(responses={200: CartSerializer}, tags=["Cart"])
    def get(self, request):
        owner = resolve_owner(request)
        cart = cart_service.get_cart(owner) if owner else None
        if cart is None:
            return Response(EMPTY_CART, status=status.HTTP_200_OK)
        return _cart_response(cart, owner)

    @extend_schema(responses={200: CartSerializer}, tags=["Cart"])
    def delete(self, request):
        owner = resolve_owner(request)
        cart = cart_service.get_cart(owner) if owner else None
        if cart is None:
            return Response(EMPTY_CART, status=status.HTTP_200_OK)
        return _cart_response(cart_service.clear_cart(cart), owner)


class CartItemsView(APIView):
    """
    POST /api/cart/items/   add a product (or variant); merges into an existing line
    """

    permission_classes = [AllowAny]
    throttle_classes = [CartWriteThrottle]
    serializer_class = CartSerializer

    @extend_schema(
        request=AddCartItemInputSerializer,
        responses={
            200: CartSerializer,
            404: OpenApiResponse(description="Product or variant not found"),
            409: OpenApiResponse(description="Insufficient inventory"),
        },
        tags=["Cart"],
    )
    def post(self, request):
        s = AddCartItemInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        owner = resolve_owner(request, create=True)
        try:
            cart = cart_service.get_or_create_cart(owner)
            cart = cart_service.add_item(
                cart,
                product_id=s.validated_data["product_id"],
                quantity=s.validated_data["quantity"],
                variant_id=s.validated_data.get("variant_id"),
            )
        except StorefrontError as exc:
            return attach_session_cookie(domain_error_response(exc), owner)

        return _cart_response(cart, owner)


class CartItemDetailView(APIView):
    """
    PATCH  /api/cart/items/<item_id>/   set quantity (0 removes)
    DELETE /api/cart/items/<item_id>/   remove the line
    """

    permission_classes = [AllowAny]
    serializer_class = CartSerializer

    def _cart_or_404(self, request):
        owner = resolve_owner(request)
        cart = cart_service.get_cart(owner) if owner else None
        return owner, cart

    @extend_schema(request=UpdateCartItemInputSerializer, responses={200: CartSerializer}, tags=["Cart"])
    def patch(self, request, item_id):
        s = UpdateCartItemInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        owner, cart = self._cart_or_404(request)
        try:
            if cart is None:
                raise CartNotFoundError()
            cart = cart_service.update_item_quantity(cart, item_id=item_id, quantity=s.validated_data["quantity"])
        except StorefrontError as exc:
            return domain_error_response(exc)

        return _cart_response(cart, owner)

    @extend_schema(responses={200: CartSerializer}, tags=["Cart"])
    def delete(self, request, item_id):
        owner, cart = self._cart_or_404(request)
        try:
            if cart is None:
                raise CartNotFoundError()
            cart = cart_service.remove_item(cart, item_id=item_id)
        except StorefrontError as exc:
            return domain_error_response(exc)

        return _cart_response(cart, owner)


class ValidateCartView(APIView):
    """
    POST /api/cart/validate/   reconcile the cart with current stock and prices
    """

    permission_classes = [AllowAny]
    serializer_class = CartValidationSerializer

    @extend_schema(responses={200: CartValidationSerializer}, tags=["Cart"])
    def post(self, request):
        owner = resolve_owner(request)
        cart = cart_service.get_cart(owner) if owner else None
        if cart is None:
            return Response(
                {"cart": EMPTY_CART, "validation": CartValidationSerializer(cart_service.CartValidationResult()).data},
                status=status.HTTP_200_OK,
            )

        result = cart_service.validate_cart(cart)
        cart.refresh_from_db()

        return Response(
            {"cart": CartSerializer(cart).data, "validation": CartValidationSerializer(result).data},
            status=status.HTTP_200_OK,
        )

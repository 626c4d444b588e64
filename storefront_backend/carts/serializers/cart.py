# carts/serializers/cart.py

"""
CART SERIALIZERS

Purpose:
- Return a cart in a frontend-friendly shape.
- Totals are the stored, service-recomputed values (never trusted from client).
"""

from rest_framework import serializers

from carts.models import Cart, CartItem, MAX_LINE_QUANTITY


class CartItemSerializer(serializers.ModelSerializer):
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = CartItem
        fields = [
            "id",
            "product",
            "variant_id",
            "product_name",
            "image",
            "size",
            "color",
            "quantity",
            "price",
            "line_total",
            "created_at",
        ]
        read_only_fields = fields


class CartSerializer(serializers.ModelSerializer):
    items = CartItemSerializer(many=True, read_only=True)
    owner_type = serializers.SerializerMethodField()

    class Meta:
        model = Cart
        fields = [
            "id",
            "owner_type",
            "items",
            "item_count",
            "subtotal_amount",
            "expires_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_owner_type(self, obj) -> str:
        return "user" if obj.user_id else "guest"


# =====================================================
# INPUT SERIALIZERS
# =====================================================

class AddCartItemInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    variant_id = serializers.UUIDField(required=False, allow_null=True)
    quantity = serializers.IntegerField(min_value=1, max_value=MAX_LINE_QUANTITY)


class UpdateCartItemInputSerializer(serializers.Serializer):
    # 0 removes the line
    quantity = serializers.IntegerField(min_value=0, max_value=MAX_LINE_QUANTITY)


class CartValidationSerializer(serializers.Serializer):
    is_valid = serializers.BooleanField()
    removed_items = serializers.ListField(child=serializers.CharField())
    updated_items = serializers.ListField(child=serializers.CharField())
    errors = serializers.ListField(child=serializers.CharField())

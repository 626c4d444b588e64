# orders/serializers/order.py

"""
ORDER SERIALIZERS

Read side:
- OrderSerializer returns the order with its immutable item snapshots and a
  nested shipping_address object.

Write side:
- Input serializers only shape the request. Prices, totals and stock are
  decided by orders.services; any client-sent price is ignored.
"""

from rest_framework import serializers

from carts.models import MAX_LINE_QUANTITY
from orders.models import Order, OrderItem


class ShippingAddressSerializer(serializers.Serializer):
    street = serializers.CharField(max_length=255)
    city = serializers.CharField(max_length=100)
    state = serializers.CharField(max_length=100)
    zip_code = serializers.CharField(max_length=20)
    country = serializers.CharField(max_length=100)
    recipient_name = serializers.CharField(max_length=120)
    recipient_phone = serializers.CharField(max_length=40)


class OrderItemSerializer(serializers.ModelSerializer):
    """
    Order line snapshot (read-only).
    """

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product",
            "variant_id",
            "product_name",
            "product_image",
            "sku",
            "size",
            "color",
            "quantity",
            "unit_price",
            "line_total",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    shipping_address = ShippingAddressSerializer(read_only=True)
    user_email = serializers.EmailField(source="user.email", read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "user",
            "user_email",
            "items",
            "subtotal_amount",
            "tax_amount",
            "shipping_amount",
            "discount_amount",
            "total_amount",
            "status",
            "payment_status",
            "payment_method",
            "paystack_reference",
            "paid_at",
            "shipping_address",
            "tracking_number",
            "estimated_delivery",
            "delivered_at",
            "cancelled_at",
            "cancel_reason",
            "notes",
            "inventory_restored_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


# =====================================================
# INPUT SERIALIZERS
# =====================================================

class OrderLineInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    variant_id = serializers.UUIDField(required=False, allow_null=True)
    quantity = serializers.IntegerField(min_value=1, max_value=MAX_LINE_QUANTITY)


class CreateOrderInputSerializer(serializers.Serializer):
    cart_id = serializers.UUIDField(required=False, allow_null=True)
    items = OrderLineInputSerializer(many=True, required=False)

    shipping_address = ShippingAddressSerializer()
    payment_method = serializers.ChoiceField(choices=Order.PAYMENT_METHOD_CHOICES, default=Order.METHOD_CARD)

    tax = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False, default=0)
    shipping = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False, default=0)
    discount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False, default=0)

    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):
        if not attrs.get("cart_id") and not attrs.get("items"):
            raise serializers.ValidationError("Provide cart_id or a non-empty items list.")
        return attrs


class UpdateStatusInputSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES)
    cancel_reason = serializers.CharField(required=False, allow_blank=True, default="")
    tracking_number = serializers.CharField(required=False, allow_blank=True, default="")


class PaymentStatusInputSerializer(serializers.Serializer):
    payment_status = serializers.ChoiceField(choices=Order.PAYMENT_STATUS_CHOICES)
    reference = serializers.CharField(required=False, allow_blank=True, default="")

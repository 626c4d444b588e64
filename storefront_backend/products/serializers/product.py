# products/serializers/product.py

"""
PRODUCT SERIALIZERS

Purpose:
- Read-only catalog payloads for the storefront.
- Stock figures come straight from the inventory counters (ledger-owned);
  nothing here writes them.
"""

from rest_framework import serializers

from products.models import Product, ProductVariant


class ProductVariantSerializer(serializers.ModelSerializer):
    effective_price = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = ProductVariant
        fields = [
            "id",
            "sku",
            "size",
            "color",
            "price",
            "effective_price",
            "inventory",
        ]
        read_only_fields = fields


class ProductSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source="category.name", read_only=True, default=None)
    primary_image = serializers.CharField(read_only=True)
    variants = ProductVariantSerializer(many=True, read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "description",
            "brand",
            "category",
            "category_name",
            "price",
            "images",
            "primary_image",
            "inventory",
            "rating",
            "review_count",
            "variants",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class AvailabilityQuerySerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1, default=1)
    variant_id = serializers.UUIDField(required=False, allow_null=True)


class AvailabilitySerializer(serializers.Serializer):
    available = serializers.BooleanField()
    max_quantity = serializers.IntegerField()
    reason = serializers.CharField(allow_null=True)


class StockAdjustmentSerializer(serializers.Serializer):
    quantity_delta = serializers.IntegerField()
    variant_id = serializers.UUIDField(required=False, allow_null=True)

    def validate_quantity_delta(self, value):
        if value == 0:
            raise serializers.ValidationError("quantity_delta cannot be 0")
        return value

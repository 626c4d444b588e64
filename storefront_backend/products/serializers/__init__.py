# products/serializers/__init__.py

from .category import CategorySerializer
from .product import (
    AvailabilityQuerySerializer,
    AvailabilitySerializer,
    ProductSerializer,
    ProductVariantSerializer,
    StockAdjustmentSerializer,
)

__all__ = [
    "AvailabilityQuerySerializer",
    "AvailabilitySerializer",
    "CategorySerializer",
    "ProductSerializer",
    "ProductVariantSerializer",
    "StockAdjustmentSerializer",
]

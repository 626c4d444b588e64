"""
PATH: products/models/__init__.py

Products models export surface.
"""

from .category import Category
from .product import Product
from .variant import ProductVariant

__all__ = [
    "Category",
    "Product",
    "ProductVariant",
]

# products/models/variant.py

"""
PRODUCT VARIANT

A specific sellable configuration of a product (size + color) with its own SKU
and stock count.

Rules:
- Owned by exactly one Product; always addressed through it
  (product.variants.filter(id=...)), never as a free-standing record.
- SKU is unique within the parent product.
- size is stored upper-case, color lower-case (same normalization as cart/order lines).
- inventory is written ONLY by products.services.inventory.
"""

import re
import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from .product import Product

SKU_PATTERN = re.compile(r"^[A-Z0-9\-_]{3,20}$")


def normalize_size(value) -> str:
    return (value or "").strip().upper()


def normalize_color(value) -> str:
    return (value or "").strip().lower()


class ProductVariant(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="variants",
    )

    sku = models.CharField(max_length=20)
    size = models.CharField(max_length=10, blank=True, default="")
    color = models.CharField(max_length=50, blank=True, default="")

    # Optional override of product.price
    price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    inventory = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "sku"],
                name="unique_variant_sku_per_product",
            ),
        ]
        indexes = [
            models.Index(fields=["product", "sku"], name="products_pr_product_5a6e20_idx"),
        ]

    def clean(self):
        self.sku = (self.sku or "").strip().upper()
        self.size = normalize_size(self.size)
        self.color = normalize_color(self.color)

        if not SKU_PATTERN.match(self.sku):
            raise ValidationError(
                {"sku": "SKU must be 3-20 characters with letters, numbers, hyphens, or underscores"}
            )

        if self.price is not None and Decimal(self.price) < Decimal("0.00"):
            raise ValidationError({"price": "Variant price cannot be negative"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    @property
    def effective_price(self) -> Decimal:
        if self.price is not None:
            return self.price
        return self.product.price

    def __str__(self):
        label = " / ".join(p for p in (self.size, self.color) if p)
        return f"{self.product.name} [{self.sku}] {label}".strip()

# products/models/product.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from .category import Category

MAX_PRODUCT_IMAGES = 10


class Product(models.Model):
    """
    Represents a sellable product.

    STOCK MODEL (IMPORTANT):
    - `inventory` is the base stock counter for products sold without variants.
    - If the product has variants, `inventory` is the aggregate of variant stock and
      is recomputed by the inventory ledger whenever a variant's stock changes.
    - Inventory columns are written ONLY by products.services.inventory.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
    )

    name = models.CharField(max_length=200, db_index=True)
    description = models.TextField(blank=True, default="")
    brand = models.CharField(max_length=100, blank=True, default="")

    # Base selling price (variants may override)
    price = models.DecimalField(max_digits=12, decimal_places=2)

    # Ordered image URLs; the first one is the display image
    images = models.JSONField(default=list, blank=True)

    inventory = models.PositiveIntegerField(default=0)

    rating = models.DecimalField(max_digits=3, decimal_places=2, default=Decimal("0.00"))
    review_count = models.PositiveIntegerField(default=0)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["name"], name="products_pr_name_9ff0a3_idx"),
            models.Index(fields=["brand"], name="products_pr_brand_3c1f8e_idx"),
            models.Index(fields=["is_active", "created_at"], name="products_pr_is_acti_7b2d41_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gte=0),
                name="product_price_non_negative",
            ),
        ]

    def __str__(self):
        return self.name

    def clean(self):
        if self.price is None or Decimal(self.price) < Decimal("0.00"):
            raise ValidationError({"price": "Price cannot be negative"})

        if not isinstance(self.images, list):
            raise ValidationError({"images": "images must be a list of URLs"})
        if len(self.images) > MAX_PRODUCT_IMAGES:
            raise ValidationError({"images": f"A product cannot have more than {MAX_PRODUCT_IMAGES} images"})

        if self.rating is not None and not (Decimal("0") <= Decimal(self.rating) <= Decimal("5")):
            raise ValidationError({"rating": "Rating must be between 0 and 5"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    @property
    def primary_image(self) -> str:
        images = self.images or []
        return str(images[0]) if images else ""

    @property
    def has_variants(self) -> bool:
        return self.variants.exists()

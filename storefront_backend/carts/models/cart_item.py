# carts/models/cart_item.py

"""
CART ITEM MODEL

Purpose:
- One cart line: a product (optionally a specific variant) and a quantity.
- price / name / image / size / color are snapshots taken when the line was added,
  refreshed by cart validation.

Rules:
- Quantity is 1..99.
- product is SET_NULL on delete so validation can report the vanished line by name.
- variant_id is a plain UUID; the variant is always resolved through the product.
"""

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from products.models import Product
from .cart import Cart

MAX_LINE_QUANTITY = 99


class CartItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    cart = models.ForeignKey(
        Cart,
        on_delete=models.CASCADE,
        related_name="items",
    )

    product = models.ForeignKey(
        Product,
        on_delete=models.SET_NULL,
        null=True,
        related_name="cart_items",
    )
    variant_id = models.UUIDField(null=True, blank=True)

    quantity = models.PositiveIntegerField()

    price = models.DecimalField(max_digits=12, decimal_places=2)
    product_name = models.CharField(max_length=200)
    image = models.CharField(max_length=500, blank=True, default="")
    size = models.CharField(max_length=10, blank=True, default="")
    color = models.CharField(max_length=50, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at"]

    def clean(self):
        if self.quantity is None or not (1 <= int(self.quantity) <= MAX_LINE_QUANTITY):
            raise ValidationError({"quantity": f"Quantity must be between 1 and {MAX_LINE_QUANTITY}"})

        if self.price is None or self.price < 0:
            raise ValidationError({"price": "Price cannot be negative"})

        self.size = (self.size or "").strip().upper()
        self.color = (self.color or "").strip().lower()

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    @property
    def line_total(self) -> Decimal:
        return (self.price or Decimal("0.00")) * Decimal(int(self.quantity or 0))

    def __str__(self):
        return f"{self.product_name} x {self.quantity}"

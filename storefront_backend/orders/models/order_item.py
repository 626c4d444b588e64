# orders/models/order_item.py

"""
ORDER ITEM (IMMUTABLE SNAPSHOT)

Purpose:
- One purchased line, with display data copied at order time.

Rules:
- quantity >= 1
- |line_total - quantity * unit_price| < ORDERS["LINE_TOTAL_TOLERANCE"]
- product is SET_NULL on delete; variant_id is a plain UUID. The snapshot outlives
  both, and inventory restore skips lines whose product/variant is gone.
- Never updated after creation.
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from products.models import Product
from .order import Order


def line_total_tolerance() -> Decimal:
    raw = (getattr(settings, "ORDERS", {}) or {}).get("LINE_TOTAL_TOLERANCE", "0.01")
    return Decimal(str(raw))


class OrderItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name="items",
    )

    product = models.ForeignKey(
        Product,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_items",
    )
    variant_id = models.UUIDField(null=True, blank=True)

    # Snapshots
    product_name = models.CharField(max_length=200)
    product_image = models.CharField(max_length=500, blank=True, default="")
    sku = models.CharField(max_length=20, blank=True, default="")
    size = models.CharField(max_length=10, blank=True, default="")
    color = models.CharField(max_length=50, blank=True, default="")

    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    line_total = models.DecimalField(max_digits=12, decimal_places=2)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_item_quantity_positive",
            ),
        ]

    def clean(self):
        self.size = (self.size or "").strip().upper()
        self.color = (self.color or "").strip().lower()

        if self.quantity is None or int(self.quantity) < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1"})

        if self.unit_price is None or Decimal(self.unit_price) < 0:
            raise ValidationError({"unit_price": "Unit price cannot be negative"})

        expected = Decimal(self.unit_price) * int(self.quantity)
        if abs(Decimal(self.line_total) - expected) >= line_total_tolerance():
            raise ValidationError({"line_total": f"line_total must equal quantity x unit_price ({expected})"})

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Order items are immutable once created")
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.product_name} x {self.quantity}"

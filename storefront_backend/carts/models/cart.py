"""
PATH: carts/models/cart.py

CART MODEL

Purpose:
- Shopping cart for a customer or a guest session.
- subtotal_amount / item_count are stored, and recomputed explicitly by
  carts.services.cart_service after every mutation (no save() hooks).

Rules:
- Exactly one owner: user XOR session_id (DB check constraint).
- One cart per owner.
- expires_at is pushed forward on every mutation; expired carts are purged by
  the purge_expired_carts management command.
- Deleted outright when an order is created from it.
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models

from .owner import CartOwner, GuestOwner, UserOwner


class CartQuerySet(models.QuerySet):
    def for_owner(self, owner: CartOwner):
        return self.filter(**owner.as_filter())

    def expired(self, now):
        return self.filter(expires_at__lt=now)


class Cart(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="carts",
    )
    session_id = models.CharField(max_length=100, null=True, blank=True)

    subtotal_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    item_count = models.PositiveIntegerField(default=0)

    expires_at = models.DateTimeField(db_index=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CartQuerySet.as_manager()

    class Meta:
        ordering = ["-updated_at"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    (models.Q(user__isnull=False) & models.Q(session_id__isnull=True))
                    | (models.Q(user__isnull=True) & models.Q(session_id__isnull=False))
                ),
                name="cart_has_exactly_one_owner",
            ),
            models.UniqueConstraint(
                fields=["user"],
                condition=models.Q(user__isnull=False),
                name="one_cart_per_user",
            ),
            models.UniqueConstraint(
                fields=["session_id"],
                condition=models.Q(session_id__isnull=False),
                name="one_cart_per_session",
            ),
        ]

    @property
    def owner(self) -> CartOwner:
        if self.user_id is not None:
            return UserOwner(user_id=self.user_id)
        return GuestOwner(session_id=self.session_id)

    @property
    def is_empty(self) -> bool:
        return not self.items.exists()

    def __str__(self):
        return f"Cart {self.id} | {self.owner} | {self.item_count} items"

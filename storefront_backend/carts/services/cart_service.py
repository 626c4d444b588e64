# carts/services/cart_service.py

"""
======================================================
PATH: carts/services/cart_service.py
======================================================
CART SERVICE

Purpose:
- Owner-scoped cart lifecycle (get/create, add, update, remove, clear).
- Server-owned pricing: price / name / image / size / color are snapshotted
  from the catalog on add, never taken from the client.
- Cart validation against the live catalog before checkout.

Rules:
- Every mutation ends with recompute_totals(), which rewrites subtotal_amount,
  item_count and pushes expires_at forward. There are no save() hooks doing this.
- Stock is only READ here (inventory.check_availability). Reservation happens
  at order creation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from carts.models import MAX_LINE_QUANTITY, Cart, CartItem, CartOwner
from common.exceptions import (
    InsufficientInventoryError,
    InvalidStateError,
    NotFoundError,
    ProductNotFoundError,
    VariantNotFoundError,
)
from common.money import ZERO, money, parse_uuid, to_int_qty
from products.models import Product
from products.services import inventory

logger = logging.getLogger(__name__)


# ============================================================
# CONFIG
# ============================================================

def _cart_settings() -> dict:
    return getattr(settings, "CARTS", {}) or {}


def _ttl() -> timedelta:
    return timedelta(days=int(_cart_settings().get("TTL_DAYS", 30)))


def max_item_quantity() -> int:
    return min(int(_cart_settings().get("MAX_ITEM_QUANTITY", MAX_LINE_QUANTITY)), MAX_LINE_QUANTITY)


# ============================================================
# RESULT TYPES
# ============================================================

@dataclass
class CartValidationResult:
    is_valid: bool = True
    removed_items: list[str] = field(default_factory=list)
    updated_items: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def flag(self, message: str) -> None:
        self.is_valid = False
        self.errors.append(message)


# ============================================================
# HELPERS
# ============================================================

def _require_qty(value) -> int:
    try:
        qty = to_int_qty(value)
    except ValueError as exc:
        raise InvalidStateError(str(exc)) from exc

    limit = max_item_quantity()
    if not (1 <= qty <= limit):
        raise InvalidStateError(f"Quantity must be between 1 and {limit}")
    return qty


def _get_item(cart: Cart, item_id) -> CartItem:
    iid = parse_uuid(item_id)
    item = cart.items.filter(id=iid).first() if iid is not None else None
    if item is None:
        raise NotFoundError("Cart item not found")
    return item


def _ensure_available(*, product_id, quantity: int, variant_id=None) -> None:
    result = inventory.check_availability(product_id=product_id, quantity=quantity, variant_id=variant_id)
    if not result.available:
        raise InsufficientInventoryError([result.reason])


def recompute_totals(cart: Cart) -> Cart:
    """
    subtotal == sum(price * quantity), item_count == sum(quantity).
    """
    subtotal = ZERO
    count = 0
    for item in CartItem.objects.filter(cart=cart):
        subtotal += Decimal(item.price) * int(item.quantity)
        count += int(item.quantity)

    cart.subtotal_amount = money(subtotal)
    cart.item_count = count
    cart.expires_at = timezone.now() + _ttl()
    cart.save(update_fields=["subtotal_amount", "item_count", "expires_at", "updated_at"])
    return cart


# ============================================================
# LIFECYCLE
# ============================================================

def get_cart(owner: CartOwner) -> Cart | None:
    return Cart.objects.for_owner(owner).first()


@transaction.atomic
def get_or_create_cart(owner: CartOwner) -> Cart:
    """
    The owner's cart, created on first use. An expired cart is replaced by a fresh one.
    """
    cart = Cart.objects.select_for_update().for_owner(owner).first()

    if cart is not None and cart.expires_at <= timezone.now():
        logger.info("Replacing expired cart", extra={"cart_id": str(cart.id)})
        cart.delete()
        cart = None

    if cart is None:
        cart = Cart.objects.create(expires_at=timezone.now() + _ttl(), **owner.as_fields())

    return cart


# ============================================================
# MUTATIONS
# ============================================================

@transaction.atomic
def add_item(cart: Cart, *, product_id, quantity, variant_id=None) -> Cart:
    """
    Add a product (or variant) to the cart, merging into an existing line.
    """
    qty = _require_qty(quantity)

    pid = parse_uuid(product_id)
    product = Product.objects.filter(id=pid, is_active=True).first() if pid is not None else None
    if product is None:
        raise ProductNotFoundError("Product not found")

    variant = None
    if variant_id:
        vid = parse_uuid(variant_id)
        variant = product.variants.filter(id=vid).first() if vid is not None else None
        if variant is None:
            raise VariantNotFoundError("Product variant not found")
    elif product.has_variants:
        raise InvalidStateError(f"Select a size / color for {product.name}")

    line = cart.items.filter(product=product, variant_id=variant.id if variant else None).first()
    new_qty = qty + (int(line.quantity) if line else 0)
    if new_qty > max_item_quantity():
        raise InvalidStateError(
            f"Cannot add more items. Maximum quantity per item is {max_item_quantity()}"
        )

    _ensure_available(product_id=product.id, quantity=new_qty, variant_id=variant.id if variant else None)

    if line is not None:
        line.quantity = new_qty
        line.save(update_fields=["quantity", "updated_at"])
    else:
        CartItem.objects.create(
            cart=cart,
            product=product,
            variant_id=variant.id if variant else None,
            quantity=qty,
            price=variant.effective_price if variant else product.price,
            product_name=product.name,
            image=product.primary_image,
            size=variant.size if variant else "",
            color=variant.color if variant else "",
        )

    return recompute_totals(cart)


@transaction.atomic
def update_item_quantity(cart: Cart, *, item_id, quantity) -> Cart:
    """
    Set a line's quantity. Zero removes the line.
    """
    item = _get_item(cart, item_id)

    try:
        raw = to_int_qty(quantity)
    except ValueError as exc:
        raise InvalidStateError(str(exc)) from exc
    if raw == 0:
        item.delete()
        return recompute_totals(cart)

    qty = _require_qty(raw)
    if item.product_id is None:
        raise ProductNotFoundError(f"{item.product_name} is no longer available")

    _ensure_available(product_id=item.product_id, quantity=qty, variant_id=item.variant_id)

    item.quantity = qty
    item.save(update_fields=["quantity", "updated_at"])
    return recompute_totals(cart)


@transaction.atomic
def remove_item(cart: Cart, *, item_id) -> Cart:
    _get_item(cart, item_id).delete()
    return recompute_totals(cart)


@transaction.atomic
def clear_cart(cart: Cart) -> Cart:
    cart.items.all().delete()
    return recompute_totals(cart)


# ============================================================
# VALIDATION
# ============================================================

@transaction.atomic
def validate_cart(cart: Cart) -> CartValidationResult:
    """
    Reconcile cart lines with the live catalog.

    - vanished product / variant, or zero stock -> line removed
    - quantity above stock -> clamped to stock
    - changed price -> snapshot refreshed
    """
    result = CartValidationResult()

    items = list(cart.items.all())
    product_ids = {item.product_id for item in items if item.product_id}
    products = {
        p.id: p
        for p in Product.objects.filter(id__in=product_ids, is_active=True).prefetch_related("variants")
    }

    for item in items:
        product = products.get(item.product_id)
        if product is None:
            result.removed_items.append(str(item.id))
            result.flag(f'Product "{item.product_name}" is no longer available')
            item.delete()
            continue

        on_hand = int(product.inventory or 0)
        current_price = product.price
        if item.variant_id:
            variant = next((v for v in product.variants.all() if v.id == item.variant_id), None)
            if variant is None:
                result.removed_items.append(str(item.id))
                result.flag(f'Variant for "{item.product_name}" is no longer available')
                item.delete()
                continue
            on_hand = int(variant.inventory or 0)
            current_price = variant.effective_price

        if on_hand <= 0:
            result.removed_items.append(str(item.id))
            result.flag(f'"{item.product_name}" is out of stock')
            item.delete()
            continue

        changed = []
        if int(item.quantity) > on_hand:
            item.quantity = on_hand
            changed.append("quantity")
            result.flag(f'Quantity for "{item.product_name}" reduced to {on_hand} (maximum available)')

        if money(item.price) != money(current_price):
            item.price = current_price
            changed.append("price")
            result.flag(f'Price for "{item.product_name}" has been updated')

        if changed:
            item.save(update_fields=changed + ["updated_at"])
            result.updated_items.append(str(item.id))

    recompute_totals(cart)
    return result


def purge_expired_carts(*, now=None) -> int:
    """
    Delete carts whose TTL has elapsed. Returns the number of carts removed.
    """
    now = now or timezone.now()
    _, per_model = Cart.objects.expired(now).delete()
    count = int(per_model.get(Cart._meta.label, 0))
    if count:
        logger.info("Purged expired carts", extra={"count": count})
    return count

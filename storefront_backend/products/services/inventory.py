# products/services/inventory.py

"""
======================================================
PATH: products/services/inventory.py
======================================================
INVENTORY LEDGER

Purpose:
- Answer availability queries for a product or one of its variants.
- Reserve stock for an order (decrement) and restore it on cancellation (increment).
- Single entry point for restocks / manual corrections, and for adding or
  removing variants (both re-derive the product aggregate).

Rules:
- Quantities are integer units.
- Product.inventory and ProductVariant.inventory are written ONLY here.
- Every counter change is a conditional F() update, never read-modify-write:
    UPDATE ... SET inventory = inventory - N WHERE id = ? AND inventory >= N
- Product rows are locked (select_for_update) in id order before any counter moves,
  so reservations and restorations on the same product serialize without deadlocks.
- A product with variants sells through its variants; its own inventory is the
  aggregate of variant stock and is recomputed after each variant change.

CONCURRENCY:
- A conditional decrement that matches no row means stock moved after the check.
  It is retried ORDERS["RESERVE_RETRY_LIMIT"] times, then surfaces as
  InsufficientInventoryError. reserve() runs inside the caller's atomic block, so
  any failure rolls back every decrement already applied.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass

from django.conf import settings
from django.db import transaction
from django.db.models import F, Sum
from django.utils import timezone

from common.exceptions import (
    InsufficientInventoryError,
    InvalidStateError,
    ProductNotFoundError,
    VariantNotFoundError,
)
from common.money import parse_uuid, to_int_qty
from products.models import Product, ProductVariant

logger = logging.getLogger(__name__)


# ============================================================
# RESULT TYPES
# ============================================================

@dataclass(frozen=True)
class AvailabilityResult:
    available: bool
    max_quantity: int
    reason: str | None = None

    def as_dict(self) -> dict:
        return {
            "available": self.available,
            "max_quantity": self.max_quantity,
            "reason": self.reason,
        }


# ============================================================
# HELPERS
# ============================================================

def _retry_limit() -> int:
    return int(getattr(settings, "ORDERS", {}).get("RESERVE_RETRY_LIMIT", 1))


def _require_qty(value) -> int:
    try:
        qty = to_int_qty(value)
    except ValueError as exc:
        raise InvalidStateError(str(exc)) from exc
    if qty <= 0:
        raise InvalidStateError("quantity must be greater than zero")
    return qty


def _label(product: Product, variant: ProductVariant | None = None) -> str:
    if variant is None:
        return product.name
    parts = [p for p in (variant.size, variant.color) if p]
    suffix = f" ({' / '.join(parts)})" if parts else f" ({variant.sku})"
    return f"{product.name}{suffix}"


def _shortfall_reason(*, label: str, requested: int, available: int) -> str:
    if available <= 0:
        return f"{label} is out of stock. Requested: {requested}, Available: 0"
    return f"Insufficient stock for {label}. Requested: {requested}, Available: {available}"


def _get_product(product_id, *, lock: bool = False) -> Product:
    pid = parse_uuid(product_id)
    if pid is None:
        raise ProductNotFoundError(f"Product {product_id} not found")

    qs = Product.objects.select_for_update() if lock else Product.objects
    product = qs.filter(id=pid).first()
    if product is None:
        raise ProductNotFoundError(f"Product {product_id} not found")
    return product


def _get_variant(product: Product, variant_id) -> ProductVariant:
    vid = parse_uuid(variant_id)
    variant = product.variants.filter(id=vid).first() if vid is not None else None
    if variant is None:
        raise VariantNotFoundError(f"Variant not found for product {product.name}")
    return variant


def _aggregate_lines(items) -> "OrderedDict[tuple, int]":
    """
    Sum requested quantities per (product_id, variant_id).

    Two lines for the same variant must be checked against stock together,
    not one at a time.
    """
    lines: "OrderedDict[tuple, int]" = OrderedDict()
    for item in items:
        pid = parse_uuid(item.product_id) or item.product_id
        vid = parse_uuid(item.variant_id) or item.variant_id
        key = (str(pid), str(vid) if vid else None)
        lines[key] = lines.get(key, 0) + _require_qty(item.quantity)
    return lines


def _conditional_decrement(model, *, pk, quantity: int, **scope) -> bool:
    """
    Atomic compare-and-decrement. Returns False when stock is below `quantity`.
    """
    updated = (
        model.objects.filter(pk=pk, inventory__gte=quantity, **scope)
        .update(inventory=F("inventory") - quantity, updated_at=timezone.now())
    )
    return updated == 1


def _increment(model, *, pk, quantity: int, **scope) -> bool:
    updated = (
        model.objects.filter(pk=pk, **scope)
        .update(inventory=F("inventory") + quantity, updated_at=timezone.now())
    )
    return updated == 1


def _lock_products(product_ids) -> dict:
    """
    Lock product rows in a stable order and return them keyed by str(id).
    """
    ids = sorted({parse_uuid(pid) for pid in product_ids if parse_uuid(pid) is not None}, key=str)
    locked = Product.objects.select_for_update().filter(id__in=ids).order_by("id")
    return {str(p.id): p for p in locked}


# ============================================================
# READ PATH
# ============================================================

def check_availability(*, product_id, quantity, variant_id=None) -> AvailabilityResult:
    """
    Availability of `quantity` units of a product, or of one of its variants.

    Without a variant the product's own (aggregate) inventory is used.
    Requesting exactly the remaining stock is allowed.
    """
    qty = _require_qty(quantity)
    product = _get_product(product_id)

    if variant_id:
        variant = _get_variant(product, variant_id)
        on_hand = int(variant.inventory or 0)
        label = _label(product, variant)
    else:
        on_hand = int(product.inventory or 0)
        label = _label(product)

    if qty > on_hand:
        return AvailabilityResult(
            available=False,
            max_quantity=on_hand,
            reason=_shortfall_reason(label=label, requested=qty, available=on_hand),
        )

    return AvailabilityResult(available=True, max_quantity=on_hand)


def validate_availability(items) -> list[str]:
    """
    Check every line and return ALL shortfall reasons (empty list when everything fits).

    Raises NotFound for a missing product / variant.
    """
    reasons: list[str] = []
    for (product_id, variant_id), qty in _aggregate_lines(items).items():
        result = check_availability(product_id=product_id, quantity=qty, variant_id=variant_id)
        if not result.available:
            reasons.append(result.reason)
    return reasons


# ============================================================
# WRITE PATH
# ============================================================

def sync_aggregate_inventory(product: Product) -> int:
    """
    Recompute Product.inventory as the sum of its variants' inventory.
    No-op for products without variants.
    """
    if not product.has_variants:
        return int(product.inventory or 0)

    total = int(product.variants.aggregate(total=Sum("inventory"))["total"] or 0)
    Product.objects.filter(pk=product.pk).update(inventory=total, updated_at=timezone.now())
    product.inventory = total
    return total


def resync_after_variant_change(product: Product, *, had_variants: bool) -> int:
    """
    Re-derive the aggregate after variants were added or deleted outside the
    counter primitives (catalog edits, admin inline).

    When the last variant goes away the aggregate drops to 0 instead of
    silently turning back into base stock.
    """
    if product.has_variants or not had_variants:
        return sync_aggregate_inventory(product)

    Product.objects.filter(pk=product.pk).update(inventory=0, updated_at=timezone.now())
    product.inventory = 0
    return 0


@transaction.atomic
def add_variant(*, product, sku: str, size: str = "", color: str = "", price=None) -> ProductVariant:
    """
    Create a variant with no stock and re-derive the product aggregate.
    Any base stock the product held stops counting once it sells through variants.
    """
    product = _get_product(getattr(product, "pk", product), lock=True)
    variant = ProductVariant.objects.create(product=product, sku=sku, size=size, color=color, price=price)
    sync_aggregate_inventory(product)

    logger.info(
        "Variant added",
        extra={"product_id": str(product.pk), "variant_id": str(variant.pk), "sku": variant.sku},
    )
    return variant


@transaction.atomic
def remove_variant(*, product, variant) -> Product:
    """
    Delete a variant (its stock goes with it) and re-derive the product aggregate.
    Order and cart lines keep the variant id as a plain reference; restore skips it.
    """
    product = _get_product(getattr(product, "pk", product), lock=True)
    variant = _get_variant(product, getattr(variant, "pk", variant))
    variant_id = variant.pk

    variant.delete()
    resync_after_variant_change(product, had_variants=True)

    logger.info(
        "Variant removed",
        extra={"product_id": str(product.pk), "variant_id": str(variant_id)},
    )
    return product


def _reserve_line(product: Product, variant_id, qty: int) -> str | None:
    """
    Decrement one (product, variant) line. Returns a shortfall reason on failure.
    """
    if variant_id:
        variant = _get_variant(product, variant_id)
        model, pk, scope, label = ProductVariant, variant.pk, {"product_id": product.pk}, _label(product, variant)
    else:
        if product.has_variants:
            raise InvalidStateError(f"A variant must be selected for {product.name}")
        model, pk, scope, label = Product, product.pk, {}, _label(product)

    attempts = 1 + max(0, _retry_limit())
    for attempt in range(1, attempts + 1):
        if _conditional_decrement(model, pk=pk, quantity=qty, **scope):
            if variant_id:
                sync_aggregate_inventory(product)
            return None

        if attempt < attempts:
            logger.warning(
                "Conditional decrement refused, retrying",
                extra={"product_id": str(product.pk), "variant_id": variant_id, "quantity": qty, "attempt": attempt},
            )

    current = model.objects.filter(pk=pk).values_list("inventory", flat=True).first() or 0
    return _shortfall_reason(label=label, requested=qty, available=int(current))


@transaction.atomic
def reserve(items) -> None:
    """
    Reserve stock for every item, all-or-nothing.

    Stock is re-read under lock here; a prior availability check is never trusted.
    """
    lines = _aggregate_lines(items)
    if not lines:
        return

    locked = _lock_products(pid for pid, _ in lines)

    reasons: list[str] = []
    for (product_id, variant_id), qty in lines.items():
        product = locked.get(product_id)
        if product is None:
            raise ProductNotFoundError(f"Product {product_id} not found")

        reason = _reserve_line(product, variant_id, qty)
        if reason:
            reasons.append(reason)

    if reasons:
        raise InsufficientInventoryError(reasons)


@transaction.atomic
def restore(order) -> int:
    """
    Give back the stock reserved by `order`. Returns the number of lines restored.

    A product or variant deleted since the order was placed is skipped with a warning;
    the order must stay cancellable.
    """
    items = list(order.items.all())
    locked = _lock_products(item.product_id for item in items if item.product_id)

    restored = 0
    for item in items:
        product = locked.get(str(item.product_id)) if item.product_id else None
        if product is None:
            logger.warning(
                "Skipping inventory restore for deleted product",
                extra={"order_id": str(order.pk), "product_name": item.product_name},
            )
            continue

        qty = int(item.quantity or 0)
        if qty <= 0:
            continue

        if item.variant_id:
            if not _increment(ProductVariant, pk=item.variant_id, quantity=qty, product_id=product.pk):
                logger.warning(
                    "Skipping inventory restore for deleted variant",
                    extra={"order_id": str(order.pk), "product_id": str(product.pk), "variant_id": str(item.variant_id)},
                )
                continue
            sync_aggregate_inventory(product)
        else:
            _increment(Product, pk=product.pk, quantity=qty)

        restored += 1

    return restored


@transaction.atomic
def adjust_stock(*, product, quantity_delta, variant=None):
    """
    Restock (positive delta) or correct (negative delta) a product or variant.

    Never takes stock below zero. Returns the refreshed Product or ProductVariant.
    """
    if isinstance(quantity_delta, bool):
        raise InvalidStateError("quantity_delta must be an integer")
    try:
        delta = int(quantity_delta)
    except (TypeError, ValueError) as exc:
        raise InvalidStateError("quantity_delta must be an integer") from exc
    if delta == 0:
        raise InvalidStateError("quantity_delta cannot be 0")

    product = _get_product(getattr(product, "pk", product), lock=True)

    if variant is not None:
        variant = _get_variant(product, getattr(variant, "pk", variant))
        model, pk, scope, label = ProductVariant, variant.pk, {"product_id": product.pk}, _label(product, variant)
    else:
        if product.has_variants:
            raise InvalidStateError(f"{product.name} has variants; adjust a specific variant")
        model, pk, scope, label = Product, product.pk, {}, _label(product)

    if delta > 0:
        _increment(model, pk=pk, quantity=delta, **scope)
    elif not _conditional_decrement(model, pk=pk, quantity=-delta, **scope):
        current = model.objects.filter(pk=pk).values_list("inventory", flat=True).first() or 0
        raise InsufficientInventoryError(
            [_shortfall_reason(label=label, requested=-delta, available=int(current))],
            message="Stock adjustment would result in negative stock",
        )

    if variant is not None:
        sync_aggregate_inventory(product)
        variant.refresh_from_db()
        return variant

    product.refresh_from_db()
    return product

# orders/services/snapshot_resolver.py

"""
======================================================
PATH: orders/services/snapshot_resolver.py
======================================================
CART SNAPSHOT RESOLVER

Purpose:
- Turn cart lines (or a caller-supplied item list) into order-item candidates
  carrying immutable display data and server-owned prices.

Rules:
- All referenced products are fetched in ONE batched query (variants prefetched).
- A variant is looked up inside its product; absent -> VariantNotFoundError.
- Variant price override beats the product base price.
- Variant size / color beat whatever the cart line snapshotted.
- Caller-supplied prices are never read.
- line_total = quantity x unit_price.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable
from uuid import UUID

from common.exceptions import InvalidStateError, ProductNotFoundError, VariantNotFoundError
from common.money import money, parse_uuid, to_int_qty
from products.models import Product


@dataclass(frozen=True)
class OrderItemCandidate:
    product_id: UUID
    variant_id: UUID | None
    product_name: str
    product_image: str
    sku: str
    size: str
    color: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal


@dataclass(frozen=True)
class _Line:
    product_id: object
    variant_id: object
    quantity: int
    size: str = ""
    color: str = ""
    label: str = ""


def _require_qty(value) -> int:
    try:
        qty = to_int_qty(value)
    except ValueError as exc:
        raise InvalidStateError(str(exc)) from exc
    if qty < 1:
        raise InvalidStateError("quantity must be at least 1")
    return qty


def _resolve(lines: list[_Line]) -> list[OrderItemCandidate]:
    ids = {parse_uuid(line.product_id) for line in lines}
    ids.discard(None)

    products = {
        p.id: p
        for p in Product.objects.filter(id__in=ids, is_active=True).prefetch_related("variants")
    }

    candidates: list[OrderItemCandidate] = []
    for line in lines:
        product = products.get(parse_uuid(line.product_id))
        if product is None:
            raise ProductNotFoundError(f"Product {line.label or line.product_id} not found")

        unit_price = money(product.price)
        size, color, sku = line.size, line.color, ""
        variant_id = None

        if line.variant_id:
            vid = parse_uuid(line.variant_id)
            variant = next((v for v in product.variants.all() if v.id == vid), None)
            if variant is None:
                raise VariantNotFoundError(f"variant not found for product {product.name}")

            variant_id = variant.id
            sku = variant.sku
            if variant.price is not None:
                unit_price = money(variant.price)
            size = variant.size or size
            color = variant.color or color

        candidates.append(
            OrderItemCandidate(
                product_id=product.id,
                variant_id=variant_id,
                product_name=product.name,
                product_image=product.primary_image,
                sku=sku,
                size=(size or "").strip().upper(),
                color=(color or "").strip().lower(),
                quantity=line.quantity,
                unit_price=unit_price,
                line_total=money(unit_price * line.quantity),
            )
        )

    return candidates


def resolve_cart_items(cart_items: Iterable) -> list[OrderItemCandidate]:
    """
    Cart lines -> candidates. A line whose product was deleted (product_id NULL)
    is reported by its name snapshot.
    """
    lines = [
        _Line(
            product_id=item.product_id,
            variant_id=item.variant_id,
            quantity=_require_qty(item.quantity),
            size=item.size,
            color=item.color,
            label=item.product_name,
        )
        for item in cart_items
    ]
    return _resolve(lines)


def resolve_requested_items(items: Iterable[dict]) -> list[OrderItemCandidate]:
    """
    Ad-hoc item list -> candidates. Expects dicts with product_id, quantity and
    optional variant_id / size / color. Any price keys are ignored.
    """
    lines = []
    for idx, raw in enumerate(items):
        if not raw or not raw.get("product_id"):
            raise InvalidStateError(f"items[{idx}].product_id is required")
        lines.append(
            _Line(
                product_id=raw.get("product_id"),
                variant_id=raw.get("variant_id"),
                quantity=_require_qty(raw.get("quantity")),
                size=raw.get("size") or "",
                color=raw.get("color") or "",
            )
        )
    return _resolve(lines)

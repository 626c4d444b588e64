# orders/services/order_service.py

"""
======================================================
PATH: orders/services/order_service.py
======================================================
ORDER TRANSACTION MANAGER

Purpose:
- The atomic create-order workflow, and order reads / inventory restore.
- Reorder (past order lines back into the cart) and the open-order count.

create_order() pipeline (ONE transaction.atomic block, cart row locked):
1. Resolve candidates from the cart (snapshot resolver) or from an item list.
2. Validate availability for every candidate; ALL shortfalls are reported together.
3. Reserve inventory (ledger, conditional decrements).
4. Compute totals: subtotal = sum(line_total),
   total = max(0, subtotal + tax + shipping - discount).
5. Persist Order (pending / pending) + OrderItems.
6. Delete the source cart.
7. Commit. Any failure after step 3 rolls back the decrements with everything else.

Failures surface as InvalidStateError / NotFoundError / InsufficientInventoryError /
UnknownOrderError (unexpected DatabaseError), each with a stable code.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from carts.models import Cart, UserOwner
from carts.services import cart_service
from common.exceptions import (
    InsufficientInventoryError,
    InvalidStateError,
    NotFoundError,
    OrderNotFoundError,
    StorefrontError,
    UnknownOrderError,
)
from common.money import ZERO, money, parse_uuid
from orders.models import Order, OrderItem
from orders.services import notifications
from orders.services.order_numbers import generate_order_number
from orders.services.snapshot_resolver import (
    OrderItemCandidate,
    resolve_cart_items,
    resolve_requested_items,
)
from products.services import inventory

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


# ============================================================
# REQUEST / RESULT TYPES
# ============================================================

@dataclass(frozen=True)
class ShippingAddress:
    street: str
    city: str
    state: str
    zip_code: str
    country: str
    recipient_name: str
    recipient_phone: str

    REQUIRED = ("street", "city", "state", "zip_code", "country", "recipient_name", "recipient_phone")

    @classmethod
    def from_dict(cls, data) -> "ShippingAddress":
        if not data:
            raise InvalidStateError("Shipping address is required")

        values = {name: str(data.get(name) or "").strip() for name in cls.REQUIRED}
        missing = [name for name, value in values.items() if not value]
        if missing:
            raise InvalidStateError(
                "Shipping address is incomplete",
                details=[f"{name} is required" for name in missing],
            )
        return cls(**values)

    def as_model_fields(self) -> dict:
        return {f"shipping_{name}": getattr(self, name) for name in self.REQUIRED}


@dataclass
class CreateOrderRequest:
    user: object
    shipping_address: dict | ShippingAddress | None
    payment_method: str = Order.METHOD_CARD
    cart_id: object = None
    items: list[dict] | None = None
    tax: Decimal | str | int = ZERO
    shipping: Decimal | str | int = ZERO
    discount: Decimal | str | int = ZERO
    notes: str = ""


@dataclass
class OrderPage:
    orders: list = field(default_factory=list)
    total: int = 0
    page_count: int = 0
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE


# ============================================================
# HELPERS
# ============================================================

def _non_negative_money(value, *, field_name: str) -> Decimal:
    try:
        amount = money(value)
    except ValueError as exc:
        raise InvalidStateError(f"{field_name} must be a valid amount") from exc
    if amount < ZERO:
        raise InvalidStateError(f"{field_name} cannot be negative")
    return amount


def _validate_payment_method(method) -> str:
    m = (method or Order.METHOD_CARD).strip().lower()
    if m not in dict(Order.PAYMENT_METHOD_CHOICES):
        raise InvalidStateError(f"Unsupported payment method: {m}")
    return m


def _resolve_candidates(request: CreateOrderRequest, *, user_id) -> tuple[list[OrderItemCandidate], Cart | None]:
    if request.cart_id:
        cid = parse_uuid(request.cart_id)
        cart = (
            Cart.objects.select_for_update()
            .for_owner(UserOwner(user_id=user_id))
            .filter(id=cid)
            .first()
            if cid is not None
            else None
        )
        if cart is None:
            raise InvalidStateError("cart not found or empty")

        cart_items = list(cart.items.all())
        if not cart_items:
            raise InvalidStateError("cart not found or empty")

        return resolve_cart_items(cart_items), cart

    if request.items:
        return resolve_requested_items(request.items), None

    raise InvalidStateError("Either a cart or a list of items is required")


def _raise_invalid(exc: ValidationError):
    details = []
    if hasattr(exc, "message_dict"):
        for name, messages in exc.message_dict.items():
            details.extend(f"{name}: {m}" for m in messages)
    else:
        details.extend(exc.messages)
    raise InvalidStateError("Order data is invalid", details=details) from exc


# ============================================================
# CREATE
# ============================================================

@transaction.atomic
def _create_order_atomic(request: CreateOrderRequest) -> Order:
    user = request.user
    user_id = getattr(user, "pk", None) or parse_uuid(user)
    if user_id is None:
        raise InvalidStateError("An authenticated user is required to place an order")

    address = (
        request.shipping_address
        if isinstance(request.shipping_address, ShippingAddress)
        else ShippingAddress.from_dict(request.shipping_address)
    )
    payment_method = _validate_payment_method(request.payment_method)
    tax = _non_negative_money(request.tax, field_name="tax")
    shipping = _non_negative_money(request.shipping, field_name="shipping")
    discount = _non_negative_money(request.discount, field_name="discount")

    # 1. candidates
    candidates, cart = _resolve_candidates(request, user_id=user_id)

    # 2. availability (all failures at once)
    reasons = inventory.validate_availability(candidates)
    if reasons:
        raise InsufficientInventoryError(reasons)

    # 3. reservation
    inventory.reserve(candidates)

    # 4. totals
    subtotal = money(sum((c.line_total for c in candidates), ZERO))
    total = money(Order.calculate_total(subtotal=subtotal, tax=tax, shipping=shipping, discount=discount))

    # 5. persist
    order = Order(
        user_id=user_id,
        order_number=generate_order_number(),
        subtotal_amount=subtotal,
        tax_amount=tax,
        shipping_amount=shipping,
        discount_amount=discount,
        total_amount=total,
        status=Order.STATUS_PENDING,
        payment_status=Order.PAYMENT_PENDING,
        payment_method=payment_method,
        notes=(request.notes or "").strip(),
        **address.as_model_fields(),
    )
    try:
        order.full_clean()
        order.save()

        for c in candidates:
            OrderItem.objects.create(
                order=order,
                product_id=c.product_id,
                variant_id=c.variant_id,
                product_name=c.product_name,
                product_image=c.product_image,
                sku=c.sku,
                size=c.size,
                color=c.color,
                quantity=c.quantity,
                unit_price=c.unit_price,
                line_total=c.line_total,
            )
    except ValidationError as exc:
        _raise_invalid(exc)

    # 6. source cart is gone
    if cart is not None:
        cart.delete()

    notifications.notify_order_created(order)
    return order


def create_order(request: CreateOrderRequest) -> Order:
    """
    Create an order atomically. Raises a StorefrontError subclass on failure;
    nothing is persisted in that case.
    """
    try:
        order = _create_order_atomic(request)
    except StorefrontError as exc:
        logger.warning(
            "Order creation failed",
            extra={"code": exc.code, "error": exc.message, "details": exc.details},
        )
        raise
    except DatabaseError as exc:
        logger.exception("Order creation failed on storage error")
        raise UnknownOrderError("Failed to create order") from exc

    logger.info(
        "Order created",
        extra={"order_id": str(order.id), "order_number": order.order_number, "total": str(order.total_amount)},
    )
    return order


# ============================================================
# READ
# ============================================================

def _order_qs():
    return Order.objects.select_related("user").prefetch_related("items")


def get_order_by_id(order_id, owner_id=None) -> Order | None:
    """
    Order by id (or by order number). With owner_id, another user's order reads as None.
    """
    qs = _order_qs()
    oid = parse_uuid(order_id)
    if oid is not None:
        qs = qs.filter(id=oid)
    else:
        qs = qs.filter(order_number=str(order_id or "").strip().upper())

    if owner_id is not None:
        qs = qs.filter(user_id=owner_id)

    return qs.first()


def paginate_orders(qs, *, page=1, page_size=DEFAULT_PAGE_SIZE) -> OrderPage:
    try:
        page = max(1, int(page or 1))
        page_size = min(MAX_PAGE_SIZE, max(1, int(page_size or DEFAULT_PAGE_SIZE)))
    except (TypeError, ValueError) as exc:
        raise InvalidStateError("page and page_size must be integers") from exc

    total = qs.count()
    offset = (page - 1) * page_size
    return OrderPage(
        orders=list(qs[offset:offset + page_size]),
        total=total,
        page_count=math.ceil(total / page_size) if total else 0,
        page=page,
        page_size=page_size,
    )


def get_orders_for_owner(owner_id, page=1, page_size=DEFAULT_PAGE_SIZE, *, status=None) -> OrderPage:
    qs = _order_qs().filter(user_id=owner_id)
    if status:
        qs = qs.filter(status=status)
    return paginate_orders(qs.order_by("-created_at"), page=page, page_size=page_size)


# ============================================================
# INVENTORY RESTORE
# ============================================================

def restore_once(order: Order) -> bool:
    """
    Ledger restore guarded by inventory_restored_at. Caller holds the order row lock.
    Returns False when the order was already restored.
    """
    if order.inventory_restored_at is not None:
        logger.info("Inventory already restored", extra={"order_id": str(order.id)})
        return False

    inventory.restore(order)
    order.inventory_restored_at = timezone.now()
    order.save(update_fields=["inventory_restored_at", "updated_at"])
    return True


@transaction.atomic
def restore_inventory(order_id) -> Order:
    oid = parse_uuid(order_id)
    order = Order.objects.select_for_update().filter(id=oid).first() if oid is not None else None
    if order is None:
        raise OrderNotFoundError(f"Order {order_id} not found")

    restore_once(order)
    return order


# ============================================================
# OPEN ORDERS
# ============================================================

OPEN_STATUSES = (Order.STATUS_CONFIRMED, Order.STATUS_PROCESSING)


def count_open_orders(owner_id) -> int:
    """
    Orders that are paid for / accepted but not yet shipped.
    """
    return Order.objects.filter(user_id=owner_id, status__in=OPEN_STATUSES).count()


# ============================================================
# REORDER
# ============================================================

@dataclass
class ReorderResult:
    cart: Cart
    added_items: int = 0
    unavailable_items: list[dict] = field(default_factory=list)

    @property
    def message(self) -> str:
        msg = f"{self.added_items} items added to cart"
        if self.unavailable_items:
            msg += f". {len(self.unavailable_items)} items were not available."
        return msg


def _reorder_line(cart: Cart, item: OrderItem) -> int | None:
    """
    Put one past order line back into the cart at today's price.
    Returns None when added, otherwise the quantity currently available.
    """
    if item.product_id is None:
        return 0

    try:
        check = inventory.check_availability(
            product_id=item.product_id,
            quantity=item.quantity,
            variant_id=item.variant_id,
        )
    except NotFoundError:
        return 0
    if not check.available:
        return check.max_quantity

    try:
        cart_service.add_item(cart, product_id=item.product_id, quantity=item.quantity, variant_id=item.variant_id)
    except NotFoundError:
        # inactive product
        return 0
    except StorefrontError as exc:
        logger.info(
            "Reorder line not added",
            extra={"order_item_id": str(item.id), "code": exc.code, "error": exc.message},
        )
        return check.max_quantity
    return None


@transaction.atomic
def reorder(order_id, user) -> ReorderResult:
    """
    Copy a past order's lines into the caller's cart.

    Lines that cannot be added (gone, out of stock, over the line limit) are
    reported with the quantity available now. When nothing could be added the
    cart is left untouched and InvalidStateError carries the report.
    """
    user_id = getattr(user, "pk", None) or parse_uuid(user)
    order = get_order_by_id(order_id, owner_id=user_id) if user_id is not None else None
    if order is None:
        raise OrderNotFoundError(f"Order {order_id} not found")

    cart = cart_service.get_or_create_cart(UserOwner(user_id=user_id))
    result = ReorderResult(cart=cart)

    for item in order.items.all():
        available = _reorder_line(cart, item)
        if available is None:
            result.added_items += 1
            continue
        result.unavailable_items.append(
            {
                "name": item.product_name,
                "requested_quantity": int(item.quantity),
                "available_quantity": int(available),
            }
        )

    if not result.added_items:
        raise InvalidStateError(
            "None of the items from this order are currently available",
            details=[
                f"{u['name']}: requested {u['requested_quantity']}, available {u['available_quantity']}"
                for u in result.unavailable_items
            ],
        )

    cart.refresh_from_db()
    logger.info(
        "Order reordered into cart",
        extra={
            "order_id": str(order.id),
            "cart_id": str(cart.id),
            "added": result.added_items,
            "unavailable": len(result.unavailable_items),
        },
    )
    return result

# orders/services/order_lifecycle.py

"""
======================================================
PATH: orders/services/order_lifecycle.py
======================================================
ORDER STATUS STATE MACHINE

Fulfilment chain:
    pending -> confirmed -> processing -> shipped -> delivered

Side exits:
    pending | confirmed | processing -> cancelled
    delivered -> returned

Actors:
- customer : may only cancel, and only while pending or confirmed
- staff / admin : may walk the chain one step at a time and use the side exits

Rules:
- cancelled and returned are terminal.
- Re-entering the current status is a no-op (timestamps are not re-stamped), for
  statuses the actor could enter at all: a customer re-posting "shipped" is refused.
- cancelled requires a non-blank reason.
- delivered_at / cancelled_at are stamped on first entry only.
- First entry into cancelled restores inventory (guarded by inventory_restored_at).

Payment status is tracked separately:
    pending -> paid | failed
    failed  -> paid | failed      (gateway retry)
    paid    -> refunded | partially_refunded
    partially_refunded -> refunded
A pending order becomes confirmed when its payment is marked paid.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from common.exceptions import InvalidStateError, InvalidStatusTransitionError, OrderNotFoundError
from common.money import parse_uuid
from orders.models import Order
from orders.services import notifications
from orders.services.order_service import restore_once
from users.models import User

logger = logging.getLogger(__name__)


# ============================================================
# TRANSITION TABLES
# ============================================================

STAFF_TRANSITIONS = {
    Order.STATUS_PENDING: {Order.STATUS_CONFIRMED, Order.STATUS_CANCELLED},
    Order.STATUS_CONFIRMED: {Order.STATUS_PROCESSING, Order.STATUS_CANCELLED},
    Order.STATUS_PROCESSING: {Order.STATUS_SHIPPED, Order.STATUS_CANCELLED},
    Order.STATUS_SHIPPED: {Order.STATUS_DELIVERED},
    Order.STATUS_DELIVERED: {Order.STATUS_RETURNED},
    Order.STATUS_CANCELLED: set(),
    Order.STATUS_RETURNED: set(),
}

CUSTOMER_TRANSITIONS = {
    Order.STATUS_PENDING: {Order.STATUS_CANCELLED},
    Order.STATUS_CONFIRMED: {Order.STATUS_CANCELLED},
}

PAYMENT_TRANSITIONS = {
    Order.PAYMENT_PENDING: {Order.PAYMENT_PAID, Order.PAYMENT_FAILED},
    Order.PAYMENT_FAILED: {Order.PAYMENT_PAID, Order.PAYMENT_FAILED},
    Order.PAYMENT_PAID: {Order.PAYMENT_REFUNDED, Order.PAYMENT_PARTIALLY_REFUNDED},
    Order.PAYMENT_PARTIALLY_REFUNDED: {Order.PAYMENT_REFUNDED},
    Order.PAYMENT_REFUNDED: set(),
}


def _enterable(table: dict) -> set:
    return set().union(*table.values())


def is_legal_transition(from_status: str, to_status: str, actor_role: str) -> bool:
    """
    Whether `actor_role` may move an order from `from_status` to `to_status`.

    Re-entering the current status is a legal no-op, but only for a status the
    role could have moved the order into in the first place.
    """
    if actor_role in User.STAFF_ROLES:
        table = STAFF_TRANSITIONS
    elif actor_role == User.ROLE_CUSTOMER:
        table = CUSTOMER_TRANSITIONS
    else:
        return False

    if to_status not in STAFF_TRANSITIONS:
        return False
    if from_status == to_status:
        return to_status in _enterable(table)

    return to_status in table.get(from_status, set())


def is_legal_payment_transition(from_status: str, to_status: str) -> bool:
    return to_status in PAYMENT_TRANSITIONS.get(from_status, set())


# ============================================================
# HELPERS
# ============================================================

def _lock_order(order_id, *, owner_id=None) -> Order:
    oid = parse_uuid(order_id)
    qs = Order.objects.select_for_update().filter(id=oid) if oid is not None else Order.objects.none()
    if owner_id is not None:
        qs = qs.filter(user_id=owner_id)

    order = qs.first()
    if order is None:
        raise OrderNotFoundError(f"Order {order_id} not found")
    return order


# ============================================================
# ORDER STATUS
# ============================================================

@transaction.atomic
def update_order_status(
    order_id,
    new_status: str,
    *,
    cancel_reason: str | None = None,
    actor_role: str = User.ROLE_ADMIN,
    owner_id=None,
    tracking_number: str | None = None,
) -> Order:
    """
    Move an order to `new_status` on behalf of `actor_role`.

    owner_id scopes the lookup (customers only ever see their own orders).
    Raises InvalidStateError (missing reason / unknown status),
    InvalidStatusTransitionError (illegal move) or OrderNotFoundError.
    """
    new_status = (new_status or "").strip().lower()
    if new_status not in STAFF_TRANSITIONS:
        raise InvalidStateError(f"Unknown order status: {new_status or '(blank)'}")

    reason = (cancel_reason or "").strip()
    if new_status == Order.STATUS_CANCELLED and not reason:
        raise InvalidStateError("cancelReason is required when cancelling an order")

    order = _lock_order(order_id, owner_id=owner_id)
    from_status = order.status

    if not is_legal_transition(from_status, new_status, actor_role):
        logger.warning(
            "Illegal order status transition",
            extra={
                "order_id": str(order.id),
                "from_status": from_status,
                "to_status": new_status,
                "actor_role": actor_role,
            },
        )
        raise InvalidStatusTransitionError(
            f"Cannot change order status from {from_status} to {new_status}"
        )

    if from_status == new_status:
        return order

    now = timezone.now()
    order.status = new_status
    changed = ["status", "updated_at"]

    if new_status == Order.STATUS_DELIVERED and order.delivered_at is None:
        order.delivered_at = now
        changed.append("delivered_at")

    if new_status == Order.STATUS_SHIPPED and tracking_number:
        order.tracking_number = tracking_number.strip()
        changed.append("tracking_number")

    if new_status == Order.STATUS_CANCELLED:
        if order.cancelled_at is None:
            order.cancelled_at = now
            changed.append("cancelled_at")
        order.cancel_reason = reason
        changed.append("cancel_reason")

    order.save(update_fields=changed)

    if new_status == Order.STATUS_CANCELLED:
        restore_once(order)

    notifications.notify_status_changed(order, from_status=from_status)
    logger.info(
        "Order status updated",
        extra={
            "order_id": str(order.id),
            "from_status": from_status,
            "to_status": new_status,
            "actor_role": actor_role,
        },
    )
    return order


# ============================================================
# PAYMENT STATUS
# ============================================================

@transaction.atomic
def update_payment_status(order_id, new_status: str, *, reference: str | None = None, details: dict | None = None) -> Order:
    """
    Record a payment outcome. Marking a pending order paid also confirms it.
    """
    new_status = (new_status or "").strip().lower()
    if new_status not in PAYMENT_TRANSITIONS:
        raise InvalidStateError(f"Unknown payment status: {new_status or '(blank)'}")

    order = _lock_order(order_id)
    from_payment = order.payment_status

    if from_payment == new_status and new_status == Order.PAYMENT_PAID:
        # gateway redelivery
        return order

    if not is_legal_payment_transition(from_payment, new_status):
        raise InvalidStatusTransitionError(
            f"Cannot change payment status from {from_payment} to {new_status}"
        )

    order.payment_status = new_status
    changed = ["payment_status", "updated_at"]

    if reference:
        order.paystack_reference = reference
        changed.append("paystack_reference")
    if details:
        order.payment_details = dict(details)
        changed.append("payment_details")

    from_status = order.status
    if new_status == Order.PAYMENT_PAID:
        order.paid_at = timezone.now()
        changed.append("paid_at")
        if order.status == Order.STATUS_PENDING:
            order.status = Order.STATUS_CONFIRMED
            changed.append("status")

    order.save(update_fields=changed)

    if order.status != from_status:
        notifications.notify_status_changed(order, from_status=from_status)

    logger.info(
        "Order payment status updated",
        extra={"order_id": str(order.id), "from_payment": from_payment, "to_payment": new_status},
    )
    return order

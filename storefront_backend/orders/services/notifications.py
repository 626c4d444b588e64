# orders/services/notifications.py

"""
ORDER NOTIFICATION HOOK (fire-and-forget)

Called after the surrounding transaction commits. Delivery (email/SMS queue)
lives outside the order core; when ORDERS["NOTIFICATION_HOOK"] names a callable
it receives (event, payload). Failures are logged and never reach the caller.
"""

from __future__ import annotations

import logging
from functools import partial

from django.conf import settings
from django.db import transaction
from django.utils.module_loading import import_string

logger = logging.getLogger(__name__)

EVENT_ORDER_CREATED = "order.created"
EVENT_STATUS_CHANGED = "order.status_changed"


def _hook():
    path = (getattr(settings, "ORDERS", {}) or {}).get("NOTIFICATION_HOOK") or ""
    return import_string(path) if path else None


def dispatch(event: str, payload: dict) -> None:
    try:
        hook = _hook()
        logger.info("Order notification", extra={"event": event, **payload})
        if hook is not None:
            hook(event, payload)
    except Exception:
        logger.exception("Order notification failed", extra={"event": event, **payload})


def notify_order_created(order) -> None:
    payload = {
        "order_id": str(order.id),
        "order_number": order.order_number,
        "user_id": str(order.user_id),
    }
    transaction.on_commit(partial(dispatch, EVENT_ORDER_CREATED, payload))


def notify_status_changed(order, *, from_status: str) -> None:
    payload = {
        "order_id": str(order.id),
        "order_number": order.order_number,
        "from_status": from_status,
        "to_status": order.status,
    }
    transaction.on_commit(partial(dispatch, EVENT_STATUS_CHANGED, payload))

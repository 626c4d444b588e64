# orders/services/order_numbers.py

"""
Human-facing order numbers: <PREFIX>-YYYYMMDD-NNNNNN (6 random digits).

Uniqueness is finally enforced by the unique index on Order.order_number; the
existence check here only avoids a pointless IntegrityError on the rare collision.
"""

from __future__ import annotations

import secrets

from django.conf import settings
from django.utils import timezone

from orders.models import Order

MAX_ATTEMPTS = 5


def _prefix() -> str:
    return str((getattr(settings, "ORDERS", {}) or {}).get("ORDER_NUMBER_PREFIX", "ORD")).strip().upper() or "ORD"


def build_order_number(*, now=None) -> str:
    now = now or timezone.now()
    return f"{_prefix()}-{now.strftime('%Y%m%d')}-{secrets.randbelow(10**6):06d}"


def generate_order_number(*, now=None) -> str:
    candidate = build_order_number(now=now)
    for _ in range(MAX_ATTEMPTS - 1):
        if not Order.objects.filter(order_number=candidate).exists():
            break
        candidate = build_order_number(now=now)
    return candidate

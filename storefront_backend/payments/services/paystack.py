# payments/services/paystack.py

"""
PAYSTACK HELPERS

Config:
- settings.PAYMENTS["PAYSTACK"]["SECRET_KEY"], falling back to the
  PAYSTACK_SECRET_KEY environment variable.

Amounts on the wire are integer kobo (1/100 of the currency unit).
"""

from __future__ import annotations

import hashlib
import hmac
import os

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from common.money import money


def _paystack_cfg() -> dict:
    payments = getattr(settings, "PAYMENTS", {}) or {}
    cfg = payments.get("PAYSTACK") if isinstance(payments, dict) else None
    return cfg if isinstance(cfg, dict) else {}


def get_secret_key() -> str:
    sk = (_paystack_cfg().get("SECRET_KEY") or "").strip()
    if not sk:
        sk = (os.environ.get("PAYSTACK_SECRET_KEY") or "").strip()

    if not sk:
        raise ImproperlyConfigured(
            "PAYSTACK SECRET_KEY is not configured. "
            "Expected settings.PAYMENTS['PAYSTACK']['SECRET_KEY'] or env PAYSTACK_SECRET_KEY."
        )
    return sk


def to_kobo(amount) -> int:
    """
    Order amount -> integer kobo. Raises ValueError for anything that is not a finite amount.
    """
    return int(money(amount) * 100)


def verify_paystack_signature(*, raw_body: bytes, signature: str | None) -> bool:
    """
    HMAC-SHA512 of the raw request body with the secret key, compared in constant time.
    """
    if not signature:
        return False
    sk = get_secret_key().encode("utf-8")
    computed = hmac.new(sk, raw_body or b"", hashlib.sha512).hexdigest()
    return hmac.compare_digest(computed, str(signature).strip())

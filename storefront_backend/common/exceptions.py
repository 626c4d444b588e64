# common/exceptions.py

"""
STOREFRONT DOMAIN ERRORS

Centralized error taxonomy shared by the inventory ledger, cart service and the
order core. Every error carries a stable `code` so the API layer can render
distinct messaging per kind.

Kinds:
- invalid_state              : malformed / incomplete request
- not_found                  : product, variant, order or cart does not exist
- insufficient_inventory     : one or more lines exceed stock (itemized reasons)
- invalid_status_transition  : order status change not permitted
- unknown                    : unexpected persistence failure
"""

from __future__ import annotations


class StorefrontError(Exception):
    """Base exception for all storefront domain failures."""

    code = "unknown"
    default_message = "Storefront operation failed"

    def __init__(self, message: str | None = None, *, details: list[str] | None = None):
        self.message = message or self.default_message
        self.details = list(details or [])
        super().__init__(self.message)

    def as_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "details": self.details}


class InvalidStateError(StorefrontError):
    """Raised when a request is malformed or incomplete."""

    code = "invalid_state"
    default_message = "Invalid request"


class NotFoundError(StorefrontError):
    """Raised when a referenced entity does not exist."""

    code = "not_found"
    default_message = "Not found"


class ProductNotFoundError(NotFoundError):
    default_message = "Product not found"


class VariantNotFoundError(NotFoundError):
    default_message = "Product variant not found"


class CartNotFoundError(NotFoundError):
    default_message = "Cart not found"


class OrderNotFoundError(NotFoundError):
    default_message = "Order not found"


class InsufficientInventoryError(StorefrontError):
    """
    Raised when one or more lines exceed available stock.

    `reasons` lists every offending line, each stating the exact remaining quantity.
    """

    code = "insufficient_inventory"
    default_message = "Insufficient inventory"

    def __init__(self, reasons: list[str], message: str | None = None):
        self.reasons = list(reasons)
        super().__init__(message or self.default_message, details=self.reasons)


class InvalidStatusTransitionError(StorefrontError):
    """Raised when an order status change is not permitted from the current state."""

    code = "invalid_status_transition"
    default_message = "Invalid status transition"


class UnknownOrderError(StorefrontError):
    """Raised on unexpected persistence / storage failures."""

    code = "unknown"
    default_message = "Unexpected storage failure"

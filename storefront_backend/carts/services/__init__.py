from .cart_service import (
    CartValidationResult,
    add_item,
    clear_cart,
    get_cart,
    get_or_create_cart,
    purge_expired_carts,
    recompute_totals,
    remove_item,
    update_item_quantity,
    validate_cart,
)

__all__ = [
    "CartValidationResult",
    "add_item",
    "clear_cart",
    "get_cart",
    "get_or_create_cart",
    "purge_expired_carts",
    "recompute_totals",
    "remove_item",
    "update_item_quantity",
    "validate_cart",
]

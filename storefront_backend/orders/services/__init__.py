from .order_lifecycle import (
    is_legal_payment_transition,
    is_legal_transition,
    update_order_status,
    update_payment_status,
)
from .order_service import (
    CreateOrderRequest,
    OrderPage,
    ReorderResult,
    ShippingAddress,
    count_open_orders,
    create_order,
    get_order_by_id,
    get_orders_for_owner,
    reorder,
    restore_inventory,
)

__all__ = [
    "CreateOrderRequest",
    "OrderPage",
    "ReorderResult",
    "ShippingAddress",
    "count_open_orders",
    "create_order",
    "get_order_by_id",
    "get_orders_for_owner",
    "is_legal_payment_transition",
    "is_legal_transition",
    "reorder",
    "restore_inventory",
    "update_order_status",
    "update_payment_status",
]

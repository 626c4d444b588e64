from .order import Order
from .order_item import OrderItem, line_total_tolerance

__all__ = [
    "Order",
    "OrderItem",
    "line_total_tolerance",
]

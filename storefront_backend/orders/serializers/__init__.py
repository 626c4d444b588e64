from .order import (
    CreateOrderInputSerializer,
    OrderItemSerializer,
    OrderLineInputSerializer,
    OrderSerializer,
    PaymentStatusInputSerializer,
    ShippingAddressSerializer,
    UpdateStatusInputSerializer,
)

__all__ = [
    "CreateOrderInputSerializer",
    "OrderItemSerializer",
    "OrderLineInputSerializer",
    "OrderSerializer",
    "PaymentStatusInputSerializer",
    "ShippingAddressSerializer",
    "UpdateStatusInputSerializer",
]

from .cart import (
    AddCartItemInputSerializer,
    CartItemSerializer,
    CartSerializer,
    CartValidationSerializer,
    UpdateCartItemInputSerializer,
)

__all__ = [
    "AddCartItemInputSerializer",
    "CartItemSerializer",
    "CartSerializer",
    "CartValidationSerializer",
    "UpdateCartItemInputSerializer",
]

from .owner import CartOwner, GuestOwner, UserOwner
from .cart import Cart
from .cart_item import CartItem, MAX_LINE_QUANTITY

__all__ = [
    "Cart",
    "CartItem",
    "CartOwner",
    "GuestOwner",
    "UserOwner",
    "MAX_LINE_QUANTITY",
]

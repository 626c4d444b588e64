from .api import CartItemDetailView, CartItemsView, CartView, ValidateCartView

__all__ = [
    "CartItemDetailView",
    "CartItemsView",
    "CartView",
    "ValidateCartView",
]

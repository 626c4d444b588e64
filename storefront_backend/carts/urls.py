"""
PATH: carts/urls.py

CART URLS

Mounted under /api/cart/.
"""

from django.urls import path

from carts.views import CartItemDetailView, CartItemsView, CartView, ValidateCartView

app_name = "carts"

urlpatterns = [
    path("", CartView.as_view(), name="cart"),
    path("items/", CartItemsView.as_view(), name="cart-items"),
    path("items/<uuid:item_id>/", CartItemDetailView.as_view(), name="cart-item"),
    path("validate/", ValidateCartView.as_view(), name="validate"),
]

# products/urls.py

"""
PRODUCTS URLS

Purpose:
- Register catalog routes under /api/products/
    /api/products/                       (AllowAny)
    /api/products/<id>/availability/     (AllowAny)
    /api/products/<id>/adjust-stock/     (staff)
    /api/products/categories/            (AllowAny)
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from products.views import CategoryViewSet, ProductViewSet

router = SimpleRouter()

router.register(r"categories", CategoryViewSet, basename="categories")
router.register(r"", ProductViewSet, basename="products")

urlpatterns = [
    path("", include(router.urls)),
]

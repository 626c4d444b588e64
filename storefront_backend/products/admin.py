# products/admin.py
"""
=====================================================
PATH: products/admin.py
=====================================================

Admin rules:

- Catalog fields (name, price, images, ...) are editable.
- Inventory counters are read-only here. Restocks and corrections go through
  the inventory ledger (adjust-stock endpoint) so every change is a conditional
  F() update.
- Adding or deleting variants in the inline re-derives the product aggregate
  (save_related).
"""

from __future__ import annotations

from django.contrib import admin

from products.models import Category, Product, ProductVariant
from products.services import inventory


# =====================================================
# CATEGORY
# =====================================================

@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "slug", "is_active")
    search_fields = ("name",)
    ordering = ("name",)


# =====================================================
# VARIANT INLINE
# =====================================================

class ProductVariantInline(admin.TabularInline):
    model = ProductVariant
    extra = 0

    fields = ("sku", "size", "color", "price", "inventory", "created_at")
    readonly_fields = ("inventory", "created_at")


# =====================================================
# PRODUCT
# =====================================================

@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "brand",
        "category",
        "price",
        "inventory",
        "is_active",
        "created_at",
    )
    list_filter = ("is_active", "category", "created_at")
    search_fields = ("name", "brand", "variants__sku")
    ordering = ("-created_at",)
    readonly_fields = ("inventory", "created_at", "updated_at")

    inlines = [ProductVariantInline]

    def save_related(self, request, form, formsets, change):
        """
        The variant inline creates and deletes variants directly, so the
        product aggregate is re-derived once the inline has been saved.
        """
        product = form.instance
        had_variants = product.has_variants
        super().save_related(request, form, formsets, change)
        inventory.resync_after_variant_change(product, had_variants=had_variants)

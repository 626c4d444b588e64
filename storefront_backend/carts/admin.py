from django.contrib import admin

from .models import Cart, CartItem


# =====================================================
# CART ITEM INLINE (READ-ONLY)
# =====================================================

class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0
    can_delete = False
    readonly_fields = (
        "product",
        "variant_id",
        "product_name",
        "size",
        "color",
        "quantity",
        "price",
        "line_total",
        "created_at",
    )

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "session_id", "item_count", "subtotal_amount", "expires_at", "updated_at")
    search_fields = ("user__email", "session_id")
    readonly_fields = ("user", "session_id", "item_count", "subtotal_amount", "expires_at", "created_at", "updated_at")
    ordering = ("-updated_at",)

    inlines = [CartItemInline]

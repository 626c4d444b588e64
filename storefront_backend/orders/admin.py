# orders/admin.py
"""
=====================================================
PATH: orders/admin.py
=====================================================

Admin rules:
- Orders and their items are read-only snapshots here.
- Status / payment changes go through the order state machine (API) so that
  timestamps, inventory restoration and notifications stay consistent.
"""

from django.contrib import admin

from orders.models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    readonly_fields = (
        "product",
        "variant_id",
        "product_name",
        "sku",
        "size",
        "color",
        "quantity",
        "unit_price",
        "line_total",
    )

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_number",
        "user",
        "status",
        "payment_status",
        "payment_method",
        "total_amount",
        "created_at",
    )
    list_filter = ("status", "payment_status", "payment_method", "created_at")
    search_fields = ("order_number", "user__email", "paystack_reference", "tracking_number")
    ordering = ("-created_at",)
    inlines = [OrderItemInline]

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

# orders/models/order.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models


class Order(models.Model):
    """
    Customer order.

    Key rules:
    - Created ONLY by orders.services.order_service.create_order (atomic with the
      inventory reservation and the source-cart delete).
    - Money is server authoritative: subtotal is recomputed from items,
      total = max(0, subtotal + tax + shipping - discount).
    - Status changes go through orders.services.order_lifecycle.
    - inventory_restored_at guards the ledger restore (at most once per order).
    """

    # ---------------- ORDER STATUS ----------------
    STATUS_PENDING = "pending"
    STATUS_CONFIRMED = "confirmed"
    STATUS_PROCESSING = "processing"
    STATUS_SHIPPED = "shipped"
    STATUS_DELIVERED = "delivered"
    STATUS_CANCELLED = "cancelled"
    STATUS_RETURNED = "returned"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_CONFIRMED, "Confirmed"),
        (STATUS_PROCESSING, "Processing"),
        (STATUS_SHIPPED, "Shipped"),
        (STATUS_DELIVERED, "Delivered"),
        (STATUS_CANCELLED, "Cancelled"),
        (STATUS_RETURNED, "Returned"),
    ]

    # ---------------- PAYMENT STATUS ----------------
    PAYMENT_PENDING = "pending"
    PAYMENT_PAID = "paid"
    PAYMENT_FAILED = "failed"
    PAYMENT_REFUNDED = "refunded"
    PAYMENT_PARTIALLY_REFUNDED = "partially_refunded"

    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PENDING, "Pending"),
        (PAYMENT_PAID, "Paid"),
        (PAYMENT_FAILED, "Failed"),
        (PAYMENT_REFUNDED, "Refunded"),
        (PAYMENT_PARTIALLY_REFUNDED, "Partially Refunded"),
    ]

    # ---------------- PAYMENT METHOD ----------------
    METHOD_CARD = "card"
    METHOD_BANK_TRANSFER = "bank_transfer"
    METHOD_WALLET = "wallet"
    METHOD_CASH_ON_DELIVERY = "cash_on_delivery"

    PAYMENT_METHOD_CHOICES = [
        (METHOD_CARD, "Card"),
        (METHOD_BANK_TRANSFER, "Bank Transfer"),
        (METHOD_WALLET, "Wallet"),
        (METHOD_CASH_ON_DELIVERY, "Cash on Delivery"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )

    order_number = models.CharField(max_length=32, unique=True)

    # Money fields (server authoritative)
    subtotal_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    shipping_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_PENDING)
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, default=METHOD_CARD)

    # Gateway data
    paystack_reference = models.CharField(max_length=100, blank=True, default="", db_index=True)
    payment_details = models.JSONField(default=dict, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    # Shipping address
    shipping_street = models.CharField(max_length=255)
    shipping_city = models.CharField(max_length=100)
    shipping_state = models.CharField(max_length=100)
    shipping_zip_code = models.CharField(max_length=20)
    shipping_country = models.CharField(max_length=100)
    shipping_recipient_name = models.CharField(max_length=120)
    shipping_recipient_phone = models.CharField(max_length=40)

    # Fulfilment
    tracking_number = models.CharField(max_length=100, blank=True, default="")
    estimated_delivery = models.DateField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)

    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancel_reason = models.TextField(blank=True, default="")

    notes = models.TextField(blank=True, default="")

    inventory_restored_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "created_at"], name="orders_orde_user_id_3e1c55_idx"),
            models.Index(fields=["status"], name="orders_orde_status_a8d2f1_idx"),
            models.Index(fields=["payment_status"], name="orders_orde_payment_4b0e97_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_amount__gte=0),
                name="order_total_non_negative",
            ),
            models.CheckConstraint(
                condition=(
                    models.Q(subtotal_amount__gte=0)
                    & models.Q(tax_amount__gte=0)
                    & models.Q(shipping_amount__gte=0)
                    & models.Q(discount_amount__gte=0)
                ),
                name="order_amounts_non_negative",
            ),
        ]

    @staticmethod
    def calculate_total(*, subtotal, tax, shipping, discount) -> Decimal:
        total = Decimal(subtotal) + Decimal(tax) + Decimal(shipping) - Decimal(discount)
        return max(Decimal("0.00"), total)

    def clean(self):
        expected = self.calculate_total(
            subtotal=self.subtotal_amount,
            tax=self.tax_amount,
            shipping=self.shipping_amount,
            discount=self.discount_amount,
        )
        if Decimal(self.total_amount) != expected:
            raise ValidationError({"total_amount": f"total must equal {expected}"})

    @property
    def shipping_address(self) -> dict:
        return {
            "street": self.shipping_street,
            "city": self.shipping_city,
            "state": self.shipping_state,
            "zip_code": self.shipping_zip_code,
            "country": self.shipping_country,
            "recipient_name": self.shipping_recipient_name,
            "recipient_phone": self.shipping_recipient_phone,
        }

    def __str__(self):
        return f"{self.order_number} | {self.total_amount} | {self.status}"

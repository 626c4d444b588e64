# payments/apps.py

"""
PAYMENTS APP CONFIG

Payment gateway seam for storefront orders:
- Paystack webhook (signature-verified) driving order payment status.
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"

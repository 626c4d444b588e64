# payments/urls.py
"""
PAYMENTS API URLS

Base path (mounted in backend/urls.py):
    /api/payments/

- POST /api/payments/paystack/webhook/
"""

from django.urls import path

from payments.views import PaystackWebhookView

app_name = "payments"

urlpatterns = [
    path("paystack/webhook/", PaystackWebhookView.as_view(), name="paystack-webhook"),
]

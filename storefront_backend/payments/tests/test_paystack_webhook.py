# payments/tests/test_paystack_webhook.py

import hashlib
import hmac
import json
from decimal import Decimal

from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from orders.models import Order
from orders.services import order_service
from orders.services.order_service import CreateOrderRequest
from orders.tests.test_order_service import SHIPPING
from payments.services.paystack import to_kobo, verify_paystack_signature
from products.models import Product
from products.services.inventory import adjust_stock
from users.models import User

SECRET = "sk_test_storefront"
URL = "/api/payments/paystack/webhook/"


def _sign(body: bytes) -> str:
    return hmac.new(SECRET.encode("utf-8"), body, hashlib.sha512).hexdigest()


@override_settings(PAYMENTS={"PAYSTACK": {"SECRET_KEY": SECRET}})
class PaystackSignatureTests(TestCase):
    def test_valid_signature(self):
        body = b'{"event": "charge.success"}'
        self.assertTrue(verify_paystack_signature(raw_body=body, signature=_sign(body)))

    def test_tampered_body_or_missing_signature(self):
        body = b'{"event": "charge.success"}'
        self.assertFalse(verify_paystack_signature(raw_body=body + b" ", signature=_sign(body)))
        self.assertFalse(verify_paystack_signature(raw_body=body, signature=None))

    def test_kobo_conversion(self):
        self.assertEqual(to_kobo(Decimal("30.55")), 3055)
        self.assertEqual(to_kobo("30"), 3000)

        with self.assertRaises(ValueError):
            to_kobo("NaN")


@override_settings(PAYMENTS={"PAYSTACK": {"SECRET_KEY": SECRET}})
class PaystackWebhookTests(TestCase):
    """
    GUARANTEES:
    - Unsigned / mis-signed payloads never touch an order
    - A successful charge marks the order paid and confirms it
    - Redelivery is harmless
    """

    def setUp(self):
        self.client = APIClient()
        user = User.objects.create_user(email="ada@example.com", password="pass12345")
        mug = Product.objects.create(name="Enamel Mug", price=Decimal("12.50"))
        adjust_stock(product=mug, quantity_delta=4)

        self.order = order_service.create_order(
            CreateOrderRequest(
                user=user,
                shipping_address=dict(SHIPPING),
                items=[{"product_id": mug.id, "quantity": 2}],
                shipping="5.00",
            )
        )

    def _post(self, event, *, status="success", amount=3000, reference=None, signature=None):
        payload = {
            "event": event,
            "data": {
                "reference": reference or self.order.order_number,
                "status": status,
                "amount": amount,
                "channel": "card",
            },
        }
        body = json.dumps(payload).encode("utf-8")
        return self.client.post(
            URL,
            data=body,
            content_type="application/json",
            HTTP_X_PAYSTACK_SIGNATURE=signature or _sign(body),
        )

    def test_invalid_signature_is_400(self):
        res = self._post("charge.success", signature="not-a-signature")

        self.assertEqual(res.status_code, 400)
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, Order.PAYMENT_PENDING)

    def test_charge_success_marks_paid_and_confirms(self):
        res = self._post("charge.success")

        self.assertEqual(res.status_code, 200)
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, Order.PAYMENT_PAID)
        self.assertEqual(self.order.status, Order.STATUS_CONFIRMED)
        self.assertIsNotNone(self.order.paid_at)
        self.assertEqual(self.order.paystack_reference, self.order.order_number)

    def test_redelivered_success_is_acknowledged(self):
        self._post("charge.success")
        self.order.refresh_from_db()
        paid_at = self.order.paid_at

        res = self._post("charge.success")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["detail"], "Already paid")
        self.order.refresh_from_db()
        self.assertEqual(self.order.paid_at, paid_at)

    def test_amount_mismatch_marks_failed(self):
        with self.assertLogs("payments.views.paystack_webhook", level="ERROR"):
            res = self._post("charge.success", amount=100)

        self.assertEqual(res.status_code, 200)
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, Order.PAYMENT_FAILED)
        self.assertEqual(self.order.status, Order.STATUS_PENDING)
        self.assertEqual(self.order.payment_details["error"], "Amount mismatch")

    def test_charge_failed_marks_failed(self):
        res = self._post("charge.failed", status="failed")

        self.assertEqual(res.status_code, 200)
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, Order.PAYMENT_FAILED)

    def test_unknown_reference_is_404(self):
        res = self._post("charge.success", reference="ORD-19990101-000000")

        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.data["error"]["code"], "not_found")

    def test_other_events_are_acknowledged(self):
        res = self._post("transfer.success")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["detail"], "Event ignored")

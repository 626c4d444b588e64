# payments/views/paystack_webhook.py

"""
PAYSTACK WEBHOOK

POST /api/payments/paystack/webhook/

Flow:
1. Verify x-paystack-signature against the raw body (invalid -> 400).
2. Find the order by reference (order_number or stored paystack_reference).
   Unknown -> 404.
3. charge.success with data.status == "success" and a matching amount -> paid
   (the state machine confirms a pending order).
   charge.failed, a non-success status or an amount mismatch -> failed.
4. Any other event is acknowledged and ignored.

Redelivered success events for an already-paid order are acknowledged without changes.
"""

from __future__ import annotations

import logging

from django.db.models import Q
from rest_framework import status
from rest_framework.parsers import JSONParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.views import APIView

from common.api import domain_error_response
from common.exceptions import OrderNotFoundError, StorefrontError
from common.money import to_int_qty
from orders.models import Order
from orders.services import order_lifecycle
from payments.services.paystack import to_kobo, verify_paystack_signature

logger = logging.getLogger(__name__)

EVENT_CHARGE_SUCCESS = "charge.success"
EVENT_CHARGE_FAILED = "charge.failed"


class WebhookThrottle(AnonRateThrottle):
    scope = "webhook"


def _find_order(reference: str) -> Order | None:
    return (
        Order.objects.filter(Q(order_number=reference.upper()) | Q(paystack_reference=reference))
        .order_by("-created_at")
        .first()
    )


def _amount_matches(order: Order, data: dict) -> bool:
    try:
        paid_kobo = to_int_qty(data.get("amount"))
    except ValueError:
        logger.warning("Invalid kobo value received", extra={"amount": data.get("amount")})
        return False
    return paid_kobo == to_kobo(order.total_amount)


class PaystackWebhookView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    parser_classes = [JSONParser]
    throttle_classes = [WebhookThrottle]

    def post(self, request, *args, **kwargs):
        raw_body = getattr(request, "body", b"") or b""
        signature = request.headers.get("x-paystack-signature")

        if not verify_paystack_signature(raw_body=raw_body, signature=signature):
            logger.warning("Invalid Paystack signature")
            return Response({"ok": False, "detail": "Invalid signature"}, status=status.HTTP_400_BAD_REQUEST)

        payload = request.data or {}
        event = str(payload.get("event") or "").strip()
        data = payload.get("data") or {}
        reference = str(data.get("reference") or "").strip()

        logger.info("Paystack webhook received", extra={"event": event, "reference": reference})

        if event not in (EVENT_CHARGE_SUCCESS, EVENT_CHARGE_FAILED):
            return Response({"ok": True, "detail": "Event ignored"}, status=status.HTTP_200_OK)

        if not reference:
            logger.warning("Webhook received without reference")
            return Response({"ok": True, "detail": "No reference"}, status=status.HTTP_200_OK)

        order = _find_order(reference)
        if order is None:
            logger.warning("Unknown payment reference", extra={"reference": reference})
            return domain_error_response(OrderNotFoundError(f"No order for reference {reference}"))

        if order.payment_status == Order.PAYMENT_PAID:
            logger.info("Duplicate webhook ignored", extra={"reference": reference})
            return Response({"ok": True, "detail": "Already paid"}, status=status.HTTP_200_OK)

        tx_status = str(data.get("status") or "").strip().lower()
        details = {"event": event, "gateway_status": tx_status, "channel": data.get("channel") or ""}

        if event == EVENT_CHARGE_SUCCESS and tx_status == "success" and _amount_matches(order, data):
            new_payment_status = Order.PAYMENT_PAID
        else:
            new_payment_status = Order.PAYMENT_FAILED
            if event == EVENT_CHARGE_SUCCESS and tx_status == "success":
                logger.error(
                    "Payment amount mismatch",
                    extra={"reference": reference, "paid": data.get("amount"), "expected": str(order.total_amount)},
                )
                details["error"] = "Amount mismatch"

        try:
            order_lifecycle.update_payment_status(
                order.id,
                new_payment_status,
                reference=reference,
                details=details,
            )
        except StorefrontError as exc:
            return domain_error_response(exc)

        logger.info(
            "Webhook processed",
            extra={"reference": reference, "order_id": str(order.id), "payment_status": new_payment_status},
        )
        return Response({"ok": True, "detail": "Processed"}, status=status.HTTP_200_OK)

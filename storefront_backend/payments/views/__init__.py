from .paystack_webhook import PaystackWebhookView

__all__ = ["PaystackWebhookView"]

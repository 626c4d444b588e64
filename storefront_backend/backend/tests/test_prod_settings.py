# backend/tests/test_prod_settings.py

import importlib
import os
import sys
from unittest import mock

from django.core.exceptions import ImproperlyConfigured
from django.test import SimpleTestCase

from backend.settings import base

PROD_ENV = {
    "SECRET_KEY": "a-long-random-production-secret",
    "ALLOWED_HOSTS": "shop.example.com",
    "DATABASE_URL": "postgres://shop:secret@db:5432/shop",
    "CORS_ALLOWED_ORIGINS": "https://shop.example.com",
    "CSRF_TRUSTED_ORIGINS": "https://shop.example.com",
}


class ProdSettingsTests(SimpleTestCase):
    """
    GUARANTEES:
    - Production only boots with a real secret, hosts, https origins and Postgres
    - Row-lock waits are bounded on the production connection
    """

    def _load(self, **overrides):
        values = {**PROD_ENV, **overrides}
        values = {k: v for k, v in values.items() if v is not None}
        with mock.patch.dict(os.environ, values, clear=True), \
                mock.patch.dict(sys.modules), \
                mock.patch.object(base, "MIDDLEWARE", list(base.MIDDLEWARE)):
            sys.modules.pop("backend.settings.prod", None)
            return importlib.import_module("backend.settings.prod")

    def test_complete_environment_loads(self):
        prod = self._load()

        self.assertFalse(prod.DEBUG)
        self.assertEqual(prod.ALLOWED_HOSTS, ["shop.example.com"])
        self.assertTrue(prod.DATABASES["default"]["ENGINE"].endswith("postgresql"))
        self.assertEqual(prod.DATABASES["default"]["OPTIONS"]["options"], "-c lock_timeout=5000")
        self.assertEqual(prod.DATABASES["default"]["CONN_MAX_AGE"], 60)
        self.assertIn("whitenoise.middleware.WhiteNoiseMiddleware", prod.MIDDLEWARE)

    def test_live_middleware_is_untouched(self):
        self._load()

        self.assertNotIn("whitenoise.middleware.WhiteNoiseMiddleware", base.MIDDLEWARE)

    def test_missing_or_dev_secret_is_refused(self):
        for secret in (None, "dev-insecure-change-me"):
            with self.subTest(secret=secret), self.assertRaises(ImproperlyConfigured):
                self._load(SECRET_KEY=secret)

    def test_missing_hosts_are_refused(self):
        with self.assertRaises(ImproperlyConfigured):
            self._load(ALLOWED_HOSTS=None)

    def test_sqlite_is_refused(self):
        with self.assertRaisesMessage(ImproperlyConfigured, "Postgres"):
            self._load(DATABASE_URL="sqlite:////tmp/shop.sqlite3")

    def test_plain_http_origin_is_refused(self):
        with self.assertRaisesMessage(ImproperlyConfigured, "http://shop.example.com"):
            self._load(CORS_ALLOWED_ORIGINS="https://shop.example.com,http://shop.example.com")

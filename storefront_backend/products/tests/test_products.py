# products/tests/test_products.py

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase
from rest_framework.test import APIClient

from products.models import Category, Product, ProductVariant
from users.models import User


class ProductModelTests(TestCase):
    """
    Product / variant model tests.

    GUARANTEES:
    - Pricing is sane
    - Variant SKU is unique within its product
    - size / color / sku are normalized on save
    """

    def setUp(self):
        self.category = Category.objects.create(name="Shirts")
        self.product = Product.objects.create(
            name="Classic Tee",
            category=self.category,
            price=Decimal("90.00"),
            images=["https://cdn.example.com/tee-front.jpg", "https://cdn.example.com/tee-back.jpg"],
        )

    def test_category_slug_is_derived_from_name(self):
        self.assertEqual(self.category.slug, "shirts")

    def test_negative_price_is_rejected(self):
        with self.assertRaises(ValidationError):
            Product.objects.create(name="Broken", price=Decimal("-1.00"))

    def test_primary_image_is_first_image(self):
        self.assertEqual(self.product.primary_image, "https://cdn.example.com/tee-front.jpg")
        self.assertEqual(Product(name="No image", price=Decimal("1.00")).primary_image, "")

    def test_variant_fields_are_normalized(self):
        variant = ProductVariant.objects.create(product=self.product, sku="tee-m-blk", size=" m ", color="Black")

        self.assertEqual(variant.sku, "TEE-M-BLK")
        self.assertEqual(variant.size, "M")
        self.assertEqual(variant.color, "black")

    def test_variant_sku_unique_within_product(self):
        ProductVariant.objects.create(product=self.product, sku="TEE-S")

        with self.assertRaises(ValidationError):
            ProductVariant.objects.create(product=self.product, sku="tee-s")

        other = Product.objects.create(name="Other Tee", price=Decimal("10.00"))
        ProductVariant.objects.create(product=other, sku="TEE-S")

    def test_invalid_sku_is_rejected(self):
        with self.assertRaises(ValidationError):
            ProductVariant.objects.create(product=self.product, sku="a")

    def test_effective_price_prefers_variant_override(self):
        plain = ProductVariant.objects.create(product=self.product, sku="TEE-PLAIN")
        override = ProductVariant.objects.create(product=self.product, sku="TEE-PREMIUM", price=Decimal("100.00"))

        self.assertEqual(plain.effective_price, Decimal("90.00"))
        self.assertEqual(override.effective_price, Decimal("100.00"))


class ProductApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.product = Product.objects.create(name="Canvas Tote", price=Decimal("25.00"), inventory=3)
        self.hidden = Product.objects.create(name="Retired Tote", price=Decimal("25.00"), is_active=False)

    def test_public_list_only_shows_active_products(self):
        res = self.client.get("/api/products/")

        self.assertEqual(res.status_code, 200)
        names = [p["name"] for p in res.data["results"]]
        self.assertIn("Canvas Tote", names)
        self.assertNotIn("Retired Tote", names)

    def test_availability_endpoint(self):
        res = self.client.get(f"/api/products/{self.product.id}/availability/?quantity=3")
        self.assertEqual(res.status_code, 200)
        self.assertTrue(res.data["available"])

        res = self.client.get(f"/api/products/{self.product.id}/availability/?quantity=4")
        self.assertEqual(res.status_code, 200)
        self.assertFalse(res.data["available"])
        self.assertIn("Available: 3", res.data["reason"])

    def test_availability_for_missing_product_is_404(self):
        res = self.client.get("/api/products/00000000-0000-0000-0000-000000000000/availability/?quantity=1")

        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.data["error"]["code"], "not_found")

    def test_adjust_stock_requires_staff(self):
        customer = User.objects.create_user(email="shopper@example.com", password="pass12345")
        self.client.force_authenticate(user=customer)

        res = self.client.post(f"/api/products/{self.product.id}/adjust-stock/", {"quantity_delta": 5}, format="json")
        self.assertEqual(res.status_code, 403)

    def test_staff_can_adjust_stock(self):
        staff = User.objects.create_user(email="staff@example.com", password="pass12345", role=User.ROLE_STAFF)
        self.client.force_authenticate(user=staff)

        res = self.client.post(f"/api/products/{self.product.id}/adjust-stock/", {"quantity_delta": 5}, format="json")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["inventory"], 8)

        res = self.client.post(f"/api/products/{self.product.id}/adjust-stock/", {"quantity_delta": -20}, format="json")
        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["error"]["code"], "insufficient_inventory")

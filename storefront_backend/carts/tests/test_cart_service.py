# carts/tests/test_cart_service.py

from datetime import timedelta
from decimal import Decimal

from django.db import IntegrityError, transaction
from django.test import TestCase
from django.utils import timezone

from carts.models import Cart, GuestOwner, UserOwner
from carts.services import cart_service
from common.exceptions import (
    InsufficientInventoryError,
    InvalidStateError,
    NotFoundError,
    VariantNotFoundError,
)
from products.models import Product, ProductVariant
from products.services.inventory import adjust_stock
from users.models import User


class CartServiceTestBase(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(email="shopper@example.com", password="pass12345")
        self.owner = UserOwner(user_id=self.user.id)

        self.mug = Product.objects.create(
            name="Enamel Mug",
            price=Decimal("12.50"),
            images=["https://cdn.example.com/mug.jpg"],
        )
        adjust_stock(product=self.mug, quantity_delta=10)

        self.tee = Product.objects.create(name="Classic Tee", price=Decimal("90.00"))
        self.tee_black = ProductVariant.objects.create(
            product=self.tee, sku="TEE-M-BLK", size="m", color="Black", price=Decimal("100.00")
        )
        adjust_stock(product=self.tee, variant=self.tee_black, quantity_delta=5)

        self.cart = cart_service.get_or_create_cart(self.owner)


class CartOwnerTests(CartServiceTestBase):
    """
    GUARANTEES:
    - A cart has exactly one owner (user XOR guest session)
    - One cart per owner
    """

    def test_get_or_create_is_idempotent(self):
        again = cart_service.get_or_create_cart(self.owner)
        self.assertEqual(again.id, self.cart.id)

    def test_owner_property_round_trips(self):
        self.assertEqual(self.cart.owner, self.owner)

        guest = cart_service.get_or_create_cart(GuestOwner(session_id="guest_abc"))
        self.assertEqual(guest.owner, GuestOwner(session_id="guest_abc"))
        self.assertIsNone(guest.user_id)

    def test_blank_guest_session_is_rejected(self):
        with self.assertRaises(ValueError):
            GuestOwner(session_id="  ")

    def test_db_rejects_cart_with_two_owners(self):
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                Cart.objects.create(
                    user=self.user,
                    session_id="guest_both",
                    expires_at=timezone.now() + timedelta(days=1),
                )

    def test_db_rejects_cart_without_owner(self):
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                Cart.objects.create(expires_at=timezone.now() + timedelta(days=1))

    def test_expired_cart_is_replaced(self):
        Cart.objects.filter(id=self.cart.id).update(expires_at=timezone.now() - timedelta(minutes=1))

        fresh = cart_service.get_or_create_cart(self.owner)

        self.assertNotEqual(fresh.id, self.cart.id)
        self.assertFalse(Cart.objects.filter(id=self.cart.id).exists())


class CartMutationTests(CartServiceTestBase):
    def test_add_item_snapshots_catalog_data(self):
        cart = cart_service.add_item(self.cart, product_id=self.tee.id, variant_id=self.tee_black.id, quantity=2)

        line = cart.items.get()
        self.assertEqual(line.price, Decimal("100.00"))
        self.assertEqual(line.product_name, "Classic Tee")
        self.assertEqual(line.size, "M")
        self.assertEqual(line.color, "black")
        self.assertEqual(cart.subtotal_amount, Decimal("200.00"))
        self.assertEqual(cart.item_count, 2)

    def test_add_same_item_merges_lines(self):
        cart_service.add_item(self.cart, product_id=self.mug.id, quantity=2)
        cart = cart_service.add_item(self.cart, product_id=self.mug.id, quantity=3)

        self.assertEqual(cart.items.count(), 1)
        self.assertEqual(cart.items.get().quantity, 5)
        self.assertEqual(cart.subtotal_amount, Decimal("62.50"))
        self.assertEqual(cart.items.get().image, "https://cdn.example.com/mug.jpg")

    def test_add_beyond_stock_is_insufficient(self):
        cart_service.add_item(self.cart, product_id=self.mug.id, quantity=8)

        with self.assertRaises(InsufficientInventoryError) as ctx:
            cart_service.add_item(self.cart, product_id=self.mug.id, quantity=3)

        self.assertIn("Available: 10", ctx.exception.reasons[0])
        self.assertEqual(self.cart.items.get().quantity, 8)

    def test_add_beyond_line_maximum_is_invalid(self):
        adjust_stock(product=self.mug, quantity_delta=200)
        cart_service.add_item(self.cart, product_id=self.mug.id, quantity=99)

        with self.assertRaises(InvalidStateError):
            cart_service.add_item(self.cart, product_id=self.mug.id, quantity=1)

    def test_variant_product_requires_variant(self):
        with self.assertRaises(InvalidStateError):
            cart_service.add_item(self.cart, product_id=self.tee.id, quantity=1)

    def test_unknown_variant_is_not_found(self):
        with self.assertRaises(VariantNotFoundError):
            cart_service.add_item(
                self.cart,
                product_id=self.tee.id,
                variant_id="00000000-0000-0000-0000-000000000000",
                quantity=1,
            )

    def test_update_quantity_and_zero_removes(self):
        cart = cart_service.add_item(self.cart, product_id=self.mug.id, quantity=2)
        item = cart.items.get()

        cart = cart_service.update_item_quantity(cart, item_id=item.id, quantity=4)
        self.assertEqual(cart.item_count, 4)

        cart = cart_service.update_item_quantity(cart, item_id=item.id, quantity=0)
        self.assertEqual(cart.item_count, 0)
        self.assertEqual(cart.subtotal_amount, Decimal("0.00"))
        self.assertFalse(cart.items.exists())

    def test_remove_unknown_item_is_not_found(self):
        with self.assertRaises(NotFoundError):
            cart_service.remove_item(self.cart, item_id="00000000-0000-0000-0000-000000000000")

    def test_clear_cart_resets_totals(self):
        cart_service.add_item(self.cart, product_id=self.mug.id, quantity=2)

        cart = cart_service.clear_cart(self.cart)

        self.assertEqual(cart.item_count, 0)
        self.assertEqual(cart.subtotal_amount, Decimal("0.00"))

    def test_mutation_pushes_expiry_forward(self):
        Cart.objects.filter(id=self.cart.id).update(expires_at=timezone.now() + timedelta(hours=1))
        self.cart.refresh_from_db()

        cart = cart_service.add_item(self.cart, product_id=self.mug.id, quantity=1)

        self.assertGreater(cart.expires_at, timezone.now() + timedelta(days=29))


class CartValidationTests(CartServiceTestBase):
    def test_valid_cart_reports_nothing(self):
        cart_service.add_item(self.cart, product_id=self.mug.id, quantity=2)

        result = cart_service.validate_cart(self.cart)

        self.assertTrue(result.is_valid)
        self.assertEqual(result.errors, [])

    def test_quantity_is_clamped_to_stock(self):
        cart_service.add_item(self.cart, product_id=self.mug.id, quantity=6)
        adjust_stock(product=self.mug, quantity_delta=-7)

        result = cart_service.validate_cart(self.cart)

        self.assertFalse(result.is_valid)
        self.assertEqual(self.cart.items.get().quantity, 3)
        self.cart.refresh_from_db()
        self.assertEqual(self.cart.item_count, 3)

    def test_out_of_stock_and_deleted_lines_are_removed(self):
        cart_service.add_item(self.cart, product_id=self.mug.id, quantity=1)
        cart_service.add_item(self.cart, product_id=self.tee.id, variant_id=self.tee_black.id, quantity=1)

        adjust_stock(product=self.mug, quantity_delta=-10)
        self.tee.delete()

        result = cart_service.validate_cart(self.cart)

        self.assertEqual(len(result.removed_items), 2)
        self.assertFalse(self.cart.items.exists())

    def test_price_change_refreshes_snapshot(self):
        cart_service.add_item(self.cart, product_id=self.mug.id, quantity=2)
        Product.objects.filter(id=self.mug.id).update(price=Decimal("15.00"))

        result = cart_service.validate_cart(self.cart)

        self.assertIn('Price for "Enamel Mug" has been updated', result.errors)
        self.cart.refresh_from_db()
        self.assertEqual(self.cart.subtotal_amount, Decimal("30.00"))


class PurgeExpiredCartsTests(CartServiceTestBase):
    def test_only_expired_carts_are_purged(self):
        guest = cart_service.get_or_create_cart(GuestOwner(session_id="guest_old"))
        Cart.objects.filter(id=guest.id).update(expires_at=timezone.now() - timedelta(days=1))

        removed = cart_service.purge_expired_carts()

        self.assertEqual(removed, 1)
        self.assertTrue(Cart.objects.filter(id=self.cart.id).exists())
        self.assertFalse(Cart.objects.filter(id=guest.id).exists())

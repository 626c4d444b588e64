# products/tests/test_inventory.py

from decimal import Decimal
from types import SimpleNamespace
from unittest import mock

from django.contrib import admin
from django.test import TestCase

from common.exceptions import (
    InsufficientInventoryError,
    InvalidStateError,
    ProductNotFoundError,
    VariantNotFoundError,
)
from products.admin import ProductAdmin
from products.models import Product, ProductVariant
from products.services import inventory


def _line(product, quantity, variant=None):
    return SimpleNamespace(
        product_id=product.id,
        variant_id=variant.id if variant else None,
        quantity=quantity,
    )


def _order(*items):
    return SimpleNamespace(pk="order-under-test", items=SimpleNamespace(all=lambda: list(items)))


def _order_item(product_id, quantity, variant_id=None, name="Item"):
    return SimpleNamespace(product_id=product_id, variant_id=variant_id, quantity=quantity, product_name=name)


class InventoryLedgerTestBase(TestCase):
    def setUp(self):
        self.mug = Product.objects.create(name="Enamel Mug", price=Decimal("12.00"))
        inventory.adjust_stock(product=self.mug, quantity_delta=5)

        self.tee = Product.objects.create(name="Classic Tee", price=Decimal("90.00"))
        self.tee_black = ProductVariant.objects.create(
            product=self.tee, sku="TEE-M-BLK", size="m", color="Black", price=Decimal("100.00")
        )
        self.tee_white = ProductVariant.objects.create(product=self.tee, sku="TEE-M-WHT", size="m", color="white")
        inventory.adjust_stock(product=self.tee, variant=self.tee_black, quantity_delta=5)
        inventory.adjust_stock(product=self.tee, variant=self.tee_white, quantity_delta=2)
        self._reload()

    def _reload(self):
        self.mug.refresh_from_db()
        self.tee.refresh_from_db()
        self.tee_black.refresh_from_db()
        self.tee_white.refresh_from_db()


class CheckAvailabilityTests(InventoryLedgerTestBase):
    """
    GUARANTEES:
    - Exactly-available quantity is allowed
    - Over-asking states the exact remaining count
    - Missing product / variant is NotFound, never a false positive
    """

    def test_exact_stock_is_available(self):
        result = inventory.check_availability(product_id=self.mug.id, quantity=5)

        self.assertTrue(result.available)
        self.assertEqual(result.max_quantity, 5)
        self.assertIsNone(result.reason)

    def test_over_stock_reports_remaining(self):
        result = inventory.check_availability(product_id=self.mug.id, quantity=6)

        self.assertFalse(result.available)
        self.assertEqual(result.max_quantity, 5)
        self.assertIn("Available: 5", result.reason)

    def test_zero_stock_reports_zero_remaining(self):
        empty = Product.objects.create(name="Sold Out Cap", price=Decimal("8.00"))

        result = inventory.check_availability(product_id=empty.id, quantity=1)

        self.assertFalse(result.available)
        self.assertIn("Available: 0", result.reason)

    def test_variant_stock_is_used_when_variant_given(self):
        result = inventory.check_availability(product_id=self.tee.id, quantity=3, variant_id=self.tee_white.id)

        self.assertFalse(result.available)
        self.assertIn("Available: 2", result.reason)

    def test_missing_product_is_not_found(self):
        with self.assertRaises(ProductNotFoundError):
            inventory.check_availability(product_id="00000000-0000-0000-0000-000000000000", quantity=1)

        with self.assertRaises(ProductNotFoundError):
            inventory.check_availability(product_id="not-a-uuid", quantity=1)

    def test_variant_of_another_product_is_not_found(self):
        with self.assertRaises(VariantNotFoundError):
            inventory.check_availability(product_id=self.mug.id, quantity=1, variant_id=self.tee_black.id)

    def test_non_positive_quantity_is_invalid(self):
        with self.assertRaises(InvalidStateError):
            inventory.check_availability(product_id=self.mug.id, quantity=0)

    def test_validate_availability_sums_duplicate_lines(self):
        reasons = inventory.validate_availability([_line(self.mug, 3), _line(self.mug, 3)])

        self.assertEqual(len(reasons), 1)
        self.assertIn("Requested: 6", reasons[0])

    def test_validate_availability_collects_every_shortfall(self):
        reasons = inventory.validate_availability(
            [_line(self.mug, 9), _line(self.tee, 1, self.tee_black), _line(self.tee, 3, self.tee_white)]
        )

        self.assertEqual(len(reasons), 2)


class ReserveTests(InventoryLedgerTestBase):
    def test_variant_aggregate_tracks_variant_stock(self):
        self.assertEqual(self.tee.inventory, 7)

    def test_reserve_decrements_base_and_variant(self):
        inventory.reserve([_line(self.mug, 2), _line(self.tee, 2, self.tee_black)])

        self._reload()
        self.assertEqual(self.mug.inventory, 3)
        self.assertEqual(self.tee_black.inventory, 3)
        self.assertEqual(self.tee_white.inventory, 2)
        self.assertEqual(self.tee.inventory, 5)

    def test_reserve_down_to_zero(self):
        inventory.reserve([_line(self.mug, 5)])

        self._reload()
        self.assertEqual(self.mug.inventory, 0)

    def test_insufficient_line_aborts_whole_batch(self):
        with self.assertRaises(InsufficientInventoryError) as ctx:
            inventory.reserve([_line(self.mug, 2), _line(self.tee, 3, self.tee_white)])

        self.assertIn("Available: 2", ctx.exception.reasons[0])
        self._reload()
        self.assertEqual(self.mug.inventory, 5)
        self.assertEqual(self.tee_white.inventory, 2)
        self.assertEqual(self.tee.inventory, 7)

    def test_base_reservation_on_variant_product_is_invalid(self):
        with self.assertRaises(InvalidStateError):
            inventory.reserve([_line(self.tee, 1)])

    def test_missing_product_is_not_found(self):
        ghost = SimpleNamespace(product_id="00000000-0000-0000-0000-000000000000", variant_id=None, quantity=1)

        with self.assertRaises(ProductNotFoundError):
            inventory.reserve([ghost])

    def test_conditional_decrement_refuses_stale_quantity(self):
        self.assertFalse(inventory._conditional_decrement(Product, pk=self.mug.pk, quantity=6))
        self.assertTrue(inventory._conditional_decrement(Product, pk=self.mug.pk, quantity=5))
        self.assertFalse(inventory._conditional_decrement(Product, pk=self.mug.pk, quantity=1))

        self._reload()
        self.assertEqual(self.mug.inventory, 0)

    def test_refused_decrement_is_retried_once(self):
        real = inventory._conditional_decrement
        calls = []

        def flaky(*args, **kwargs):
            calls.append(kwargs)
            if len(calls) == 1:
                return False
            return real(*args, **kwargs)

        with mock.patch("products.services.inventory._conditional_decrement", side_effect=flaky):
            inventory.reserve([_line(self.mug, 1)])

        self.assertEqual(len(calls), 2)
        self._reload()
        self.assertEqual(self.mug.inventory, 4)

    def test_repeated_refusal_surfaces_insufficient_inventory(self):
        with mock.patch("products.services.inventory._conditional_decrement", return_value=False):
            with self.assertRaises(InsufficientInventoryError):
                inventory.reserve([_line(self.mug, 1)])

        self._reload()
        self.assertEqual(self.mug.inventory, 5)

    def test_sequential_reservations_for_last_unit(self):
        inventory.adjust_stock(product=self.mug, quantity_delta=-4)

        inventory.reserve([_line(self.mug, 1)])
        with self.assertRaises(InsufficientInventoryError):
            inventory.reserve([_line(self.mug, 1)])

        self._reload()
        self.assertEqual(self.mug.inventory, 0)


class RestoreTests(InventoryLedgerTestBase):
    def test_reserve_then_restore_round_trips(self):
        lines = [_line(self.mug, 2), _line(self.tee, 4, self.tee_black)]
        inventory.reserve(lines)

        restored = inventory.restore(
            _order(
                _order_item(self.mug.id, 2),
                _order_item(self.tee.id, 4, variant_id=self.tee_black.id),
            )
        )

        self.assertEqual(restored, 2)
        self._reload()
        self.assertEqual(self.mug.inventory, 5)
        self.assertEqual(self.tee_black.inventory, 5)
        self.assertEqual(self.tee.inventory, 7)

    def test_deleted_product_is_skipped(self):
        with self.assertLogs("products.services.inventory", level="WARNING"):
            restored = inventory.restore(
                _order(
                    _order_item(None, 3, name="Discontinued Scarf"),
                    _order_item(self.mug.id, 1),
                )
            )

        self.assertEqual(restored, 1)
        self._reload()
        self.assertEqual(self.mug.inventory, 6)

    def test_deleted_variant_is_skipped(self):
        gone_id = self.tee_white.id
        self.tee_white.delete()

        with self.assertLogs("products.services.inventory", level="WARNING"):
            restored = inventory.restore(_order(_order_item(self.tee.id, 1, variant_id=gone_id)))

        self.assertEqual(restored, 0)


class AdjustStockTests(InventoryLedgerTestBase):
    def test_negative_adjustment_cannot_go_below_zero(self):
        with self.assertRaises(InsufficientInventoryError):
            inventory.adjust_stock(product=self.mug, quantity_delta=-6)

        self._reload()
        self.assertEqual(self.mug.inventory, 5)

    def test_zero_delta_is_invalid(self):
        with self.assertRaises(InvalidStateError):
            inventory.adjust_stock(product=self.mug, quantity_delta=0)

    def test_variant_product_requires_variant(self):
        with self.assertRaises(InvalidStateError):
            inventory.adjust_stock(product=self.tee, quantity_delta=1)

    def test_variant_adjustment_resyncs_aggregate(self):
        variant = inventory.adjust_stock(product=self.tee, variant=self.tee_white, quantity_delta=-2)

        self.assertEqual(variant.inventory, 0)
        self._reload()
        self.assertEqual(self.tee.inventory, 5)


class VariantCatalogTests(InventoryLedgerTestBase):
    """
    GUARANTEES:
    - Adding or removing variants re-derives the product aggregate
    - A product that loses its last variant has nothing to sell until restocked
    """

    def test_first_variant_replaces_base_stock(self):
        variant = inventory.add_variant(product=self.mug, sku="MUG-BLU", color="blue")

        self.mug.refresh_from_db()
        self.assertEqual(variant.inventory, 0)
        self.assertEqual(self.mug.inventory, 0)
        self.assertFalse(inventory.check_availability(product_id=self.mug.id, quantity=1).available)

    def test_removing_a_variant_drops_its_stock(self):
        inventory.remove_variant(product=self.tee, variant=self.tee_white)

        self.tee.refresh_from_db()
        self.assertEqual(self.tee.inventory, 5)
        self.assertFalse(ProductVariant.objects.filter(pk=self.tee_white.pk).exists())

    def test_removing_last_variant_zeroes_aggregate(self):
        inventory.remove_variant(product=self.tee, variant=self.tee_white)
        inventory.remove_variant(product=self.tee, variant=self.tee_black.pk)

        self.tee.refresh_from_db()
        self.assertEqual(self.tee.inventory, 0)
        self.assertFalse(self.tee.has_variants)

    def test_remove_variant_of_another_product_is_not_found(self):
        with self.assertRaises(VariantNotFoundError):
            inventory.remove_variant(product=self.mug, variant=self.tee_white)


class ProductAdminInlineTests(InventoryLedgerTestBase):
    """
    The variant inline writes through the ORM; save_related must leave the
    aggregate matching the variants that remain.
    """

    def _save_inline(self, product, inline_save):
        product_admin = ProductAdmin(Product, admin.site)
        form = SimpleNamespace(instance=product, save_m2m=lambda: None)
        product_admin.save_related(None, form, [SimpleNamespace(save=inline_save)], True)
        product.refresh_from_db()

    def test_inline_added_variant_resyncs(self):
        def add():
            ProductVariant.objects.create(product=self.tee, sku="TEE-L-BLK", size="l", color="Black", inventory=3)

        self._save_inline(self.tee, add)

        self.assertEqual(self.tee.inventory, 10)

    def test_inline_first_variant_on_base_product(self):
        def add():
            ProductVariant.objects.create(product=self.mug, sku="MUG-BLU", color="blue")

        self._save_inline(self.mug, add)

        self.assertEqual(self.mug.inventory, 0)

    def test_inline_deleted_variant_resyncs(self):
        self._save_inline(self.tee, lambda: self.tee_black.delete())

        self.assertEqual(self.tee.inventory, 2)

    def test_inline_deleted_last_variants_zeroes_aggregate(self):
        self._save_inline(self.tee, lambda: self.tee.variants.all().delete())

        self.assertEqual(self.tee.inventory, 0)

    def test_base_product_without_inline_changes_keeps_stock(self):
        self._save_inline(self.mug, lambda: None)

        self.assertEqual(self.mug.inventory, 5)

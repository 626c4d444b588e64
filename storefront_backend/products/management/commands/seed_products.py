from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from products.models import Category, Product
from products.services.inventory import add_variant, adjust_stock


class Command(BaseCommand):
    help = "Seed categories, products and variants with starting stock"

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write(self.style.WARNING("Seeding catalog..."))

        # -------------------------------
        # CATEGORIES
        # -------------------------------
        category_objs = {}
        for name in ("Shirts", "Shoes", "Accessories"):
            obj, _ = Category.objects.get_or_create(name=name)
            category_objs[name] = obj

        # -------------------------------
        # PRODUCTS (name, category, base price, base stock)
        # -------------------------------
        simple_products = [
            ("Canvas Tote Bag", "Accessories", "25.00", 40),
            ("Leather Belt", "Accessories", "45.00", 15),
        ]

        for name, cat, price, stock in simple_products:
            product, created = Product.objects.get_or_create(
                name=name,
                defaults={"category": category_objs[cat], "price": Decimal(price)},
            )
            if created:
                adjust_stock(product=product, quantity_delta=stock)

        # -------------------------------
        # VARIANT PRODUCTS
        # -------------------------------
        tee, created = Product.objects.get_or_create(
            name="Classic Tee",
            defaults={"category": category_objs["Shirts"], "price": Decimal("19.99")},
        )
        if created:
            for sku, size, color, stock in (
                ("TEE-S-BLK", "S", "black", 10),
                ("TEE-M-BLK", "M", "black", 12),
                ("TEE-L-WHT", "L", "white", 8),
            ):
                variant = add_variant(product=tee, sku=sku, size=size, color=color)
                adjust_stock(product=tee, variant=variant, quantity_delta=stock)

        self.stdout.write(self.style.SUCCESS("Catalog seeded successfully."))

from __future__ import annotations

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from modules.products.models import Product

DEMO_SELLER = "demo-seller"

DEMO_PRODUCTS = [
    ("Mechanical Keyboard", Decimal("349.90"), 25),
    ("Wireless Mouse", Decimal("129.90"), 40),
    ("27in Monitor", Decimal("1899.00"), 8),
    ("USB-C Dock", Decimal("499.50"), 15),
    ("Laptop Stand", Decimal("159.00"), 30),
]


class Command(BaseCommand):
    help = "Seed a demo seller and catalog products with stock."

    def add_arguments(self, parser):
        parser.add_argument(
            "--stock",
            type=int,
            default=None,
            help="Override the initial stock of every seeded product.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("Seeding catalog...")
        seller = self._seed_seller()

        created = 0
        for name, price, stock in DEMO_PRODUCTS:
            _, was_created = Product.objects.get_or_create(
                seller=seller,
                name=name,
                defaults={
                    "price": price,
                    "stock": options["stock"] if options["stock"] is not None else stock,
                },
            )
            created += int(was_created)

        self.stdout.write(
            self.style.SUCCESS(
                f"Seed completed: seller={seller.get_username()}, "
                f"products_created={created}, products_total={len(DEMO_PRODUCTS)}"
            )
        )

    def _seed_seller(self):
        User = get_user_model()
        seller, was_created = User.objects.get_or_create(username=DEMO_SELLER)
        if was_created:
            seller.set_unusable_password()
            seller.save(update_fields=["password"])
        return seller

from __future__ import annotations

import random
import re
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from masterdata.models import Event, Product


def money(x: float) -> Decimal:
    return Decimal(str(x)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def ean13_with_checksum(prefix12: str) -> str:
    if not re.fullmatch(r"\d{12}", prefix12):
        raise ValueError("prefix12 must be exactly 12 digits")

    digits = [int(c) for c in prefix12]
    odd_sum = sum(digits[0::2])
    even_sum = sum(digits[1::2])
    total = odd_sum + 3 * even_sum
    check = (10 - (total % 10)) % 10
    return prefix12 + str(check)


EQUIPMENT = [
    ("LED Par Can 18x10W", "Lighting"),
    ("Moving Head Spot 150W", "Lighting"),
    ("DMX Controller 192ch", "Lighting"),
    ("Fairy Light String 20m", "Lighting"),
    ("Uplight Battery Wash", "Lighting"),
    ("Active Speaker 15in", "Sound & Audio"),
    ("Subwoofer 18in", "Sound & Audio"),
    ("Wireless Handheld Microphone", "Sound & Audio"),
    ("Mixer 12 Channel", "Sound & Audio"),
    ("Speaker Stand", "Sound & Audio"),
    ("Round Table 1.5m", "Furniture"),
    ("Folding Chair White", "Furniture"),
    ("Cocktail Table", "Furniture"),
    ("Lounge Sofa", "Furniture"),
    ("Table Cloth Round White", "Decoration"),
    ("Centerpiece Vase", "Decoration"),
    ("Backdrop Frame 3x2m", "Decoration"),
    ("Flower Arch", "Decoration"),
    ("Extension Cable 25m", "Equipment"),
    ("Power Distribution Box", "Equipment"),
    ("Truss Segment 2m", "Equipment"),
    ("Fog Machine", "Equipment"),
    ("Gaffer Tape Roll", "Consumables"),
    ("Cable Ties Pack", "Consumables"),
]

# (min qty, max qty, min price, max price)
STOCK_BANDS = {
    "Lighting": (4, 40, 40, 900),
    "Sound & Audio": (2, 16, 60, 1500),
    "Furniture": (20, 300, 15, 600),
    "Decoration": (10, 120, 5, 250),
    "Equipment": (4, 30, 30, 800),
    "Consumables": (50, 400, 2, 25),
}


class Command(BaseCommand):
    help = "Seed the rental catalog: equipment Products with EAN-13 scan codes and a few planned Events."

    def add_arguments(self, parser):
        parser.add_argument("--seed", type=int, default=42)
        parser.add_argument("--events", type=int, default=3)
        parser.add_argument("--dry-run", action="store_true")

    def handle(self, *args, **options):
        rng = random.Random(options["seed"])
        dry_run = options["dry_run"]

        existing_names = set(Product.objects.values_list("name", flat=True))
        existing_codes = set(Product.objects.exclude(scan_code__isnull=True).values_list("scan_code", flat=True))

        def next_unique_code(i: int) -> str:
            # Internal label series: 200 + index(9 digits) = 12 digits
            j = i
            while True:
                code = ean13_with_checksum(f"200{j+1:09d}")
                if code not in existing_codes:
                    existing_codes.add(code)
                    return code
                j += 1

        products = []
        for i, (name, category) in enumerate(EQUIPMENT):
            if name in existing_names:
                continue
            qty_min, qty_max, price_min, price_max = STOCK_BANDS[category]
            quantity = rng.randint(qty_min, qty_max)
            products.append(Product(
                name=name,
                category=category,
                quantity=quantity,
                min_stock=max(1, quantity // 5),
                price=money(rng.uniform(price_min, price_max)),
                scan_code=next_unique_code(i),
            ))

        today = timezone.localdate()
        events = [
            Event(name=f"Demo event {n + 1}", date=today + timedelta(days=7 * (n + 1)), location="Main hall")
            for n in range(options["events"])
        ]

        if dry_run:
            for p in products:
                self.stdout.write(f"{p.scan_code}  {p.quantity:>4}  {p.name} [{p.category}] {p.price}")
            self.stdout.write(self.style.WARNING(f"Dry run: {len(products)} products, {len(events)} events"))
            return

        with transaction.atomic():
            for p in products:
                p.save()
            for e in events:
                e.save()

        self.stdout.write(self.style.SUCCESS(f"Created {len(products)} products and {len(events)} events"))

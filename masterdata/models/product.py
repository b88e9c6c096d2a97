from decimal import Decimal

from django.db import models
from simple_history.models import HistoricalRecords


class Product(models.Model):
    """A piece of rental equipment held in central stock.

    ``quantity`` is the on-hand quantity: what is physically in the warehouse,
    not allocated to any event. It is only ever moved by the stock ledger
    (inventory.services), never edited around it.
    """

    name = models.CharField(max_length=255)
    category = models.CharField(max_length=100)
    description = models.TextField(blank=True, default="")

    quantity = models.PositiveIntegerField(default=0)
    min_stock = models.PositiveIntegerField(default=1)

    price = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)

    # Opaque code printed on the QR label. Unique when present.
    scan_code = models.CharField(max_length=255, null=True, blank=True, unique=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    history = HistoricalRecords()

    class Meta:
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(condition=models.Q(quantity__gte=0), name="product_quantity_non_negative"),
            models.CheckConstraint(
                condition=models.Q(price__isnull=True) | models.Q(price__gte=Decimal("0.00")),
                name="product_price_non_negative",
            ),
        ]

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        # An empty label must not collide with the unique constraint.
        if not self.scan_code:
            self.scan_code = None
        super().save(*args, **kwargs)

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.min_stock

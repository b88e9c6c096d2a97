"""Stock store: on-hand quantity per product.

Nothing is cached here: every read goes to the database, so two
sessions never act on each other's stale numbers.
"""

from dataclasses import dataclass

from django.db import transaction
from django.db.models import F, Sum
from django.utils import timezone

from core.db import storage_boundary
from core.exceptions import InsufficientStock, NotFound
from inventory.models import Allocation
from masterdata.models import Product


@dataclass(frozen=True)
class StockPosition:
    product_id: int
    on_hand: int
    allocated: int

    @property
    def total_owned(self) -> int:
        return self.on_hand + self.allocated


@storage_boundary
def get_quantity(product_id) -> int:
    quantity = Product.objects.filter(pk=product_id).values_list("quantity", flat=True).first()
    if quantity is None:
        raise NotFound("Product", product_id)
    return quantity


@storage_boundary
@transaction.atomic
def adjust_quantity(product_id, delta: int) -> int:
    """Apply ``delta`` to on-hand stock and return the new quantity.

    The check and the write are one conditional UPDATE
    (``quantity = quantity + delta WHERE quantity >= -delta``), so two
    concurrent callers can never both pass the check on the same units.
    Zero rows updated means either the product is gone or stock is short;
    we re-read only to tell which error to raise.
    """
    qs = Product.objects.filter(pk=product_id)
    if delta < 0:
        qs = qs.filter(quantity__gte=-delta)

    updated = qs.update(quantity=F("quantity") + delta, updated_at=timezone.now())
    if not updated:
        available = Product.objects.filter(pk=product_id).values_list("quantity", flat=True).first()
        if available is None:
            raise NotFound("Product", product_id)
        raise InsufficientStock(product_id, requested=-delta, available=available)

    return Product.objects.filter(pk=product_id).values_list("quantity", flat=True).get()


@storage_boundary
def stock_position(product_id) -> StockPosition:
    """On-hand, allocated and total owned quantity, read in one transaction."""
    with transaction.atomic():
        on_hand = get_quantity(product_id)
        allocated = (
            Allocation.objects
            .filter(product_id=product_id)
            .aggregate(total=Sum("quantity_sent"))["total"]
        ) or 0
    return StockPosition(product_id=int(product_id), on_hand=on_hand, allocated=allocated)

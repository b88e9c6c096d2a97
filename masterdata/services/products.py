import logging
from dataclasses import dataclass

from django.db import transaction
from django.db.models import Count, F, Sum

from core.db import storage_boundary
from core.exceptions import InvalidInput, NotFound, ProductInUse
from masterdata.models import Product

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockStats:
    total_products: int
    total_on_hand: int
    low_stock_count: int
    category_count: int

    def as_dict(self):
        return {
            "total_products": self.total_products,
            "total_on_hand": self.total_on_hand,
            "low_stock_count": self.low_stock_count,
            "category_count": self.category_count,
        }


@storage_boundary
def resolve_scan_code(code: str) -> Product:
    """Map the opaque string on a QR label to its product."""
    code = (code or "").strip()
    if not code:
        raise InvalidInput("Scan code is empty.", field="scan_code")
    product = Product.objects.filter(scan_code=code).first()
    if product is None:
        raise NotFound("Product", code)
    return product


@storage_boundary
@transaction.atomic
def delete_product(product_id):
    """Delete a product that is not out at any event.

    Allocation.product is PROTECT, so the database refuses too, but checking
    first under a row lock gives a clear error instead of a ProtectedError.
    """
    product = Product.objects.select_for_update().filter(pk=product_id).first()
    if product is None:
        raise NotFound("Product", product_id)

    open_allocations = product.allocations.count()
    if open_allocations:
        raise ProductInUse(
            f"{product} is still allocated to {open_allocations} event(s).",
            product_id=product.pk,
            open_allocations=open_allocations,
        )

    name = product.name
    product.delete()
    logger.info("Deleted product %s (%s)", product_id, name)


@storage_boundary
def stock_stats() -> StockStats:
    """Warehouse overview numbers for the stock dashboard."""
    totals = Product.objects.aggregate(
        total_products=Count("id"),
        total_on_hand=Sum("quantity"),
        category_count=Count("category", distinct=True),
    )
    low = Product.objects.filter(quantity__lte=F("min_stock")).count()
    return StockStats(
        total_products=totals["total_products"] or 0,
        total_on_hand=totals["total_on_hand"] or 0,
        low_stock_count=low,
        category_count=totals["category_count"] or 0,
    )

"""Return processor: bringing allocated material back to stock."""

import logging
from dataclasses import dataclass

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from core.db import storage_boundary
from core.exceptions import ConcurrencyConflict, InvalidQuantity, NotFound
from inventory.models import Allocation, StockMove
from inventory.services.allocation import validate_quantity
from inventory.services.moves import record_move
from inventory.services.stock import adjust_quantity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReturnResult:
    allocation_id: int
    event_id: int
    product_id: int
    quantity: int
    remaining: int
    on_hand: int

    @property
    def closed(self) -> bool:
        """True when the return emptied (and deleted) the allocation."""
        return self.remaining == 0

    def as_dict(self):
        return {
            "allocation_id": self.allocation_id,
            "event_id": self.event_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "remaining": self.remaining,
            "on_hand": self.on_hand,
            "closed": self.closed,
        }


@storage_boundary
@transaction.atomic
def return_material(allocation_id, quantity, *, by=None) -> ReturnResult:
    """Return ``quantity`` units of an allocation to stock.

    We lock the allocation row first, so a second return of the same units
    waits for this one and then sees the reduced quantity_sent.
    Stock increment and allocation change commit together or not at all.
    """
    validate_quantity(quantity)

    allocation = Allocation.objects.select_for_update().filter(pk=allocation_id).first()
    if allocation is None:
        raise NotFound("Allocation", allocation_id)

    if quantity > allocation.quantity_sent:
        raise InvalidQuantity(
            f"Cannot return {quantity}; only {allocation.quantity_sent} allocated.",
            quantity=quantity,
            max_returnable=allocation.quantity_sent,
        )

    on_hand = adjust_quantity(allocation.product_id, quantity)

    remaining = allocation.quantity_sent - quantity
    if remaining == 0:
        deleted, _ = Allocation.objects.filter(pk=allocation.pk, quantity_sent=quantity).delete()
        changed = deleted > 0
    else:
        changed = (
            Allocation.objects
            .filter(pk=allocation.pk, quantity_sent__gte=quantity)
            .update(quantity_sent=F("quantity_sent") - quantity, updated_at=timezone.now())
        ) == 1

    if not changed:
        # Only reachable without row locks (SQLite): someone else moved the row first.
        raise ConcurrencyConflict(f"Allocation {allocation_id} changed during return.")

    record_move(
        product_id=allocation.product_id,
        event_id=allocation.event_id,
        kind=StockMove.Kind.RETURN,
        qty=quantity,
        on_hand_after=on_hand,
        by=by,
    )

    logger.info(
        "Returned %d x product %s from event %s (allocation %s remaining %d, on hand %d)",
        quantity, allocation.product_id, allocation.event_id, allocation.pk, remaining, on_hand,
    )

    return ReturnResult(
        allocation_id=allocation.pk,
        event_id=allocation.event_id,
        product_id=allocation.product_id,
        quantity=quantity,
        remaining=remaining,
        on_hand=on_hand,
    )

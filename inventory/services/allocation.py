"""Allocation ledger: moving stock from the warehouse to events."""

import logging
from dataclasses import dataclass

from django.db import IntegrityError, transaction

from core.db import MAX_POSITIVE_INT, storage_boundary
from core.exceptions import ConcurrencyConflict, EventNotOpen, InvalidQuantity, NotFound
from inventory.models import Allocation, StockMove
from inventory.services.moves import record_move
from inventory.services.stock import adjust_quantity
from masterdata.models import Event

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AllocationResult:
    allocation_id: int
    event_id: int
    product_id: int
    quantity: int
    quantity_sent: int
    on_hand: int
    created: bool

    def as_dict(self):
        return {
            "allocation_id": self.allocation_id,
            "event_id": self.event_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "quantity_sent": self.quantity_sent,
            "on_hand": self.on_hand,
            "created": self.created,
        }


def validate_quantity(quantity):
    """Quantities are positive whole numbers. Checked before anything is touched."""
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantity("Quantity must be a positive whole number.", quantity=str(quantity))
    if quantity > MAX_POSITIVE_INT:
        raise InvalidQuantity(f"Quantity must be at most {MAX_POSITIVE_INT}.", quantity=quantity, max_quantity=MAX_POSITIVE_INT)


@storage_boundary
@transaction.atomic
def send_material(event_id, product_id, quantity, *, notes="", by=None) -> AllocationResult:
    """Send ``quantity`` units of a product to an event.

    Step-by-step (one transaction, all or nothing):
    1) Validate quantity and that the event is planned or active
    2) Lock the (event, product) allocation row, if there is one
    3) Decrement stock with a conditional UPDATE (fails with InsufficientStock)
    4) Add the quantity to the allocation, or create the row on first send
    5) Record the StockMove

    If anything raises after step 3, the atomic block rolls the stock back too.
    """
    validate_quantity(quantity)

    event = Event.objects.filter(pk=event_id).first()
    if event is None:
        raise NotFound("Event", event_id)
    if not event.is_open:
        raise EventNotOpen(f"Event {event_id} is {event.status}; material can only be sent to planned or active events.")

    # Allocation row before product row, the same order return_material locks in
    allocation = (
        Allocation.objects
        .select_for_update()
        .filter(event_id=event_id, product_id=product_id)
        .first()
    )
    created = allocation is None

    on_hand = adjust_quantity(product_id, -quantity)

    if created:
        try:
            with transaction.atomic():
                allocation = Allocation.objects.create(
                    event_id=event_id,
                    product_id=product_id,
                    quantity_sent=quantity,
                    notes=notes,
                )
        except IntegrityError as exc:
            # Another session created the row between our read and insert.
            raise ConcurrencyConflict(
                f"Allocation for event {event_id} / product {product_id} was created concurrently."
            ) from exc
    else:
        allocation.quantity_sent = allocation.quantity_sent + quantity
        if notes:
            allocation.notes = notes
        allocation.save(update_fields=["quantity_sent", "notes", "updated_at"])

    record_move(
        product_id=product_id,
        event_id=event_id,
        kind=StockMove.Kind.SEND,
        qty=-quantity,
        on_hand_after=on_hand,
        by=by,
    )

    logger.info(
        "Sent %d x product %s to event %s (allocation %s now %d, on hand %d)",
        quantity, product_id, event_id, allocation.pk, allocation.quantity_sent, on_hand,
    )

    return AllocationResult(
        allocation_id=allocation.pk,
        event_id=int(event_id),
        product_id=int(product_id),
        quantity=quantity,
        quantity_sent=allocation.quantity_sent,
        on_hand=on_hand,
        created=created,
    )


@storage_boundary
def list_event_allocations(event_id):
    """Allocations of one event with their products, by product name."""
    if not Event.objects.filter(pk=event_id).exists():
        raise NotFound("Event", event_id)
    return list(
        Allocation.objects
        .filter(event_id=event_id)
        .select_related("product")
        .order_by("product__name", "id")
    )


@storage_boundary
def returnable_events():
    """Events that still hold material, i.e. have at least one allocation."""
    return list(
        Event.objects
        .filter(allocations__isnull=False)
        .distinct()
        .order_by("-date", "-id")
    )

from core.permissions import actor_or_none
from inventory.models import StockMove


def record_move(*, product_id, event_id, kind, qty, on_hand_after, by=None):
    """Write one StockMove row. Call inside the transaction that moved the stock."""
    return StockMove.objects.create(
        product_id=product_id,
        event_id=event_id,
        kind=kind,
        qty=qty,
        on_hand_after=on_hand_after,
        created_by=actor_or_none(by),
    )

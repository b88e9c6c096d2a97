"""Error taxonomy for the stock and budget ledgers.

Every rejected ledger operation raises one of these, never a bare Exception,
so callers (admin actions, JSON API, scanning app) can render a specific,
actionable message. Each error knows its machine-readable ``code``, the HTTP
status the API answers with, and any extra details for the caller.
"""


class LedgerError(Exception):
    code = "ledger_error"
    http_status = 400

    def __init__(self, message="", **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def as_dict(self):
        return {"error": self.code, "message": self.message, **self.details}


class InvalidInput(LedgerError, ValueError):
    """Rejected before any mutation: bad field, unknown enum value, ..."""
    code = "invalid_input"


class InvalidQuantity(InvalidInput):
    """Non-positive quantity, or a return above what is allocated."""
    code = "invalid_quantity"


class NotFound(LedgerError):
    code = "not_found"
    http_status = 404

    def __init__(self, kind, pk):
        super().__init__(f"{kind} {pk} not found.", kind=kind, id=pk)


class InsufficientStock(LedgerError):
    code = "insufficient_stock"
    http_status = 409

    def __init__(self, product_id, requested, available):
        super().__init__(
            f"Not enough stock for product {product_id}: requested {requested}, available {available}.",
            product_id=product_id,
            requested=requested,
            available=available,
        )


class ConcurrencyConflict(LedgerError):
    """Another request changed the same rows first. Retry once with fresh data."""
    code = "concurrency_conflict"
    http_status = 409


class StorageUnavailable(LedgerError):
    """Database unreachable or timed out. Nothing was committed."""
    code = "storage_unavailable"
    http_status = 503


class InvalidTransition(LedgerError):
    code = "invalid_transition"
    http_status = 409

    def __init__(self, kind, pk, current, target):
        super().__init__(
            f"{kind} {pk} cannot go from {current} to {target}.",
            current=current,
            target=target,
        )


class ProductInUse(LedgerError):
    code = "product_in_use"
    http_status = 409


class EventNotOpen(LedgerError):
    """Material can only be sent to planned or active events."""
    code = "event_not_open"
    http_status = 409

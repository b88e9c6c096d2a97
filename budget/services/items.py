"""Budget ledger: create, edit and delete budget items of an event.

All validation happens before any write. total_price is never accepted from
the caller; the model derives it on every save. Status only changes through
the transition table on BudgetItem.
"""

import logging
from decimal import Decimal, InvalidOperation

from django.db import transaction
from django_fsm import TransitionNotAllowed

from core.db import MAX_POSITIVE_INT, storage_boundary
from core.exceptions import InvalidInput, InvalidQuantity, InvalidTransition, NotFound
from core.permissions import actor_or_none
from budget.models import BudgetItem
from masterdata.models import Event

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "description", "category", "quantity", "unit_price", "supplier")

CENT = Decimal("0.01")
# DecimalField(max_digits=14, decimal_places=2) and (16, 2)
UNIT_PRICE_LIMIT = Decimal(10) ** 12
TOTAL_PRICE_LIMIT = Decimal(10) ** 14


def _clean_name(value):
    name = (value or "").strip()
    if not name:
        raise InvalidInput("Name is required.", field="name")
    return name


def _clean_category(value):
    if value not in BudgetItem.Category.values:
        raise InvalidInput(
            f"Unknown category {value!r}.",
            field="category",
            allowed=list(BudgetItem.Category.values),
        )
    return value


def _clean_quantity(value):
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise InvalidQuantity("Quantity must be a whole number of at least 1.", field="quantity")
    if value > MAX_POSITIVE_INT:
        raise InvalidQuantity(f"Quantity must be at most {MAX_POSITIVE_INT}.", field="quantity", max_quantity=MAX_POSITIVE_INT)
    return value


def _clean_unit_price(value):
    if isinstance(value, bool):
        raise InvalidInput("Unit price must be a number.", field="unit_price")
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidInput("Unit price must be a number.", field="unit_price")
    if not price.is_finite() or price < 0:
        raise InvalidInput("Unit price must be zero or more.", field="unit_price")
    # quantize() raises InvalidOperation past the context precision, so bound first
    if price >= UNIT_PRICE_LIMIT or price.quantize(CENT) >= UNIT_PRICE_LIMIT:
        raise InvalidInput(
            f"Unit price must be below {UNIT_PRICE_LIMIT}.", field="unit_price", max_unit_price=str(UNIT_PRICE_LIMIT - CENT),
        )
    return price.quantize(CENT)


def _check_total(quantity, unit_price):
    """The derived total must fit its column before anything is written."""
    if Decimal(quantity) * unit_price >= TOTAL_PRICE_LIMIT:
        raise InvalidInput(
            f"quantity x unit_price must be below {TOTAL_PRICE_LIMIT}.",
            field="total_price",
            max_total_price=str(TOTAL_PRICE_LIMIT - CENT),
        )


def _clean_text(value):
    return (value or "").strip()


CLEANERS = {
    "name": _clean_name,
    "description": _clean_text,
    "category": _clean_category,
    "quantity": _clean_quantity,
    "unit_price": _clean_unit_price,
    "supplier": _clean_text,
}


def _apply_status(item, target, by=None):
    """Move item to ``target`` through the transition table. Same status is a no-op."""
    if target not in BudgetItem.Status.values:
        raise InvalidInput(f"Unknown status {target!r}.", field="status", allowed=list(BudgetItem.Status.values))

    current = item.status
    if target == current:
        return False

    method = BudgetItem.transition_method(current, target)
    if method is None:
        raise InvalidTransition("Budget item", item.pk, current, target)
    try:
        getattr(item, method)(by=actor_or_none(by))
    except TransitionNotAllowed:
        raise InvalidTransition("Budget item", item.pk, current, target)
    return True


def _locked_item(item_id):
    item = BudgetItem.objects.select_for_update().filter(pk=item_id).first()
    if item is None:
        raise NotFound("Budget item", item_id)
    return item


@storage_boundary
@transaction.atomic
def create_budget_item(event_id, *, name, category, quantity, unit_price,
                       description="", supplier="", by=None) -> BudgetItem:
    """Create a pending budget item. total_price is computed, not passed in."""
    values = {
        "name": _clean_name(name),
        "category": _clean_category(category),
        "quantity": _clean_quantity(quantity),
        "unit_price": _clean_unit_price(unit_price),
        "description": _clean_text(description),
        "supplier": _clean_text(supplier),
    }
    _check_total(values["quantity"], values["unit_price"])

    if not Event.objects.filter(pk=event_id).exists():
        raise NotFound("Event", event_id)

    item = BudgetItem.objects.create(event_id=event_id, created_by=actor_or_none(by), **values)
    logger.info("Created budget item %s for event %s: %s = %s", item.pk, event_id, item.name, item.total_price)
    return item


@storage_boundary
@transaction.atomic
def update_budget_item(item_id, *, by=None, **changes) -> BudgetItem:
    """Change any editable field and/or the status of a budget item.

    Unknown fields (including total_price) are rejected.
    A status change must be an allowed transition; the fields are validated
    first so a bad field never leaves a half-applied status change.
    """
    unknown = set(changes) - set(EDITABLE_FIELDS) - {"status"}
    if unknown:
        raise InvalidInput(f"Fields cannot be updated: {', '.join(sorted(unknown))}.", fields=sorted(unknown))

    cleaned = {field: CLEANERS[field](value) for field, value in changes.items() if field != "status"}

    item = _locked_item(item_id)
    for field, value in cleaned.items():
        setattr(item, field, value)
    _check_total(item.quantity, item.unit_price)

    status_changed = False
    if "status" in changes:
        status_changed = _apply_status(item, changes["status"], by=by)

    item.save()
    logger.info(
        "Updated budget item %s (%s)%s",
        item.pk, ", ".join(sorted(cleaned)) or "no fields",
        f", status {item.status}" if status_changed else "",
    )
    return item


@storage_boundary
@transaction.atomic
def transition_budget_item(item_id, status, *, by=None) -> BudgetItem:
    item = _locked_item(item_id)
    previous = item.status
    if _apply_status(item, status, by=by):
        item.save()
        logger.info("Budget item %s moved %s -> %s", item.pk, previous, item.status)
    return item


@storage_boundary
@transaction.atomic
def delete_budget_item(item_id):
    """Remove a budget item. Budget items are financial records only: no stock effect."""
    deleted, _ = BudgetItem.objects.filter(pk=item_id).delete()
    if not deleted:
        raise NotFound("Budget item", item_id)
    logger.info("Deleted budget item %s", item_id)


def budget_items_queryset(event_id):
    if not Event.objects.filter(pk=event_id).exists():
        raise NotFound("Event", event_id)
    return BudgetItem.objects.filter(event_id=event_id).order_by("-created_at", "-id")


@storage_boundary
def list_budget_items(event_id):
    """Budget items of an event, newest first."""
    return list(budget_items_queryset(event_id))

"""Financial aggregator.

``summarize`` is a pure reducer over budget item rows. The ``compute_*``
functions read one snapshot from the database and reduce it; nothing is
cached or maintained incrementally, so a summary can never drift from the
items it describes.
"""

import calendar
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from core.db import storage_boundary
from core.exceptions import InvalidInput, NotFound
from budget.models import BudgetItem
from masterdata.models import Event

ZERO = Decimal("0.00")

SUMMARY_FIELDS = ("event_id", "category", "status", "total_price")

PRESETS = ("this_month", "last_month", "last_3_months", "this_year")


@dataclass(frozen=True)
class FinancialSummary:
    total_budget: Decimal = ZERO
    total_approved: Decimal = ZERO
    total_spent: Decimal = ZERO
    item_count: int = 0
    category_breakdown: dict = field(default_factory=dict)
    status_breakdown: dict = field(default_factory=dict)

    @property
    def total_remaining(self) -> Decimal:
        return self.total_approved - self.total_spent

    def as_dict(self):
        return {
            "total_budget": str(self.total_budget),
            "total_approved": str(self.total_approved),
            "total_spent": str(self.total_spent),
            "total_remaining": str(self.total_remaining),
            "item_count": self.item_count,
            "category_breakdown": {k: str(v) for k, v in self.category_breakdown.items()},
            "status_breakdown": {k: str(v) for k, v in self.status_breakdown.items()},
        }


def summarize(rows) -> FinancialSummary:
    """Reduce budget item rows to a FinancialSummary.

    ``rows`` is any iterable of mappings with ``category``, ``status`` and
    ``total_price``. The function has no side effects; calling it twice on the
    same rows gives the same summary.
    """
    total_budget = ZERO
    total_approved = ZERO
    total_spent = ZERO
    item_count = 0
    by_category = {}
    by_status = {}

    for row in rows:
        amount = Decimal(row["total_price"] or ZERO)
        category = row["category"]
        status = row["status"]

        item_count += 1
        total_budget += amount
        if status in BudgetItem.APPROVED_STATUSES:
            total_approved += amount
        if status == BudgetItem.Status.PURCHASED:
            total_spent += amount
        by_category[category] = by_category.get(category, ZERO) + amount
        by_status[status] = by_status.get(status, ZERO) + amount

    return FinancialSummary(
        total_budget=total_budget,
        total_approved=total_approved,
        total_spent=total_spent,
        item_count=item_count,
        category_breakdown=by_category,
        status_breakdown=by_status,
    )


def _period_queryset(date_from, date_to):
    if date_from and date_to and date_from > date_to:
        raise InvalidInput("date_from must not be after date_to.", field="date_from")
    qs = BudgetItem.objects.all()
    if date_from:
        qs = qs.filter(event__date__gte=date_from)
    if date_to:
        qs = qs.filter(event__date__lte=date_to)
    return qs


@storage_boundary
def compute_financial_summary(event_id=None, date_from=None, date_to=None) -> FinancialSummary:
    """Summary for one event, or for every event dated inside [date_from, date_to]."""
    if event_id is not None and (date_from or date_to):
        raise InvalidInput("Pass either event_id or a date range, not both.")

    if event_id is not None:
        if not Event.objects.filter(pk=event_id).exists():
            raise NotFound("Event", event_id)
        qs = BudgetItem.objects.filter(event_id=event_id)
    else:
        qs = _period_queryset(date_from, date_to)

    return summarize(qs.values(*SUMMARY_FIELDS))


@storage_boundary
def summaries_by_event(date_from=None, date_to=None):
    """Per-event summaries for events in the period, plus the total over all of them.

    Returns ``(rows, total)`` where rows is a list of (Event, FinancialSummary)
    newest event first, including events without budget items.
    """
    with transaction.atomic():
        events = Event.objects.all()
        if date_from:
            events = events.filter(date__gte=date_from)
        if date_to:
            events = events.filter(date__lte=date_to)
        events = list(events.order_by("-date", "-id"))
        items = list(_period_queryset(date_from, date_to).values(*SUMMARY_FIELDS))

    per_event = {}
    for item in items:
        per_event.setdefault(item["event_id"], []).append(item)

    rows = [(event, summarize(per_event.get(event.pk, []))) for event in events]
    return rows, summarize(items)


def period_for_preset(preset, today=None):
    """(first_day, last_day) for the dashboard period presets."""
    today = today or timezone.localdate()

    def month_end(year, month):
        return date(year, month, calendar.monthrange(year, month)[1])

    def shift_month(year, month, delta):
        index = year * 12 + (month - 1) + delta
        return index // 12, index % 12 + 1

    if preset == "this_month":
        return date(today.year, today.month, 1), month_end(today.year, today.month)
    if preset == "last_month":
        year, month = shift_month(today.year, today.month, -1)
        return date(year, month, 1), month_end(year, month)
    if preset == "last_3_months":
        year, month = shift_month(today.year, today.month, -2)
        return date(year, month, 1), month_end(today.year, today.month)
    if preset == "this_year":
        return date(today.year, 1, 1), date(today.year, 12, 31)
    raise InvalidInput(f"Unknown period preset {preset!r}.", field="preset", allowed=list(PRESETS))

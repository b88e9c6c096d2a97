from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods

from budget.filters import BudgetItemFilter
from budget.services.items import (
    EDITABLE_FIELDS,
    budget_items_queryset,
    create_budget_item,
    delete_budget_item,
    transition_budget_item,
    update_budget_item,
)
from budget.services.summary import compute_financial_summary, period_for_preset, summaries_by_event
from core.api import ledger_api, money, parse_int, parse_iso_date, parse_quantity, require_param
from core.exceptions import InvalidInput
from core.retry import call_with_retry


def _item_json(item):
    return {
        "id": item.id,
        "event_id": item.event_id,
        "name": item.name,
        "description": item.description,
        "category": item.category,
        "quantity": item.quantity,
        "unit_price": money(item.unit_price),
        "total_price": money(item.total_price),
        "status": item.status,
        "supplier": item.supplier,
        "approved_at": item.approved_at.isoformat() if item.approved_at else None,
        "created_at": item.created_at.isoformat(),
        "updated_at": item.updated_at.isoformat(),
    }


def _period_params(params):
    """(date_from, date_to) from ?preset=... or ?date_from=&date_to=."""
    preset = params.get("preset")
    if preset:
        return period_for_preset(preset)
    date_from = parse_iso_date(params["date_from"], "date_from") if params.get("date_from") else None
    date_to = parse_iso_date(params["date_to"], "date_to") if params.get("date_to") else None
    return date_from, date_to


@login_required
@require_http_methods(["GET", "POST"])
@ledger_api
def api_budget_items(request, pk: int):
    """GET: list an event's budget items. POST: create one."""
    if request.method == "GET":
        filterset = BudgetItemFilter(request.GET, queryset=budget_items_queryset(pk))
        if not filterset.is_valid():
            raise InvalidInput("Invalid filter.", errors=filterset.errors.get_json_data())
        return JsonResponse({"results": [_item_json(i) for i in filterset.qs]})

    data = request.POST
    if "total_price" in data:
        raise InvalidInput("total_price is computed from quantity and unit_price.", field="total_price")
    item = call_with_retry(
        create_budget_item,
        pk,
        name=data.get("name", ""),
        category=data.get("category", ""),
        quantity=parse_quantity(require_param(data, "quantity")),
        unit_price=require_param(data, "unit_price"),
        description=data.get("description", ""),
        supplier=data.get("supplier", ""),
        by=request.user,
    )
    return JsonResponse(_item_json(item), status=201)


@login_required
@require_http_methods(["POST"])
@ledger_api
def api_update_budget_item(request, pk: int):
    data = request.POST.copy()
    data.pop("csrfmiddlewaretoken", None)
    unknown = [key for key in data if key not in EDITABLE_FIELDS and key != "status"]
    if unknown:
        raise InvalidInput(f"Fields cannot be updated: {', '.join(sorted(unknown))}.", fields=sorted(unknown))

    changes = {key: data[key] for key in data}
    if "quantity" in changes:
        changes["quantity"] = parse_quantity(changes["quantity"])

    item = call_with_retry(update_budget_item, pk, by=request.user, **changes)
    return JsonResponse(_item_json(item))


@login_required
@require_http_methods(["POST"])
@ledger_api
def api_transition_budget_item(request, pk: int):
    status = require_param(request.POST, "status")
    item = call_with_retry(transition_budget_item, pk, status, by=request.user)
    return JsonResponse(_item_json(item))


@login_required
@require_http_methods(["POST"])
@ledger_api
def api_delete_budget_item(request, pk: int):
    call_with_retry(delete_budget_item, pk)
    return JsonResponse({"id": pk, "deleted": True})


@login_required
@require_http_methods(["GET"])
@ledger_api
def api_financial_summary(request):
    """?event_id=..., or a period (?date_from=&date_to= or ?preset=this_month)."""
    if request.GET.get("event_id"):
        summary = call_with_retry(compute_financial_summary, event_id=parse_int(request.GET["event_id"], "event_id"))
    else:
        date_from, date_to = _period_params(request.GET)
        summary = call_with_retry(compute_financial_summary, date_from=date_from, date_to=date_to)
    return JsonResponse(summary.as_dict())


@login_required
@require_http_methods(["GET"])
@ledger_api
def api_event_summaries(request):
    date_from, date_to = _period_params(request.GET)
    rows, total = call_with_retry(summaries_by_event, date_from, date_to)
    return JsonResponse({
        "date_from": date_from.isoformat() if date_from else None,
        "date_to": date_to.isoformat() if date_to else None,
        "events": [
            {
                "id": event.id,
                "name": event.name,
                "date": event.date.isoformat(),
                "status": event.status,
                "summary": summary.as_dict(),
            }
            for event, summary in rows
        ],
        "total": total.as_dict(),
    })

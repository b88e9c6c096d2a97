from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods

from core.api import ledger_api, money, parse_int, parse_quantity, require_param
from core.retry import call_with_retry
from inventory.services.allocation import list_event_allocations, returnable_events, send_material
from inventory.services.returns import return_material
from inventory.services.stock import stock_position
from masterdata.services.products import resolve_scan_code, stock_stats


def _product_json(product):
    return {
        "id": product.id,
        "name": product.name,
        "category": product.category,
        "quantity": product.quantity,
        "min_stock": product.min_stock,
        "price": money(product.price),
        "scan_code": product.scan_code,
    }


@login_required
@require_http_methods(["POST"])
@ledger_api
def api_send_material(request):
    """Send material to an event, by product id or by the scanned label code."""
    event_id = parse_int(require_param(request.POST, "event_id"), "event_id")
    quantity = parse_quantity(require_param(request.POST, "quantity"))

    scan_code = request.POST.get("scan_code")
    if scan_code and not request.POST.get("product_id"):
        product_id = resolve_scan_code(scan_code).pk
    else:
        product_id = parse_int(require_param(request.POST, "product_id"), "product_id")

    result = call_with_retry(
        send_material,
        event_id,
        product_id,
        quantity,
        notes=request.POST.get("notes") or "",
        by=request.user,
    )
    return JsonResponse(result.as_dict(), status=201 if result.created else 200)


@login_required
@require_http_methods(["POST"])
@ledger_api
def api_return_material(request, pk: int):
    quantity = parse_quantity(require_param(request.POST, "quantity"))
    result = call_with_retry(return_material, pk, quantity, by=request.user)
    return JsonResponse(result.as_dict())


@login_required
@require_http_methods(["GET"])
@ledger_api
def api_event_allocations(request, pk: int):
    data = []
    for a in list_event_allocations(pk):
        data.append({
            "id": a.id,
            "event_id": a.event_id,
            "quantity_sent": a.quantity_sent,
            "notes": a.notes,
            "sent_at": a.sent_at.isoformat(),
            "product": _product_json(a.product),
        })
    return JsonResponse({"results": data})


@login_required
@require_http_methods(["GET"])
@ledger_api
def api_returnable_events(request):
    data = [
        {"id": e.id, "name": e.name, "date": e.date.isoformat(), "status": e.status}
        for e in returnable_events()
    ]
    return JsonResponse({"results": data})


@login_required
@require_http_methods(["GET"])
@ledger_api
def api_resolve_scan_code(request, code: str):
    return JsonResponse(_product_json(resolve_scan_code(code)))


@login_required
@require_http_methods(["GET"])
@ledger_api
def api_stock_position(request, pk: int):
    position = stock_position(pk)
    return JsonResponse({
        "product_id": position.product_id,
        "on_hand": position.on_hand,
        "allocated": position.allocated,
        "total_owned": position.total_owned,
    })


@login_required
@require_http_methods(["GET"])
@ledger_api
def api_stock_stats(request):
    return JsonResponse(stock_stats().as_dict())

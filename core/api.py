"""Small helpers shared by the JSON function views."""

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from functools import wraps

from django.http import JsonResponse
from django.utils.dateparse import parse_date

from core.exceptions import InvalidInput, InvalidQuantity, LedgerError

logger = logging.getLogger(__name__)


def ledger_api(view):
    """Render LedgerError as a JSON error body with the error's status code."""

    @wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except LedgerError as exc:
            logger.warning("%s %s rejected: %s", request.method, request.path, exc.code)
            return JsonResponse(exc.as_dict(), status=exc.http_status)

    return wrapper


def require_param(data, name):
    value = data.get(name)
    if value in (None, ""):
        raise InvalidInput(f"Missing parameter: {name}", field=name)
    return value


def parse_int(value, name):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"{name} must be an integer.", field=name)


def parse_quantity(value, name="quantity"):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidQuantity(f"{name} must be a whole number.", field=name)


def parse_decimal(value, name):
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidInput(f"{name} must be a number.", field=name)


def parse_iso_date(value, name) -> date:
    try:
        parsed = parse_date(value or "")
    except ValueError:
        parsed = None
    if parsed is None:
        raise InvalidInput(f"{name} must be an ISO date (YYYY-MM-DD).", field=name)
    return parsed


def money(value):
    """Decimal → string, so JSON keeps exact cents."""
    return str(value) if value is not None else None

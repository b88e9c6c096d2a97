import pytest
from django.test import override_settings

from core.exceptions import (
    ConcurrencyConflict,
    InsufficientStock,
    InvalidQuantity,
    NotFound,
    StorageUnavailable,
)
from core.retry import call_with_retry


class Flaky:
    """Raises the queued errors in order, then returns "ok"."""

    __name__ = "flaky"

    def __init__(self, *errors):
        self.errors = list(errors)
        self.calls = 0

    def __call__(self, *args, **kwargs):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return "ok"


def test_conflict_is_retried_once():
    func = Flaky(ConcurrencyConflict("lost race"))
    assert call_with_retry(func, retries=0, sleep=lambda s: None) == "ok"
    assert func.calls == 2


def test_second_conflict_is_raised():
    func = Flaky(ConcurrencyConflict("one"), ConcurrencyConflict("two"))
    with pytest.raises(ConcurrencyConflict):
        call_with_retry(func, retries=0, sleep=lambda s: None)
    assert func.calls == 2


def test_storage_errors_back_off_then_give_up():
    sleeps = []
    func = Flaky(*[StorageUnavailable("down")] * 5)
    with pytest.raises(StorageUnavailable):
        call_with_retry(func, retries=2, backoff=0.5, sleep=sleeps.append)
    assert func.calls == 3
    assert sleeps == [0.5, 1.0]


def test_storage_recovers_within_budget():
    sleeps = []
    func = Flaky(StorageUnavailable("blip"))
    assert call_with_retry(func, retries=3, backoff=0.1, sleep=sleeps.append) == "ok"
    assert sleeps == [0.1]


@pytest.mark.parametrize("error", [
    InsufficientStock(1, requested=5, available=2),
    InvalidQuantity("bad"),
    NotFound("Product", 9),
])
def test_domain_errors_are_not_retried(error):
    func = Flaky(error)
    with pytest.raises(type(error)):
        call_with_retry(func, retries=3, sleep=lambda s: None)
    assert func.calls == 1


@override_settings(LEDGER_STORAGE_RETRIES=1, LEDGER_RETRY_BACKOFF_SECONDS=2.0)
def test_defaults_come_from_settings():
    sleeps = []
    func = Flaky(StorageUnavailable("a"), StorageUnavailable("b"))
    with pytest.raises(StorageUnavailable):
        call_with_retry(func, sleep=sleeps.append)
    assert sleeps == [2.0]


def test_error_payloads_are_specific():
    err = InsufficientStock(7, requested=4, available=3)
    assert err.as_dict()["error"] == "insufficient_stock"
    assert err.as_dict()["available"] == 3
    assert err.http_status == 409

    err = InvalidQuantity("too many", max_returnable=2)
    assert err.as_dict() == {"error": "invalid_quantity", "message": "too many", "max_returnable": 2}
    assert isinstance(err, ValueError)

    assert NotFound("Allocation", 5).http_status == 404
    assert StorageUnavailable("x").http_status == 503

from datetime import date
from unittest import mock

import pytest
from django.db import IntegrityError, OperationalError
from django.db.models import Sum
from django.test import TestCase

from core.exceptions import (
    ConcurrencyConflict,
    EventNotOpen,
    InsufficientStock,
    InvalidQuantity,
    NotFound,
    StorageUnavailable,
)
from inventory.models import Allocation, StockMove
from inventory.services.allocation import list_event_allocations, returnable_events, send_material
from inventory.services.returns import return_material
from inventory.services.stock import adjust_quantity, get_quantity, stock_position
from masterdata.models import Event, Product
from masterdata.services.events import complete_event, start_event

pytestmark = pytest.mark.django_db


def make_product(quantity=10, name="Folding Chair"):
    return Product.objects.create(name=name, category="Furniture", quantity=quantity)


def make_event(name="Wedding", day=date(2026, 6, 20)):
    return Event.objects.create(name=name, date=day)


def total_owned(product):
    allocated = Allocation.objects.filter(product=product).aggregate(t=Sum("quantity_sent"))["t"] or 0
    return get_quantity(product.pk) + allocated


class StockStoreTests(TestCase):
    def setUp(self):
        self.product = make_product(5)

    def test_adjust_up_and_down(self):
        self.assertEqual(adjust_quantity(self.product.pk, 3), 8)
        self.assertEqual(adjust_quantity(self.product.pk, -8), 0)
        self.assertEqual(get_quantity(self.product.pk), 0)

    def test_cannot_go_negative(self):
        with self.assertRaises(InsufficientStock) as ctx:
            adjust_quantity(self.product.pk, -6)
        self.assertEqual(ctx.exception.details["available"], 5)
        self.assertEqual(ctx.exception.details["requested"], 6)
        self.assertEqual(get_quantity(self.product.pk), 5)

    def test_unknown_product(self):
        with self.assertRaises(NotFound):
            get_quantity(999999)
        with self.assertRaises(NotFound):
            adjust_quantity(999999, -1)
        with self.assertRaises(NotFound):
            adjust_quantity(999999, 1)

    def test_stale_instance_does_not_matter(self):
        stale = Product.objects.get(pk=self.product.pk)
        adjust_quantity(self.product.pk, -4)
        self.assertEqual(stale.quantity, 5)
        with self.assertRaises(InsufficientStock):
            adjust_quantity(self.product.pk, -2)

    def test_stock_position(self):
        event = make_event()
        send_material(event.pk, self.product.pk, 2)
        position = stock_position(self.product.pk)
        self.assertEqual((position.on_hand, position.allocated, position.total_owned), (3, 2, 5))


class SendMaterialTests(TestCase):
    def setUp(self):
        self.product = make_product(10)
        self.event = make_event()

    def test_first_send_creates_allocation(self):
        result = send_material(self.event.pk, self.product.pk, 4)

        self.assertTrue(result.created)
        self.assertEqual(result.on_hand, 6)
        self.assertEqual(result.quantity_sent, 4)
        allocation = Allocation.objects.get()
        self.assertEqual((allocation.event_id, allocation.product_id, allocation.quantity_sent),
                         (self.event.pk, self.product.pk, 4))

    def test_repeat_send_accumulates_on_one_row(self):
        send_material(self.event.pk, self.product.pk, 4)
        result = send_material(self.event.pk, self.product.pk, 3)

        self.assertFalse(result.created)
        self.assertEqual(result.quantity_sent, 7)
        self.assertEqual(Allocation.objects.count(), 1)
        self.assertEqual(get_quantity(self.product.pk), 3)

    def test_sending_exactly_all_stock(self):
        result = send_material(self.event.pk, self.product.pk, 10)
        self.assertEqual(result.on_hand, 0)

    def test_sending_more_than_on_hand_changes_nothing(self):
        with self.assertRaises(InsufficientStock) as ctx:
            send_material(self.event.pk, self.product.pk, 11)

        self.assertEqual(ctx.exception.details["available"], 10)
        self.assertEqual(get_quantity(self.product.pk), 10)
        self.assertFalse(Allocation.objects.exists())
        self.assertFalse(StockMove.objects.exists())

    def test_bad_quantities(self):
        for quantity in (0, -1, True, "3", 2.5, None, 2_147_483_648, 10 ** 19):
            with self.subTest(quantity=quantity):
                with self.assertRaises(InvalidQuantity):
                    send_material(self.event.pk, self.product.pk, quantity)
        self.assertEqual(get_quantity(self.product.pk), 10)

    def test_unknown_event_or_product(self):
        with self.assertRaises(NotFound):
            send_material(999999, self.product.pk, 1)
        with self.assertRaises(NotFound):
            send_material(self.event.pk, 999999, 1)
        self.assertFalse(Allocation.objects.exists())

    def test_active_event_accepts_material(self):
        start_event(self.event.pk)
        send_material(self.event.pk, self.product.pk, 1)
        self.assertEqual(get_quantity(self.product.pk), 9)

    def test_completed_event_refuses_material(self):
        start_event(self.event.pk)
        complete_event(self.event.pk)
        with self.assertRaises(EventNotOpen):
            send_material(self.event.pk, self.product.pk, 1)
        self.assertEqual(get_quantity(self.product.pk), 10)

    def test_failure_after_decrement_rolls_back(self):
        with mock.patch("inventory.services.allocation.record_move", side_effect=RuntimeError("boom")):
            with self.assertRaises(RuntimeError):
                send_material(self.event.pk, self.product.pk, 4)

        self.assertEqual(get_quantity(self.product.pk), 10)
        self.assertFalse(Allocation.objects.exists())

    def test_lost_insert_race_is_a_conflict(self):
        with mock.patch.object(Allocation.objects, "create", side_effect=IntegrityError("duplicate key")):
            with self.assertRaises(ConcurrencyConflict):
                send_material(self.event.pk, self.product.pk, 4)

        self.assertEqual(get_quantity(self.product.pk), 10)

    def test_storage_failure_is_reported_as_unavailable(self):
        with mock.patch("inventory.services.allocation.adjust_quantity", side_effect=OperationalError("timeout")):
            with self.assertRaises(StorageUnavailable):
                send_material(self.event.pk, self.product.pk, 4)

    def test_moves_are_recorded(self):
        send_material(self.event.pk, self.product.pk, 4)
        move = StockMove.objects.get()
        self.assertEqual((move.kind, move.qty, move.on_hand_after), (StockMove.Kind.SEND, -4, 6))


class ReturnMaterialTests(TestCase):
    def setUp(self):
        self.product = make_product(10)
        self.event = make_event()
        self.allocation_id = send_material(self.event.pk, self.product.pk, 7).allocation_id

    def test_partial_return(self):
        result = return_material(self.allocation_id, 3)

        self.assertEqual(result.remaining, 4)
        self.assertFalse(result.closed)
        self.assertEqual(result.on_hand, 6)
        self.assertEqual(Allocation.objects.get(pk=self.allocation_id).quantity_sent, 4)

    def test_full_return_deletes_allocation(self):
        result = return_material(self.allocation_id, 7)

        self.assertTrue(result.closed)
        self.assertEqual(get_quantity(self.product.pk), 10)
        self.assertFalse(Allocation.objects.filter(pk=self.allocation_id).exists())

    def test_cannot_return_more_than_allocated(self):
        with self.assertRaises(InvalidQuantity) as ctx:
            return_material(self.allocation_id, 8)

        self.assertEqual(ctx.exception.details["max_returnable"], 7)
        self.assertEqual(get_quantity(self.product.pk), 3)
        self.assertEqual(Allocation.objects.get(pk=self.allocation_id).quantity_sent, 7)

    def test_bad_quantity(self):
        with self.assertRaises(InvalidQuantity):
            return_material(self.allocation_id, 0)

    def test_unknown_allocation(self):
        with self.assertRaises(NotFound):
            return_material(999999, 1)

    def test_returned_allocation_is_gone(self):
        return_material(self.allocation_id, 7)
        with self.assertRaises(NotFound):
            return_material(self.allocation_id, 1)

    def test_completed_event_can_still_return(self):
        start_event(self.event.pk)
        complete_event(self.event.pk)
        return_material(self.allocation_id, 7)
        self.assertEqual(get_quantity(self.product.pk), 10)

    def test_failure_after_increment_rolls_back(self):
        with mock.patch("inventory.services.returns.record_move", side_effect=RuntimeError("boom")):
            with self.assertRaises(RuntimeError):
                return_material(self.allocation_id, 3)

        self.assertEqual(get_quantity(self.product.pk), 3)
        self.assertEqual(Allocation.objects.get(pk=self.allocation_id).quantity_sent, 7)
        self.assertEqual(StockMove.objects.filter(kind=StockMove.Kind.RETURN).count(), 0)

    def test_allocation_changed_underneath_is_a_conflict(self):
        # The conditional delete/update finds no matching row
        for quantity in (3, 7):
            with self.subTest(quantity=quantity):
                with mock.patch.object(Allocation.objects, "filter", return_value=Allocation.objects.none()):
                    with self.assertRaises(ConcurrencyConflict):
                        return_material(self.allocation_id, quantity)

                self.assertEqual(get_quantity(self.product.pk), 3)
                self.assertEqual(Allocation.objects.get(pk=self.allocation_id).quantity_sent, 7)

    def test_return_move_is_recorded(self):
        return_material(self.allocation_id, 2)
        move = StockMove.objects.filter(kind=StockMove.Kind.RETURN).get()
        self.assertEqual((move.qty, move.on_hand_after), (2, 5))


class ClosedSystemTests(TestCase):
    """On-hand plus everything allocated never changes through sends and returns."""

    def setUp(self):
        self.chairs = make_product(10, "Folding Chair")
        self.tables = make_product(4, "Round Table")
        self.wedding = make_event("Wedding")
        self.fair = make_event("Fair", date(2026, 8, 1))

    def test_send_then_return_restores_stock(self):
        allocation_id = send_material(self.wedding.pk, self.chairs.pk, 6).allocation_id
        return_material(allocation_id, 6)

        self.assertEqual(get_quantity(self.chairs.pk), 10)
        self.assertFalse(Allocation.objects.exists())

    def test_accumulate_then_partial_returns(self):
        # 10 on hand: send 4, send 3 (on hand 3), return 4, return 3
        first = send_material(self.wedding.pk, self.chairs.pk, 4)
        second = send_material(self.wedding.pk, self.chairs.pk, 3)
        self.assertEqual(first.allocation_id, second.allocation_id)
        self.assertEqual(get_quantity(self.chairs.pk), 3)

        return_material(first.allocation_id, 4)
        self.assertEqual(get_quantity(self.chairs.pk), 7)
        return_material(first.allocation_id, 3)
        self.assertEqual(get_quantity(self.chairs.pk), 10)
        self.assertFalse(Allocation.objects.exists())

    def test_total_owned_is_invariant(self):
        steps = [
            ("send", self.wedding, self.chairs, 4),
            ("send", self.fair, self.chairs, 5),
            ("send", self.wedding, self.tables, 4),
            ("send", self.fair, self.chairs, 2),  # insufficient, rejected
            ("return", self.wedding, self.chairs, 2),
            ("return", self.wedding, self.tables, 5),  # over-return, rejected
            ("send", self.fair, self.chairs, 2),
            ("return", self.fair, self.chairs, 7),
        ]
        for op, event, product, quantity in steps:
            try:
                if op == "send":
                    send_material(event.pk, product.pk, quantity)
                else:
                    allocation = Allocation.objects.get(event=event, product=product)
                    return_material(allocation.pk, quantity)
            except (InsufficientStock, InvalidQuantity):
                pass
            self.assertEqual(total_owned(self.chairs), 10)
            self.assertEqual(total_owned(self.tables), 4)

        self.assertEqual(get_quantity(self.chairs.pk), 8)
        self.assertEqual(get_quantity(self.tables.pk), 0)

    def test_stock_moves_replay_to_current_stock(self):
        allocation_id = send_material(self.wedding.pk, self.chairs.pk, 4).allocation_id
        send_material(self.wedding.pk, self.chairs.pk, 3)
        return_material(allocation_id, 2)
        return_material(allocation_id, 5)

        moves = list(StockMove.objects.filter(product=self.chairs).order_by("id"))
        self.assertEqual([m.qty for m in moves], [-4, -3, 2, 5])
        self.assertEqual([m.on_hand_after for m in moves], [6, 3, 5, 10])
        self.assertEqual(10 + sum(m.qty for m in moves), get_quantity(self.chairs.pk))


class QueryTests(TestCase):
    def test_allocations_and_returnable_events(self):
        chairs = make_product(10, "Folding Chair")
        arch = make_product(2, "Flower Arch")
        wedding = make_event("Wedding")
        make_event("Empty", date(2026, 9, 1))

        send_material(wedding.pk, chairs.pk, 2)
        send_material(wedding.pk, arch.pk, 1)

        names = [a.product.name for a in list_event_allocations(wedding.pk)]
        self.assertEqual(names, ["Flower Arch", "Folding Chair"])
        self.assertEqual(returnable_events(), [wedding])

    def test_allocations_for_unknown_event(self):
        with self.assertRaises(NotFound):
            list_event_allocations(999999)

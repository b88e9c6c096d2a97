from datetime import date

import pytest
from django.contrib.auth import get_user_model
from django.test import TestCase
from django_fsm_log.models import StateLog

from core.exceptions import InvalidInput, InvalidTransition, NotFound
from masterdata.models import Event
from masterdata.services.events import complete_event, events_in_period, open_events, start_event

pytestmark = pytest.mark.django_db


class EventLifecycleTests(TestCase):
    def setUp(self):
        self.event = Event.objects.create(name="Summer Party", date=date(2026, 7, 4))

    def test_new_event_is_planned_and_open(self):
        self.assertEqual(self.event.status, Event.Status.PLANNED)
        self.assertTrue(self.event.is_open)

    def test_forward_transitions(self):
        user = get_user_model().objects.create_user(username="ops", password="pass")

        start_event(self.event.pk, by=user)
        self.assertEqual(Event.objects.get(pk=self.event.pk).status, Event.Status.ACTIVE)

        complete_event(self.event.pk, by=user)
        event = Event.objects.get(pk=self.event.pk)
        self.assertEqual(event.status, Event.Status.COMPLETED)
        self.assertFalse(event.is_open)

        logs = StateLog.objects.for_(event)
        self.assertEqual(sorted(log.state for log in logs), ["active", "completed"])
        self.assertTrue(all(log.by == user for log in logs))

    def test_cannot_complete_a_planned_event(self):
        with self.assertRaises(InvalidTransition) as ctx:
            complete_event(self.event.pk)
        self.assertEqual(ctx.exception.details, {"current": "planned", "target": "completed"})
        self.assertEqual(Event.objects.get(pk=self.event.pk).status, Event.Status.PLANNED)

    def test_completed_event_cannot_restart(self):
        start_event(self.event.pk)
        complete_event(self.event.pk)
        with self.assertRaises(InvalidTransition):
            start_event(self.event.pk)

    def test_status_cannot_be_assigned_directly(self):
        with self.assertRaises(AttributeError):
            self.event.status = Event.Status.COMPLETED

    def test_missing_event(self):
        with self.assertRaises(NotFound):
            start_event(424242)


class EventQueryTests(TestCase):
    def setUp(self):
        self.spring = Event.objects.create(name="Spring Fair", date=date(2026, 4, 10))
        self.summer = Event.objects.create(name="Summer Party", date=date(2026, 7, 4))
        self.autumn = Event.objects.create(name="Autumn Gala", date=date(2026, 10, 2))
        start_event(self.autumn.pk)
        complete_event(self.autumn.pk)

    def test_open_events_skip_completed(self):
        self.assertEqual(open_events(), [self.spring, self.summer])

    def test_events_in_period_is_inclusive(self):
        self.assertEqual(events_in_period(date(2026, 4, 10), date(2026, 7, 4)), [self.summer, self.spring])

    def test_events_in_period_open_ended(self):
        self.assertEqual(events_in_period(date_from=date(2026, 7, 1)), [self.autumn, self.summer])

    def test_reversed_period_is_rejected(self):
        with self.assertRaises(InvalidInput):
            events_in_period(date(2026, 12, 1), date(2026, 1, 1))

import logging

from django.db import transaction
from django_fsm import TransitionNotAllowed

from core.db import storage_boundary
from core.exceptions import InvalidInput, InvalidTransition, NotFound
from masterdata.models import Event

logger = logging.getLogger(__name__)


def _transition(event_id, method_name, target, by=None):
    event = Event.objects.select_for_update().filter(pk=event_id).first()
    if event is None:
        raise NotFound("Event", event_id)

    current = event.status
    try:
        getattr(event, method_name)(by=by)
    except TransitionNotAllowed:
        raise InvalidTransition("Event", event_id, current, target)

    event.save()
    logger.info("Event %s moved %s -> %s", event_id, current, event.status)
    return event


@storage_boundary
@transaction.atomic
def start_event(event_id, by=None) -> Event:
    return _transition(event_id, "start", Event.Status.ACTIVE, by=by)


@storage_boundary
@transaction.atomic
def complete_event(event_id, by=None) -> Event:
    return _transition(event_id, "complete", Event.Status.COMPLETED, by=by)


@storage_boundary
def open_events():
    """Events material can be sent to (planned or active)."""
    return list(Event.objects.filter(status__in=Event.OPEN_STATUSES).order_by("date", "id"))


@storage_boundary
def events_in_period(date_from=None, date_to=None):
    if date_from and date_to and date_from > date_to:
        raise InvalidInput("date_from must not be after date_to.", field="date_from")
    qs = Event.objects.all()
    if date_from:
        qs = qs.filter(date__gte=date_from)
    if date_to:
        qs = qs.filter(date__lte=date_to)
    return list(qs.order_by("-date", "-id"))

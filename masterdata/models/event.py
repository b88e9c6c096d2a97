from django.db import models
from django_fsm import FSMField, transition
from django_fsm_log.decorators import fsm_log_by
from simple_history.models import HistoricalRecords


class Event(models.Model):
    """An event that equipment is sent to and budget is spent on.

    Lifecycle is forward only: planned -> active -> completed.
    State is controlled by django-fsm to prevent manual status changes.
    """

    class Status(models.TextChoices):
        PLANNED = "planned", "Planned"
        ACTIVE = "active", "Active"
        COMPLETED = "completed", "Completed"

    OPEN_STATUSES = (Status.PLANNED, Status.ACTIVE)

    name = models.CharField(max_length=255)
    date = models.DateField()
    location = models.CharField(max_length=255, blank=True, default="")
    description = models.TextField(blank=True, default="")

    status = FSMField(default=Status.PLANNED, choices=Status.choices, protected=True, editable=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    history = HistoricalRecords()

    class Meta:
        ordering = ("-date", "-id")
        indexes = [models.Index(fields=["status", "date"])]

    def __str__(self):
        return f"{self.name} ({self.date})"

    @property
    def is_open(self) -> bool:
        return self.status in self.OPEN_STATUSES

    @fsm_log_by
    @transition(field=status, source=Status.PLANNED, target=Status.ACTIVE)
    def start(self, by=None):
        pass

    @fsm_log_by
    @transition(field=status, source=Status.ACTIVE, target=Status.COMPLETED)
    def complete(self, by=None):
        pass

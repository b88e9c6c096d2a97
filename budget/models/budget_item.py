from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone
from django_fsm import FSMField, transition
from django_fsm_log.decorators import fsm_log_by
from simple_history.models import HistoricalRecords

from core.permissions import actor_or_none


class BudgetItem(models.Model):
    """One planned or realized expense line of an event.

    ``total_price`` is derived: save() always recomputes it from
    quantity x unit_price, so it can never drift from its inputs.

    Status is a state machine (django-fsm, protected field):

        pending --approve--> approved --mark_purchased--> purchased
        pending --reject---> rejected

    rejected and purchased are terminal. Nothing moves backwards.
    """

    class Category(models.TextChoices):
        FOOD = "food", "Food"
        DECORATION = "decoration", "Decoration"
        SOUND_LIGHTING = "sound-lighting", "Sound & lighting"
        EQUIPMENT = "equipment", "Equipment"
        TRANSPORT = "transport", "Transport"
        STAFF = "staff", "Staff"
        MARKETING = "marketing", "Marketing"
        OTHER = "other", "Other"

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        APPROVED = "approved", "Approved"
        REJECTED = "rejected", "Rejected"
        PURCHASED = "purchased", "Purchased"

    # source -> {target: transition method}
    TRANSITIONS = {
        Status.PENDING: {Status.APPROVED: "approve", Status.REJECTED: "reject"},
        Status.APPROVED: {Status.PURCHASED: "mark_purchased"},
        Status.REJECTED: {},
        Status.PURCHASED: {},
    }

    # Statuses whose totals count as approved budget.
    APPROVED_STATUSES = (Status.APPROVED, Status.PURCHASED)

    event = models.ForeignKey("masterdata.Event", on_delete=models.CASCADE, related_name="budget_items")

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    category = models.CharField(max_length=20, choices=Category.choices, default=Category.OTHER)

    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total_price = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"), editable=False)

    status = FSMField(default=Status.PENDING, choices=Status.choices, protected=True, editable=False)
    supplier = models.CharField(max_length=255, blank=True, default="")

    approved_at = models.DateTimeField(null=True, blank=True)
    approved_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    history = HistoricalRecords()

    class Meta:
        ordering = ("-created_at", "-id")
        indexes = [models.Index(fields=["event", "status"])]
        constraints = [
            models.CheckConstraint(condition=models.Q(quantity__gte=1), name="budget_item_quantity_min_1"),
            models.CheckConstraint(condition=models.Q(unit_price__gte=Decimal("0.00")), name="budget_item_unit_price_non_negative"),
        ]

    def __str__(self):
        return f"{self.name} ({self.get_status_display()})"

    def compute_total(self) -> Decimal:
        return (Decimal(self.quantity) * Decimal(self.unit_price)).quantize(Decimal("0.01"))

    def save(self, *args, **kwargs):
        self.total_price = self.compute_total()

        update_fields = kwargs.get("update_fields")
        if update_fields is not None and {"quantity", "unit_price"} & set(update_fields):
            kwargs["update_fields"] = set(update_fields) | {"total_price"}

        super().save(*args, **kwargs)

    @classmethod
    def transition_method(cls, source, target):
        """Name of the method moving source -> target, or None if not allowed."""
        return cls.TRANSITIONS.get(source, {}).get(target)

    @fsm_log_by
    @transition(field=status, source=Status.PENDING, target=Status.APPROVED)
    def approve(self, by=None):
        self.approved_at = timezone.now()
        self.approved_by = actor_or_none(by)

    @fsm_log_by
    @transition(field=status, source=Status.PENDING, target=Status.REJECTED)
    def reject(self, by=None):
        pass

    @fsm_log_by
    @transition(field=status, source=Status.APPROVED, target=Status.PURCHASED)
    def mark_purchased(self, by=None):
        pass

from django.conf import settings
from django.db import models
from simple_history.models import HistoricalRecords


class Allocation(models.Model):
    """Quantity of one product currently out at one event.

    One row per (event, product): repeated sends accumulate into it, returns
    draw it down, and a full return deletes it. Rows are only written by
    inventory.services, inside the same transaction that moves the stock.
    """

    event = models.ForeignKey("masterdata.Event", on_delete=models.PROTECT, related_name="allocations")
    product = models.ForeignKey("masterdata.Product", on_delete=models.PROTECT, related_name="allocations")

    quantity_sent = models.PositiveIntegerField()
    notes = models.TextField(blank=True, default="")

    sent_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    history = HistoricalRecords()

    class Meta:
        ordering = ["-sent_at", "-id"]
        constraints = [
            models.UniqueConstraint(fields=["event", "product"], name="allocation_unique_event_product"),
            models.CheckConstraint(condition=models.Q(quantity_sent__gt=0), name="allocation_quantity_positive"),
        ]

    def __str__(self):
        return f"{self.quantity_sent} x {self.product} @ {self.event}"


class StockMove(models.Model):
    """Audit trail for stock movements between the warehouse and events.

    This is the stock history. The ledger moves Product.quantity and
    Allocation.quantity_sent with conditional queryset updates, which do not
    go through save() and so write no simple_history rows. Every send and
    return writes exactly one StockMove in the same transaction instead.
    """

    class Kind(models.TextChoices):
        SEND = "send", "Sent to event"
        RETURN = "return", "Returned to stock"

    product = models.ForeignKey("masterdata.Product", on_delete=models.CASCADE, related_name="stock_moves")
    event = models.ForeignKey("masterdata.Event", on_delete=models.CASCADE, related_name="stock_moves")

    kind = models.CharField(max_length=10, choices=Kind.choices)
    # Signed change of on-hand stock: negative for sends, positive for returns.
    qty = models.IntegerField()
    on_hand_after = models.PositiveIntegerField()

    created_at = models.DateTimeField(auto_now_add=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [models.Index(fields=["product", "created_at"])]

    def __str__(self):
        return f"{self.get_kind_display()} {abs(self.qty)} x {self.product}"

from django.contrib import admin, messages
from guardian.admin import GuardedModelAdmin
from simple_history.admin import SimpleHistoryAdmin

from core.exceptions import LedgerError
from inventory.models import Allocation, StockMove
from inventory.services.returns import return_material


class ReadOnlyAdminMixin:
    """Rows owned by the stock ledger: visible in admin, never edited there."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Allocation)
class AllocationAdmin(ReadOnlyAdminMixin, SimpleHistoryAdmin, GuardedModelAdmin):
    list_display = ("event", "product", "quantity_sent", "sent_at", "updated_at")
    list_filter = ("event__status", "product__category")
    search_fields = ("event__name", "product__name", "product__scan_code")
    list_select_related = ("event", "product")

    actions = ["return_all"]

    @admin.action(description="Return everything to stock")
    def return_all(self, request, queryset):
        ok = 0
        for allocation in queryset:
            try:
                return_material(allocation.pk, allocation.quantity_sent, by=request.user)
                ok += 1
            except LedgerError as e:
                self.message_user(request, f"{allocation}: {e.message}", level=messages.ERROR)
        if ok:
            self.message_user(request, f"Returned {ok} allocation(s) to stock.", level=messages.SUCCESS)


@admin.register(StockMove)
class StockMoveAdmin(ReadOnlyAdminMixin, GuardedModelAdmin):
    list_display = ("created_at", "kind", "product", "event", "qty", "on_hand_after", "created_by")
    list_filter = ("kind", "product__category")
    search_fields = ("product__name", "event__name")
    list_select_related = ("product", "event", "created_by")

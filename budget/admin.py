from django.contrib import admin
from django_object_actions import DjangoObjectActions, action
from guardian.admin import GuardedModelAdmin
from simple_history.admin import SimpleHistoryAdmin

from budget.models import BudgetItem
from budget.services.items import transition_budget_item
from core.admin_utils import CreatorPermsAdminMixin, LedgerActionMixin


@admin.register(BudgetItem)
class BudgetItemAdmin(LedgerActionMixin, CreatorPermsAdminMixin, DjangoObjectActions, SimpleHistoryAdmin, GuardedModelAdmin):
    finance_visible = True

    list_display = ("name", "event", "category", "quantity", "unit_price", "total_price", "status", "supplier")
    list_filter = ("status", "category", "event")
    search_fields = ("name", "supplier", "description", "event__name")
    list_select_related = ("event",)
    readonly_fields = ("total_price", "status", "approved_at", "approved_by", "created_by", "created_at", "updated_at")

    change_actions = ("approve_action", "reject_action", "purchase_action")

    def get_change_actions(self, request, object_id, form_url):
        obj = self.get_object(request, object_id)
        if not obj:
            return ()
        allowed = BudgetItem.TRANSITIONS.get(obj.status, {})
        buttons = {
            BudgetItem.Status.APPROVED: "approve_action",
            BudgetItem.Status.REJECTED: "reject_action",
            BudgetItem.Status.PURCHASED: "purchase_action",
        }
        return tuple(buttons[target] for target in allowed)

    def save_model(self, request, obj, form, change):
        if not change:
            obj.created_by = request.user
        super().save_model(request, obj, form, change)

    def _move(self, request, obj, target, success):
        self.run_ledger_action(request, transition_budget_item, obj.pk, target, by=request.user, success=success)

    @action(label="Approve", description="Approve this budget item")
    def approve_action(self, request, obj):
        self._move(request, obj, BudgetItem.Status.APPROVED, "Budget item approved.")

    @action(label="Reject", description="Reject this budget item")
    def reject_action(self, request, obj):
        self._move(request, obj, BudgetItem.Status.REJECTED, "Budget item rejected.")

    @action(label="Mark purchased", description="Record that this item was bought")
    def purchase_action(self, request, obj):
        self._move(request, obj, BudgetItem.Status.PURCHASED, "Budget item marked as purchased.")

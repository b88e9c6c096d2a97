from django.contrib import admin, messages
from django_object_actions import DjangoObjectActions, action
from guardian.admin import GuardedModelAdmin
from simple_history.admin import SimpleHistoryAdmin

from core.admin_utils import CreatorPermsAdminMixin, LedgerActionMixin
from core.exceptions import ProductInUse
from masterdata.models import Event, Product
from masterdata.services.events import complete_event, start_event
from masterdata.services.products import delete_product


@admin.register(Product)
class ProductAdmin(CreatorPermsAdminMixin, SimpleHistoryAdmin, GuardedModelAdmin):
    list_display = ("name", "category", "quantity", "min_stock", "price", "scan_code", "low_stock")
    list_filter = ("category",)
    search_fields = ("name", "scan_code", "description")
    readonly_fields = ("created_at", "updated_at")

    @admin.display(boolean=True, description="Low stock")
    def low_stock(self, obj):
        return obj.is_low_stock

    def has_delete_permission(self, request, obj=None):
        # Equipment that is out at an event cannot be deleted
        if obj is not None and obj.allocations.exists():
            return False
        return super().has_delete_permission(request, obj)

    def delete_model(self, request, obj):
        delete_product(obj.pk)

    def delete_queryset(self, request, queryset):
        for product in queryset:
            try:
                delete_product(product.pk)
            except ProductInUse as e:
                self.message_user(request, e.message, level=messages.ERROR)


@admin.register(Event)
class EventAdmin(LedgerActionMixin, DjangoObjectActions, SimpleHistoryAdmin, GuardedModelAdmin):
    list_display = ("name", "date", "location", "status")
    list_filter = ("status",)
    search_fields = ("name", "location")
    date_hierarchy = "date"
    readonly_fields = ("status", "created_at", "updated_at")

    change_actions = ("start_action", "complete_action")

    def get_change_actions(self, request, object_id, form_url):
        # Only offer the transition that is valid from the current status
        obj = self.get_object(request, object_id)
        if not obj:
            return ()
        if obj.status == Event.Status.PLANNED:
            return ("start_action",)
        if obj.status == Event.Status.ACTIVE:
            return ("complete_action",)
        return ()

    @action(label="Start event", description="Mark the event as active")
    def start_action(self, request, obj):
        self.run_ledger_action(request, start_event, obj.pk, by=request.user, success="Event started.")

    @action(label="Complete event", description="Mark the event as completed")
    def complete_action(self, request, obj):
        self.run_ledger_action(request, complete_event, obj.pk, by=request.user, success="Event completed.")

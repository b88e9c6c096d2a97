"""Admin mixins to keep admin code simple and consistent."""

from django.contrib import messages

from core.exceptions import LedgerError
from core.permissions import assign_object_perms_to_finance, assign_object_perms_to_user


class CreatorPermsAdminMixin:
    """Mixin: after save, assign guardian permissions for visibility.

    This avoids relying on signals (signals don't know the request.user).
    Set ``finance_visible = True`` to also grant the Finance group.
    """

    finance_visible = False

    def save_model(self, request, obj, form, change):
        super().save_model(request, obj, form, change)

        if not change:
            assign_object_perms_to_user(request.user, obj)
            if self.finance_visible:
                assign_object_perms_to_finance(obj)


class LedgerActionMixin:
    """Run a ledger call from an admin action and report the outcome as a message."""

    def run_ledger_action(self, request, func, *args, success="Done.", **kwargs):
        try:
            result = func(*args, **kwargs)
        except LedgerError as e:
            self.message_user(request, f"Could not complete: {e.message}", level=messages.ERROR)
            return None
        self.message_user(request, success, level=messages.SUCCESS)
        return result

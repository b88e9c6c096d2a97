"""Guardian helpers for object-level permissions.

Goal:
- When a budget item or product is created from admin, the creator gets
  object-level view/change/delete permissions on it.
- Users in the "Finance" group get the same permissions on budget items,
  since approving and purchasing is their job.

We keep this explicit and readable. No magic signal that tries to infer the user.
"""

from django.contrib.auth.models import Group
from guardian.shortcuts import assign_perm

DEFAULT_PERMS = ("view", "change", "delete")
FINANCE_GROUP = "Finance"


def assign_object_perms_to_user(user, obj, perms=DEFAULT_PERMS):
    """Assign view/change/delete perms for obj to a user."""
    if not user or not user.is_authenticated:
        return
    app_label = obj._meta.app_label
    model_name = obj._meta.model_name
    for p in perms:
        assign_perm(f"{app_label}.{p}_{model_name}", user, obj)


def assign_object_perms_to_finance(obj, perms=DEFAULT_PERMS):
    """Assign perms for obj to the Finance group, if it exists."""
    group = Group.objects.filter(name=FINANCE_GROUP).first()
    if group is None:
        return
    app_label = obj._meta.app_label
    model_name = obj._meta.model_name
    for p in perms:
        assign_perm(f"{app_label}.{p}_{model_name}", group, obj)


def actor_or_none(user):
    """Only authenticated users are recorded as the actor of a change."""
    if user is not None and getattr(user, "is_authenticated", False):
        return user
    return None

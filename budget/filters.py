import django_filters

from budget.models import BudgetItem


class BudgetItemFilter(django_filters.FilterSet):
    """Query-string filters for the budget item list (?status=approved&category=food)."""

    status = django_filters.MultipleChoiceFilter(choices=BudgetItem.Status.choices)
    category = django_filters.MultipleChoiceFilter(choices=BudgetItem.Category.choices)
    supplier = django_filters.CharFilter(lookup_expr="icontains")

    class Meta:
        model = BudgetItem
        fields = ["status", "category", "supplier"]

from django.urls import path
from . import api_views

app_name = "budget"

urlpatterns = [
    path("events/<int:pk>/items/", api_views.api_budget_items, name="api-budget-items"),
    path("items/<int:pk>/", api_views.api_update_budget_item, name="api-update-budget-item"),
    path("items/<int:pk>/transition/", api_views.api_transition_budget_item, name="api-transition-budget-item"),
    path("items/<int:pk>/delete/", api_views.api_delete_budget_item, name="api-delete-budget-item"),
    path("summary/", api_views.api_financial_summary, name="api-financial-summary"),
    path("summary/events/", api_views.api_event_summaries, name="api-event-summaries"),
]

from django.urls import path
from . import api_views

app_name = "inventory"

urlpatterns = [
    path("send/", api_views.api_send_material, name="api-send-material"),
    path("allocations/<int:pk>/return/", api_views.api_return_material, name="api-return-material"),
    path("events/returnable/", api_views.api_returnable_events, name="api-returnable-events"),
    path("events/<int:pk>/allocations/", api_views.api_event_allocations, name="api-event-allocations"),
    path("products/scan/<str:code>/", api_views.api_resolve_scan_code, name="api-resolve-scan-code"),
    path("products/<int:pk>/stock/", api_views.api_stock_position, name="api-stock-position"),
    path("stats/", api_views.api_stock_stats, name="api-stock-stats"),
]

from datetime import date

import pytest
from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse

from budget.models import BudgetItem
from budget.services.items import create_budget_item
from inventory.models import Allocation
from inventory.services.allocation import send_material
from masterdata.models import Event, Product

pytestmark = pytest.mark.django_db


class AdminSmokeTests(TestCase):
    def setUp(self):
        self.admin = get_user_model().objects.create_superuser(username="admin", password="pass", email="a@example.com")
        self.client.force_login(self.admin)
        self.product = Product.objects.create(name="Mixer 12 Channel", category="Sound & Audio", quantity=3)
        self.event = Event.objects.create(name="Gala", date=date(2026, 9, 12))
        self.item = create_budget_item(self.event.pk, name="Catering", category="food", quantity=2, unit_price="40")

    def test_changelists_render(self):
        send_material(self.event.pk, self.product.pk, 1)
        for name in (
            "admin:masterdata_product_changelist",
            "admin:masterdata_event_changelist",
            "admin:inventory_allocation_changelist",
            "admin:inventory_stockmove_changelist",
            "admin:budget_budgetitem_changelist",
        ):
            with self.subTest(name=name):
                self.assertEqual(self.client.get(reverse(name)).status_code, 200)

    def test_event_start_action(self):
        url = reverse("admin:masterdata_event_actions", args=[self.event.pk, "start_action"])
        response = self.client.get(url)
        self.assertEqual(response.status_code, 302)
        self.assertEqual(Event.objects.get(pk=self.event.pk).status, Event.Status.ACTIVE)

    def test_invalid_event_action_leaves_status(self):
        url = reverse("admin:masterdata_event_actions", args=[self.event.pk, "complete_action"])
        self.client.get(url)
        self.assertEqual(Event.objects.get(pk=self.event.pk).status, Event.Status.PLANNED)

    def test_budget_item_approve_action(self):
        url = reverse("admin:budget_budgetitem_actions", args=[self.item.pk, "approve_action"])
        self.client.get(url)
        item = BudgetItem.objects.get(pk=self.item.pk)
        self.assertEqual(item.status, BudgetItem.Status.APPROVED)
        self.assertEqual(item.approved_by, self.admin)

    def test_allocated_product_cannot_be_deleted(self):
        send_material(self.event.pk, self.product.pk, 1)
        response = self.client.get(reverse("admin:masterdata_product_delete", args=[self.product.pk]))
        self.assertEqual(response.status_code, 403)

    def test_return_all_action(self):
        send_material(self.event.pk, self.product.pk, 2)
        self.client.post(reverse("admin:inventory_allocation_changelist"), {
            "action": "return_all",
            "_selected_action": [a.pk for a in Allocation.objects.all()],
        })
        self.assertFalse(Allocation.objects.exists())
        self.assertEqual(Product.objects.get(pk=self.product.pk).quantity, 3)

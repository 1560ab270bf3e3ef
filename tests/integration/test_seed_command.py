"""The development seed command builds a usable dataset and is re-runnable."""

from __future__ import annotations

from io import StringIO

import pytest
from django.core.management import call_command

from modules.merchants.models import Merchant
from modules.orders.constants import OrderStatus
from modules.orders.models import Order

pytestmark = pytest.mark.integration


def test_seed_creates_merchant_menu_and_orders():
    out = StringIO()
    call_command("seed_data", stdout=out)

    merchant = Merchant.objects.get(slug="ah-hock-chicken-rice")
    assert merchant.is_open_for_orders
    assert merchant.products.count() == 7
    assert Order.objects.filter(merchant=merchant).count() == 12
    assert Order.objects.filter(status=OrderStatus.CANCELLED).count() == 2
    assert Order.objects.filter(status=OrderStatus.COMPLETED).count() == 2
    assert "Seed completed" in out.getvalue()


def test_seed_is_idempotent():
    call_command("seed_data", stdout=StringIO())
    out = StringIO()
    call_command("seed_data", stdout=out)

    assert Merchant.objects.count() == 1
    assert Order.objects.count() == 12
    assert "Skipping orders" in out.getvalue()

"""E2E fixtures for Playwright.

The pytest-playwright plugin provides ``page``, ``context`` and
``browser``.  Point the suite at a running server with::

    pytest -m e2e --base-url http://localhost:8000

Test data is created through ``manage.py shell`` against the server's
database, so the suite needs the same environment as the server.
"""

from __future__ import annotations

import json
import subprocess
import sys
from typing import Generator
from uuid import uuid4

import pytest
from playwright.sync_api import APIRequestContext, Playwright


@pytest.fixture(scope="session")
def base_url(request) -> str:
    return request.config.getoption("base_url") or "http://localhost:8000"


@pytest.fixture(autouse=True)
def _use_db() -> None:
    """E2E tests talk HTTP to a live server; they never touch the test database."""


@pytest.fixture(scope="session")
def api_request_context(
    playwright: Playwright, base_url: str
) -> Generator[APIRequestContext, None, None]:
    context = playwright.request.new_context(base_url=base_url)
    yield context
    context.dispose()


def _run_manage_py(command: str) -> str:
    completed = subprocess.run(
        [sys.executable, "src/manage.py", "shell", "-c", command],
        check=True,
        capture_output=True,
        text=True,
    )
    return completed.stdout.strip().splitlines()[-1] if completed.stdout.strip() else ""


_CREATE_STALL = """
import json
from decimal import Decimal
from django.contrib.auth import get_user_model
from django.utils import timezone
from modules.merchants.models import Merchant, MerchantStatus, Product
owner = get_user_model().objects.create_user(username={username!r}, password={password!r})
merchant = Merchant.objects.create(
    business_name={name!r},
    status=MerchantStatus.ACTIVE,
    approved_at=timezone.now(),
    paynow_number="91234567",
    postal_code="310123",
    delivery_fee=Decimal("3.50"),
    owner=owner,
)
product = Product.objects.create(merchant=merchant, name="Char Kway Teow", price=Decimal("6.50"))
print(json.dumps({{"merchant_id": str(merchant.id), "product_id": str(product.id)}}))
"""

_DELETE_USER = """
from django.contrib.auth import get_user_model
get_user_model().objects.filter(username={username!r}).delete()
"""


@pytest.fixture()
def stall() -> Generator[dict, None, None]:
    """An approved merchant with one product, plus its owner's credentials."""
    suffix = uuid4().hex[:8]
    username, password = f"e2e-hawker-{suffix}", "e2e-pass-123"
    created = json.loads(
        _run_manage_py(
            _CREATE_STALL.format(username=username, password=password, name=f"E2E Stall {suffix}")
        )
    )
    try:
        yield {**created, "username": username, "password": password}
    finally:
        _run_manage_py(_DELETE_USER.format(username=username))


@pytest.fixture()
def merchant_token(api_request_context, stall) -> str:
    response = api_request_context.post(
        "/api/v1/auth/token/",
        data={"username": stall["username"], "password": stall["password"]},
    )
    assert response.status == 200
    return response.json()["access"]

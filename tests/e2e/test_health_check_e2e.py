"""E2E smoke test for the health endpoint.

Run with:
    pytest -m e2e --base-url http://localhost:8000

Requires:
    pip install pytest-playwright
    playwright install chromium
"""

import json

import pytest

pytestmark = [pytest.mark.e2e]


def test_health_check_renders_json(page):
    page.goto("/health")

    data = json.loads(page.text_content("body"))
    assert data["status"] == "healthy"
    assert data["services"]["cache"]["status"] == "up"


def test_health_check_echoes_request_id(page):
    response = page.goto("/health")
    assert "x-request-id" in response.headers

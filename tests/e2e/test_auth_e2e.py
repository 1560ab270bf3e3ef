"""E2E authentication checks using Playwright."""

from __future__ import annotations

import pytest

pytestmark = [pytest.mark.e2e]


def test_login_returns_tokens(api_request_context, stall):
    response = api_request_context.post(
        "/api/v1/auth/token/",
        data={"username": stall["username"], "password": stall["password"]},
    )

    assert response.status == 200
    data = response.json()
    assert "access" in data
    assert "refresh" in data


def test_wrong_password_is_rejected(api_request_context, stall):
    response = api_request_context.post(
        "/api/v1/auth/token/",
        data={"username": stall["username"], "password": "not-the-password"},
    )

    assert response.status == 401


def test_token_resolves_the_merchant(api_request_context, stall, merchant_token):
    response = api_request_context.get(
        "/api/v1/me", headers={"Authorization": f"Bearer {merchant_token}"}
    )

    assert response.status == 200
    assert response.json()["merchant_id"] == stall["merchant_id"]

"""Premium checkout and mock upgrade tests."""
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs

import httpx
import pytest
from httpx import AsyncClient

from app.config import get_settings
from app.services import billing_service

pytestmark = pytest.mark.asyncio


def _stripe_returning(status_code: int, payload: dict, seen: list):
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(status_code, json=payload)

    return lambda: httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestCheckout:
    """POST /billing/checkout."""

    async def test_placeholder_without_stripe_key(self, client: AsyncClient, auth_headers: dict):
        response = await client.post("/billing/checkout", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"checkoutUrl": billing_service.PLACEHOLDER_CHECKOUT_URL}

    async def test_stripe_session_url(self, client: AsyncClient, test_user: dict, monkeypatch):
        seen: list[httpx.Request] = []
        monkeypatch.setattr(get_settings(), "stripe_secret_key", "sk_test_123")
        monkeypatch.setattr(
            billing_service,
            "_http_client",
            _stripe_returning(200, {"url": "https://checkout.stripe.com/c/pay/cs_1"}, seen),
        )

        response = await client.post("/billing/checkout", headers=test_user["headers"])
        assert response.json() == {"checkoutUrl": "https://checkout.stripe.com/c/pay/cs_1"}

        request = seen[0]
        assert str(request.url) == billing_service.STRIPE_CHECKOUT_URL
        assert request.headers["Authorization"].startswith("Basic ")
        form = parse_qs(request.content.decode())
        assert form["mode"] == ["subscription"]
        assert form["line_items[0][price_data][unit_amount]"] == ["399"]
        assert form["line_items[0][price_data][recurring][interval]"] == ["month"]
        assert form["metadata[userId]"] == [test_user["id"]]

    async def test_stripe_error_is_upstream_failure(self, client: AsyncClient, auth_headers: dict, monkeypatch):
        monkeypatch.setattr(get_settings(), "stripe_secret_key", "sk_test_123")
        monkeypatch.setattr(
            billing_service, "_http_client", _stripe_returning(402, {"error": {"message": "card"}}, [])
        )

        response = await client.post("/billing/checkout", headers=auth_headers)
        assert response.status_code == 500
        assert response.json() == {"message": "Unable to start checkout", "error": "upstream_error"}

    async def test_requires_auth(self, client: AsyncClient):
        assert (await client.post("/billing/checkout")).status_code == 401


class TestMockUpgrade:
    async def test_upgrade_grants_thirty_days(self, client: AsyncClient, auth_headers: dict):
        response = await client.post("/billing/webhook/mock-upgrade", headers=auth_headers)
        assert response.status_code == 200
        user = response.json()["user"]
        assert user["tier"] == "PREMIUM"

        premium_until = datetime.fromisoformat(user["premium_until"])
        if premium_until.tzinfo is None:
            premium_until = premium_until.replace(tzinfo=timezone.utc)
        remaining = premium_until - datetime.now(timezone.utc)
        assert timedelta(days=29) < remaining <= timedelta(days=30)

        me = (await client.get("/auth/me", headers=auth_headers)).json()
        assert me["user"]["tier"] == "PREMIUM"

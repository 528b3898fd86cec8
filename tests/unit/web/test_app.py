"""Tests for the app factory: lifespan wiring, health, and an end-to-end settings flow.

These start the real lifespan against an in-memory database. No market-data
calls are made.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from Wealth_Flow import __version__
from Wealth_Flow.services.cache import DATA_TYPE_QUOTE, ServiceCache
from Wealth_Flow.services.credentials import CredentialStore
from Wealth_Flow.services.market_data import MarketDataGateway
from Wealth_Flow.web.app import create_app


@pytest.fixture()
def live_client(monkeypatch: pytest.MonkeyPatch) -> TestClient:
    monkeypatch.setenv("WEALTH_FLOW_TTL_QUOTE", "5")
    monkeypatch.delenv("EODHD_API_KEY", raising=False)
    return TestClient(create_app(db_path=":memory:"))


class TestAppFactory:
    def test_health(self, live_client: TestClient) -> None:
        with live_client as client:
            response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "version": __version__}

    def test_lifespan_populates_state(self, live_client: TestClient) -> None:
        with live_client as client:
            state = client.app.state  # type: ignore[attr-defined]
            assert isinstance(state.gateway, MarketDataGateway)
            assert isinstance(state.credentials, CredentialStore)
            assert isinstance(state.cache, ServiceCache)
            assert state.cache.get_ttl(DATA_TYPE_QUOTE) == 5

    def test_settings_round_trip_through_sqlite(self, live_client: TestClient) -> None:
        headers = {"X-User-Id": "user-1"}
        with live_client as client:
            put = client.put(
                "/api/settings",
                headers=headers,
                json={"eodhd_api_key": "k-1", "preferred_currency": "eur"},
            )
            got = client.get("/api/settings", headers=headers)

        assert put.status_code == 200
        assert got.json()["has_api_key"] is True
        assert got.json()["preferred_currency"] == "EUR"
        assert got.json()["updated_at"] is not None

    def test_quote_without_any_key_is_400(self, live_client: TestClient) -> None:
        with live_client as client:
            response = client.get("/api/market/AAPL.US/quote")
        assert response.status_code == 400

    def test_unknown_route_is_404(self, live_client: TestClient) -> None:
        with live_client as client:
            assert client.get("/api/nope").status_code == 404

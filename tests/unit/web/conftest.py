"""Shared fixtures for web route tests.

Provides a test FastAPI app and TestClient with the gateway, repository,
valuation service and credential lookup overridden by mocks, so route tests
never hit real databases or external services.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from Wealth_Flow.data.repository import Repository
from Wealth_Flow.services.market_data import MarketDataGateway
from Wealth_Flow.services.valuation import PortfolioValuationService
from Wealth_Flow.web.app import create_app
from Wealth_Flow.web.deps import (
    get_api_key,
    get_gateway,
    get_repository,
    get_valuation_service,
)

TEST_API_KEY = "demo-token"


@pytest.fixture()
def mock_gateway() -> AsyncMock:
    """Mock MarketDataGateway; each test sets the return values it needs."""
    return AsyncMock(spec=MarketDataGateway)


@pytest.fixture()
def mock_repository() -> AsyncMock:
    """Mock Repository with no stored preferences."""
    repo = AsyncMock(spec=Repository)
    repo.get_preferences.return_value = None
    return repo


@pytest.fixture()
def mock_valuation() -> AsyncMock:
    return AsyncMock(spec=PortfolioValuationService)


@pytest.fixture()
def api_key() -> str | None:
    """API key the credential dependency resolves to."""
    return TEST_API_KEY


@pytest.fixture()
def app(
    mock_gateway: AsyncMock,
    mock_repository: AsyncMock,
    mock_valuation: AsyncMock,
    api_key: str | None,
) -> FastAPI:
    """Create a test app with every stateful dependency overridden."""
    test_app = create_app(db_path=":memory:")

    async def override_api_key() -> str | None:
        return api_key

    test_app.dependency_overrides[get_gateway] = lambda: mock_gateway
    test_app.dependency_overrides[get_repository] = lambda: mock_repository
    test_app.dependency_overrides[get_valuation_service] = lambda: mock_valuation
    test_app.dependency_overrides[get_api_key] = override_api_key
    return test_app


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    """Create a synchronous test client for the app (lifespan not started)."""
    return TestClient(app, raise_server_exceptions=False)

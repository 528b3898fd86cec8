"""Tests for request logging and the ticker/exchange path validators."""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from Wealth_Flow.models import Quote
from Wealth_Flow.web.deps import get_user_id, validate_exchange_code, validate_ticker_symbol


class TestRequestLogging:
    def test_request_is_logged_at_info(
        self,
        client: TestClient,
        mock_gateway: AsyncMock,
        sample_quote: Quote,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        mock_gateway.get_quote.return_value = sample_quote
        with caplog.at_level(logging.INFO, logger="Wealth_Flow.web.middleware"):
            client.get("/api/market/AAPL.US/quote")

        assert any(
            "GET /api/market/AAPL.US/quote -> 200" in r.getMessage() for r in caplog.records
        )

    def test_health_check_is_debug_only(
        self, client: TestClient, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.INFO, logger="Wealth_Flow.web.middleware"):
            client.get("/api/health")
        assert not any("/api/health" in r.getMessage() for r in caplog.records)


class TestValidators:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("aapl", "AAPL"),
            ("AAPL.US", "AAPL.US"),
            ("brk-b.us", "BRK-B.US"),
            ("VOD.LSE", "VOD.LSE"),
        ],
    )
    def test_valid_tickers(self, raw: str, expected: str) -> None:
        assert validate_ticker_symbol(raw) == expected

    @pytest.mark.parametrize("raw", ["", "A B", "AAPL..US", "-AAPL", "AAPL.TOOLONGX"])
    def test_invalid_tickers(self, raw: str) -> None:
        with pytest.raises(HTTPException) as exc_info:
            validate_ticker_symbol(raw)
        assert exc_info.value.status_code == 422

    def test_exchange_codes(self) -> None:
        assert validate_exchange_code("lse") == "LSE"
        with pytest.raises(HTTPException):
            validate_exchange_code("L-SE")

    def test_user_id_header(self) -> None:
        assert get_user_id(" user-1 ") == "user-1"
        assert get_user_id("  ") is None
        assert get_user_id(None) is None

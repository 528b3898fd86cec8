"""Tests for CredentialStore and the environment fallback key."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from Wealth_Flow.data.repository import Repository
from Wealth_Flow.services.credentials import CredentialStore, api_key_from_env


@pytest.fixture()
def repository() -> AsyncMock:
    repo = AsyncMock(spec=Repository)
    repo.get_api_key.return_value = None
    return repo


class TestCredentialStore:
    @pytest.mark.asyncio()
    async def test_stored_key_wins_over_fallback(self, repository: AsyncMock) -> None:
        repository.get_api_key.return_value = "user-token"
        store = CredentialStore(repository=repository, fallback_key="env-token")
        assert await store.get_api_key("user-1") == "user-token"
        repository.get_api_key.assert_awaited_once_with("user-1")

    @pytest.mark.asyncio()
    async def test_falls_back_when_user_has_no_key(self, repository: AsyncMock) -> None:
        store = CredentialStore(repository=repository, fallback_key="env-token")
        assert await store.get_api_key("user-1") == "env-token"

    @pytest.mark.asyncio()
    async def test_anonymous_caller_gets_fallback(self, repository: AsyncMock) -> None:
        store = CredentialStore(repository=repository, fallback_key="env-token")
        assert await store.get_api_key(None) == "env-token"
        repository.get_api_key.assert_not_awaited()

    @pytest.mark.asyncio()
    async def test_nothing_configured_is_none(self, repository: AsyncMock) -> None:
        store = CredentialStore(repository=repository)
        assert await store.get_api_key("user-1") is None

    @pytest.mark.asyncio()
    async def test_without_repository(self) -> None:
        assert await CredentialStore(fallback_key="env-token").get_api_key("user-1") == "env-token"


class TestApiKeyFromEnv:
    def test_reads_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EODHD_API_KEY", " env-token ")
        assert api_key_from_env() == "env-token"

    def test_blank_is_none(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EODHD_API_KEY", "   ")
        assert api_key_from_env() is None

    def test_unset_is_none(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("EODHD_API_KEY", raising=False)
        assert api_key_from_env() is None

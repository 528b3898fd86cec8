"""Tests for Repository: preference reads and upserts against in-memory SQLite."""

import datetime
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio

from Wealth_Flow.data.database import Database
from Wealth_Flow.data.repository import Repository
from Wealth_Flow.models.preferences import UserPreferences


@pytest_asyncio.fixture()
async def db() -> AsyncGenerator[Database]:
    """Provide a connected in-memory Database for each test, with cleanup."""
    database = Database(db_path=":memory:")
    await database.connect()
    yield database
    await database.close()


@pytest_asyncio.fixture()
async def repo(db: Database) -> Repository:
    """Provide a Repository backed by the in-memory Database."""
    return Repository(db)


class TestPreferences:
    @pytest.mark.asyncio()
    async def test_unknown_user_returns_none(self, repo: Repository) -> None:
        assert await repo.get_preferences("nobody") is None
        assert await repo.get_api_key("nobody") is None

    @pytest.mark.asyncio()
    async def test_save_and_read_back(self, repo: Repository) -> None:
        saved = await repo.save_preferences(
            UserPreferences(user_id="user-1", eodhd_api_key="token-1", preferred_currency="eur")
        )
        loaded = await repo.get_preferences("user-1")

        assert loaded is not None
        assert loaded.eodhd_api_key == "token-1"
        assert loaded.preferred_currency == "EUR"
        assert loaded.updated_at == saved.updated_at
        assert loaded.updated_at is not None
        assert loaded.updated_at.tzinfo == datetime.UTC

    @pytest.mark.asyncio()
    async def test_upsert_overwrites(self, repo: Repository) -> None:
        await repo.save_preferences(UserPreferences(user_id="user-1", eodhd_api_key="old"))
        await repo.save_preferences(UserPreferences(user_id="user-1", eodhd_api_key="new"))
        assert await repo.get_api_key("user-1") == "new"

    @pytest.mark.asyncio()
    async def test_save_api_key_keeps_currency(self, repo: Repository) -> None:
        await repo.save_preferences(UserPreferences(user_id="user-1", preferred_currency="GBP"))
        prefs = await repo.save_api_key("user-1", "token-2")

        assert prefs.eodhd_api_key == "token-2"
        assert prefs.preferred_currency == "GBP"

    @pytest.mark.asyncio()
    async def test_clearing_key(self, repo: Repository) -> None:
        await repo.save_api_key("user-1", "token-3")
        await repo.save_api_key("user-1", "")
        assert await repo.get_api_key("user-1") is None

    @pytest.mark.asyncio()
    async def test_users_are_isolated(self, repo: Repository) -> None:
        await repo.save_api_key("user-1", "token-a")
        await repo.save_api_key("user-2", "token-b")
        assert await repo.get_api_key("user-1") == "token-a"
        assert await repo.get_api_key("user-2") == "token-b"

"""Tests for Database: connection lifecycle, migrations, and path resolution."""

from pathlib import Path

import pytest

from Wealth_Flow.data.database import (
    DEFAULT_DB_PATH,
    Database,
    discover_migrations,
    resolve_db_path,
)


class TestLifecycle:
    def test_connection_before_connect_raises(self) -> None:
        with pytest.raises(RuntimeError, match="not connected"):
            _ = Database(":memory:").connection

    @pytest.mark.asyncio()
    async def test_context_manager_connects_and_closes(self) -> None:
        db = Database(":memory:")
        async with db:
            cursor = await db.connection.execute("SELECT 1")
            assert await cursor.fetchone() == (1,)
        with pytest.raises(RuntimeError):
            _ = db.connection

    @pytest.mark.asyncio()
    async def test_migrations_create_preferences_table(self) -> None:
        async with Database(":memory:") as db:
            cursor = await db.connection.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name='user_preferences'"
            )
            assert await cursor.fetchone() == ("user_preferences",)

            cursor = await db.connection.execute("SELECT version, name FROM applied_migrations")
            assert await cursor.fetchall() == [(1, "001_user_preferences.sql")]
            assert await db.schema_version() == 1

    @pytest.mark.asyncio()
    async def test_reconnect_on_file_skips_applied_migrations(self, tmp_path: Path) -> None:
        path = str(tmp_path / "nested" / "prefs.db")
        async with Database(path):
            pass
        async with Database(path) as db:
            cursor = await db.connection.execute("SELECT COUNT(*) FROM applied_migrations")
            assert await cursor.fetchone() == (1,)
        assert (tmp_path / "nested" / "prefs.db").exists()


class TestDiscoverMigrations:
    def test_bundled_migrations_are_ordered(self) -> None:
        versions = [m.version for m in discover_migrations()]
        assert versions == sorted(versions)
        assert versions[0] == 1

    def test_misnamed_file_rejected(self, tmp_path: Path) -> None:
        (tmp_path / "001_ok.sql").write_text("SELECT 1;")
        (tmp_path / "setup.sql").write_text("SELECT 1;")
        with pytest.raises(ValueError, match="setup.sql"):
            discover_migrations(tmp_path)

    def test_duplicate_version_rejected(self, tmp_path: Path) -> None:
        (tmp_path / "002_a.sql").write_text("SELECT 1;")
        (tmp_path / "002_b.sql").write_text("SELECT 1;")
        with pytest.raises(ValueError, match="Duplicate migration version 002"):
            discover_migrations(tmp_path)


class TestResolvePath:
    def test_explicit_path_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WEALTH_FLOW_DB_PATH", "/tmp/env.db")
        assert resolve_db_path("/tmp/explicit.db") == "/tmp/explicit.db"

    def test_env_path(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WEALTH_FLOW_DB_PATH", "/tmp/env.db")
        assert resolve_db_path() == "/tmp/env.db"

    def test_default_path(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("WEALTH_FLOW_DB_PATH", raising=False)
        assert resolve_db_path() == DEFAULT_DB_PATH

"""SQLite storage for user preferences.

``Database`` owns a single aiosqlite connection. On connect it brings the
schema up to date from the numbered scripts in ``migrations/``
(``NNN_description.sql``); each applied script is recorded by number and
file name in ``applied_migrations``.
"""

import datetime
import logging
import os
import re
from pathlib import Path
from types import TracebackType
from typing import Final, NamedTuple

import aiosqlite

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH: Final[str] = "data/wealth_flow.db"
MEMORY_DB_PATH: Final[str] = ":memory:"
MIGRATIONS_DIR: Final[Path] = Path(__file__).parent / "migrations"

_MIGRATION_NAME = re.compile(r"^(\d{3})_[a-z0-9_]+\.sql$")


class Migration(NamedTuple):
    version: int
    path: Path


def resolve_db_path(db_path: str | None = None) -> str:
    """Return the database path, preferring *db_path* > ``WEALTH_FLOW_DB_PATH`` > default."""
    return db_path or os.environ.get("WEALTH_FLOW_DB_PATH", DEFAULT_DB_PATH)


def discover_migrations(directory: Path = MIGRATIONS_DIR) -> list[Migration]:
    """List the migration scripts in *directory* ordered by version.

    Raises:
        ValueError: If a ``.sql`` file is misnamed or two share a version.
    """
    found: dict[int, Path] = {}
    for script in directory.glob("*.sql"):
        match = _MIGRATION_NAME.match(script.name)
        if match is None:
            msg = f"Migration file {script.name!r} does not match NNN_name.sql"
            raise ValueError(msg)
        version = int(match.group(1))
        if version in found:
            msg = f"Duplicate migration version {version:03d}: {found[version].name}, {script.name}"
            raise ValueError(msg)
        found[version] = script
    return [Migration(v, found[v]) for v in sorted(found)]


class Database:
    """Async SQLite handle for the preference store.

    Usage::

        async with Database(":memory:") as db:
            repo = Repository(db)
            await repo.save_api_key("user-1", "demo-token")
    """

    def __init__(self, db_path: str | None = None) -> None:
        self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None

    @property
    def connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            msg = f"Database {self._db_path} is not connected; call connect() first"
            raise RuntimeError(msg)
        return self._conn

    @property
    def in_memory(self) -> bool:
        return self._db_path == MEMORY_DB_PATH

    async def connect(self) -> None:
        """Open the connection and apply any migrations not yet recorded."""
        if not self.in_memory:
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = await aiosqlite.connect(self._db_path)
        if not self.in_memory:
            await self._conn.execute("PRAGMA journal_mode=WAL")

        applied = await self._migrate()
        logger.info(
            "Preference store ready at %s (schema v%d, %d migration(s) applied now)",
            self._db_path,
            await self.schema_version(),
            applied,
        )

    async def close(self) -> None:
        if self._conn is None:
            return
        await self._conn.close()
        self._conn = None
        logger.info("Preference store closed: %s", self._db_path)

    async def schema_version(self) -> int:
        """Highest applied migration number, 0 for an empty database."""
        cursor = await self.connection.execute("SELECT MAX(version) FROM applied_migrations")
        row = await cursor.fetchone()
        return int(row[0]) if row is not None and row[0] is not None else 0

    async def __aenter__(self) -> "Database":
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def _migrate(self) -> int:
        conn = self.connection
        await conn.execute(
            "CREATE TABLE IF NOT EXISTS applied_migrations ("
            "version INTEGER PRIMARY KEY, name TEXT NOT NULL, applied_at TEXT NOT NULL)"
        )
        await conn.commit()
        current = await self.schema_version()

        pending = [m for m in discover_migrations() if m.version > current]
        for migration in pending:
            logger.info("Applying migration %s", migration.path.name)
            # executescript commits as it goes; the row below is written only on success
            await conn.executescript(migration.path.read_text(encoding="utf-8"))
            await conn.execute(
                "INSERT INTO applied_migrations (version, name, applied_at) VALUES (?, ?, ?)",
                (
                    migration.version,
                    migration.path.name,
                    datetime.datetime.now(datetime.UTC).isoformat(),
                ),
            )
            await conn.commit()
        return len(pending)

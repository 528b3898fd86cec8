"""Repository layer for the user preference store.

Provides typed reads and upserts backed by a Database instance. All queries
use parameterized SQL (no string interpolation).
"""

import datetime
import logging

from Wealth_Flow.data.database import Database
from Wealth_Flow.models.preferences import UserPreferences

logger = logging.getLogger(__name__)


class Repository:
    """Query interface for the Wealth Flow persistence layer."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def get_preferences(self, user_id: str) -> UserPreferences | None:
        """Return the stored preferences for *user_id*, or None if never saved."""
        conn = self._db.connection
        cursor = await conn.execute(
            "SELECT user_id, eodhd_api_key, preferred_currency, updated_at "
            "FROM user_preferences WHERE user_id = ?",
            (user_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return UserPreferences(
            user_id=row[0],
            eodhd_api_key=row[1],
            preferred_currency=row[2],
            updated_at=datetime.datetime.fromisoformat(row[3]),
        )

    async def save_preferences(self, prefs: UserPreferences) -> UserPreferences:
        """Insert or update a user's preferences.

        ``updated_at`` is set to the current UTC time; the stored record is
        returned.
        """
        now = datetime.datetime.now(datetime.UTC)
        conn = self._db.connection
        await conn.execute(
            "INSERT INTO user_preferences "
            "(user_id, eodhd_api_key, preferred_currency, updated_at) VALUES (?, ?, ?, ?) "
            "ON CONFLICT(user_id) DO UPDATE SET "
            "eodhd_api_key = excluded.eodhd_api_key, "
            "preferred_currency = excluded.preferred_currency, "
            "updated_at = excluded.updated_at",
            (prefs.user_id, prefs.eodhd_api_key, prefs.preferred_currency, now.isoformat()),
        )
        await conn.commit()
        logger.info("Preferences saved for user %s", prefs.user_id)
        return prefs.model_copy(update={"updated_at": now})

    async def get_api_key(self, user_id: str) -> str | None:
        """Return the stored EODHD key for *user_id*, or None."""
        prefs = await self.get_preferences(user_id)
        return prefs.eodhd_api_key if prefs is not None else None

    async def save_api_key(self, user_id: str, api_key: str | None) -> UserPreferences:
        """Set (or clear, with None) the EODHD key, keeping other preferences."""
        current = await self.get_preferences(user_id) or UserPreferences(user_id=user_id)
        updated = UserPreferences(
            user_id=user_id,
            eodhd_api_key=api_key,
            preferred_currency=current.preferred_currency,
        )
        return await self.save_preferences(updated)

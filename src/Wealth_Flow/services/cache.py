"""In-memory response cache with per-endpoint TTLs.

Provides a cache-first pattern for the market-data gateway: check cache,
fetch on miss, store, and return. Values are JSON-serialized payloads so a
cached record can never be mutated by a caller. Entries live for the
lifetime of the process and are overwritten on refresh; nothing is
persisted.
"""

from __future__ import annotations

import datetime
import logging
import os
from collections.abc import Callable
from typing import Final

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# TTL values in seconds
# ---------------------------------------------------------------------------

TTL_QUOTE: Final[int] = 60  # 1 minute
TTL_HISTORICAL: Final[int] = 60
TTL_FUNDAMENTALS: Final[int] = 60
TTL_NEWS: Final[int] = 60
TTL_SUPPORTED_TICKERS: Final[int] = 60 * 60  # 1 hour
TTL_DEFAULT: Final[int] = 60

# Data type string constants
DATA_TYPE_QUOTE: Final[str] = "quote"
DATA_TYPE_HISTORICAL: Final[str] = "historical"
DATA_TYPE_FUNDAMENTALS: Final[str] = "fundamentals"
DATA_TYPE_NEWS: Final[str] = "news"
DATA_TYPE_TICKERS: Final[str] = "tickers"

DEFAULT_TTLS: Final[dict[str, int]] = {
    DATA_TYPE_QUOTE: TTL_QUOTE,
    DATA_TYPE_HISTORICAL: TTL_HISTORICAL,
    DATA_TYPE_FUNDAMENTALS: TTL_FUNDAMENTALS,
    DATA_TYPE_NEWS: TTL_NEWS,
    DATA_TYPE_TICKERS: TTL_SUPPORTED_TICKERS,
}

# Env var prefix for per-kind overrides, e.g. WEALTH_FLOW_TTL_QUOTE=30
TTL_ENV_PREFIX: Final[str] = "WEALTH_FLOW_TTL_"


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


def build_cache_key(data_type: str, *parts: str) -> str:
    """Join a data type and request parameters into a cache key.

    ``build_cache_key("historical", "AAPL", "1M")`` -> ``"eodhd:historical:AAPL:1M"``
    """
    return ":".join(("eodhd", data_type, *parts))


def ttl_overrides_from_env() -> dict[str, int]:
    """Read ``WEALTH_FLOW_TTL_<KIND>`` overrides from the environment.

    Non-integer or negative values are ignored with a warning.
    """
    overrides: dict[str, int] = {}
    for data_type in DEFAULT_TTLS:
        raw = os.environ.get(f"{TTL_ENV_PREFIX}{data_type.upper()}")
        if raw is None:
            continue
        try:
            seconds = int(raw)
        except ValueError:
            logger.warning("Ignoring non-integer TTL override for %s: %r", data_type, raw)
            continue
        if seconds < 0:
            logger.warning("Ignoring negative TTL override for %s: %d", data_type, seconds)
            continue
        overrides[data_type] = seconds
    return overrides


class CacheEntry(BaseModel):
    """A single cached value with the time it was fetched."""

    model_config = ConfigDict(frozen=True)

    key: str
    value: str  # JSON-serialized payload
    fetched_at: datetime.datetime
    ttl_seconds: int

    def is_expired(self, now: datetime.datetime) -> bool:
        """Return True once the entry is no longer servable.

        An entry is valid iff ``now - fetched_at < ttl_seconds``.
        """
        age = (now - self.fetched_at).total_seconds()
        return age >= self.ttl_seconds


class ServiceCache:
    """Process-wide response cache owned by whoever constructs the gateway.

    Usage::

        cache = ServiceCache()
        cached = cache.get("eodhd:quote:AAPL.US")
        if cached is None:
            started = cache.now()
            payload = await fetch_quote("AAPL.US")
            cache.set(
                "eodhd:quote:AAPL.US",
                payload,
                cache.get_ttl(DATA_TYPE_QUOTE),
                fetched_at=started,
            )

    The cache needs no lock: gateway calls run on a single event loop and
    never await between reading and writing an entry.
    """

    def __init__(
        self,
        ttl_overrides: dict[str, int] | None = None,
        clock: Callable[[], datetime.datetime] | None = None,
    ) -> None:
        self._ttls: dict[str, int] = {**DEFAULT_TTLS, **(ttl_overrides or {})}
        self._clock = clock or _utc_now
        self._entries: dict[str, CacheEntry] = {}

        logger.info(
            "ServiceCache initialized: ttls=%s",
            ", ".join(f"{k}={v}s" for k, v in sorted(self._ttls.items())),
        )

    def now(self) -> datetime.datetime:
        """Current time according to the cache's clock."""
        return self._clock()

    def get(self, key: str) -> str | None:
        """Return the cached payload for *key*, or None on miss or expiry.

        Expired entries are left in place; the next successful fetch
        overwrites them.
        """
        entry = self._entries.get(key)
        if entry is None:
            logger.debug("Cache miss: %s", key)
            return None
        if entry.is_expired(self.now()):
            logger.debug("Cache expired: %s", key)
            return None
        logger.debug("Cache hit: %s", key)
        return entry.value

    def get_entry(self, key: str) -> CacheEntry | None:
        """Return the raw entry for *key* regardless of expiry."""
        return self._entries.get(key)

    def set(
        self,
        key: str,
        value: str,
        ttl_seconds: int,
        *,
        fetched_at: datetime.datetime | None = None,
    ) -> bool:
        """Store *value* under *key*.

        A write whose ``fetched_at`` is older than the stored entry's is
        discarded, so a slow response cannot replace fresher data.

        Returns:
            True if the value was stored, False if it was rejected as stale.
        """
        stamp = fetched_at if fetched_at is not None else self.now()
        existing = self._entries.get(key)
        if existing is not None and stamp < existing.fetched_at:
            logger.debug(
                "Cache write rejected (stale): %s fetched_at=%s < %s",
                key,
                stamp.isoformat(),
                existing.fetched_at.isoformat(),
            )
            return False

        self._entries[key] = CacheEntry(
            key=key,
            value=value,
            fetched_at=stamp,
            ttl_seconds=ttl_seconds,
        )
        logger.debug("Cache set: %s (ttl=%ds)", key, ttl_seconds)
        return True

    def get_ttl(self, data_type: str) -> int:
        """Return the TTL in seconds for a data type.

        Args:
            data_type: One of the DATA_TYPE_* constants.
        """
        ttl = self._ttls.get(data_type)
        if ttl is None:
            logger.warning("Unknown data type '%s', using %d-second TTL", data_type, TTL_DEFAULT)
            return TTL_DEFAULT
        return ttl

    def clear(self) -> None:
        """Drop every entry."""
        count = len(self._entries)
        self._entries.clear()
        logger.info("Cache cleared: %d entries removed", count)

    def __len__(self) -> int:
        return len(self._entries)

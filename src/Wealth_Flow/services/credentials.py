"""Credential source: looks up the market-data API key for a user.

Reads from the preference repository, with an optional process-wide
fallback key (``EODHD_API_KEY``) for single-user setups such as the CLI.
A missing user, missing row, or blank key all resolve to None; callers
that need a distinguishable "no key configured" signal check for None
before calling the gateway.
"""

from __future__ import annotations

import logging
import os
from typing import Final

from Wealth_Flow.data.repository import Repository

logger = logging.getLogger(__name__)

API_KEY_ENV_VAR: Final[str] = "EODHD_API_KEY"


def api_key_from_env() -> str | None:
    """Return ``EODHD_API_KEY`` if set and non-blank."""
    value = os.environ.get(API_KEY_ENV_VAR, "").strip()
    return value or None


class CredentialStore:
    """Resolve per-user API credentials.

    Usage::

        store = CredentialStore(repository=Repository(db))
        api_key = await store.get_api_key(user_id)
        if api_key is None:
            ...  # prompt the user to configure a key
    """

    def __init__(
        self,
        repository: Repository | None = None,
        fallback_key: str | None = None,
    ) -> None:
        self._repository = repository
        self._fallback_key = fallback_key

        logger.info(
            "CredentialStore initialized: repository=%s, fallback=%s",
            "enabled" if repository is not None else "disabled",
            "configured" if fallback_key else "not configured",
        )

    async def get_api_key(self, user_id: str | None) -> str | None:
        """Return the stored key for *user_id*, else the fallback key, else None."""
        if user_id and self._repository is not None:
            stored = await self._repository.get_api_key(user_id)
            if stored:
                return stored
            logger.debug("No stored API key for user %s", user_id)
        return self._fallback_key or None

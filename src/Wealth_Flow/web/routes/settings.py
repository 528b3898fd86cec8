"""Settings API routes: per-user preferences including the EODHD key.

GET /api/settings: Current preferences for the ``X-User-Id`` user.
PUT /api/settings: Update the API key and/or preferred currency.

The stored key is never echoed back; responses only say whether one is set.
"""

import datetime
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, ValidationError

from Wealth_Flow.data.repository import Repository
from Wealth_Flow.models.preferences import UserPreferences
from Wealth_Flow.web.deps import get_repository, require_user_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])

# ---------------------------------------------------------------------------
# Request / response models (web-layer schemas)
# ---------------------------------------------------------------------------


class SettingsView(BaseModel):
    """Preferences as shown to the user, with the key masked."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    has_api_key: bool
    preferred_currency: str
    updated_at: datetime.datetime | None = None

    @classmethod
    def from_preferences(cls, prefs: UserPreferences) -> "SettingsView":
        return cls(
            user_id=prefs.user_id,
            has_api_key=prefs.eodhd_api_key is not None,
            preferred_currency=prefs.preferred_currency,
            updated_at=prefs.updated_at,
        )


class SettingsUpdate(BaseModel):
    """Partial update. Omitted fields keep their stored value; an empty key clears it."""

    eodhd_api_key: str | None = None
    preferred_currency: str | None = None


# ---------------------------------------------------------------------------
# Route handlers
# ---------------------------------------------------------------------------


@router.get("", response_model=SettingsView)
async def read_settings(
    user_id: Annotated[str, Depends(require_user_id)],
    repo: Annotated[Repository, Depends(get_repository)],
) -> SettingsView:
    """Return the caller's preferences (defaults when never saved)."""
    prefs = await repo.get_preferences(user_id) or UserPreferences(user_id=user_id)
    return SettingsView.from_preferences(prefs)


@router.put("", response_model=SettingsView)
async def update_settings(
    update: SettingsUpdate,
    user_id: Annotated[str, Depends(require_user_id)],
    repo: Annotated[Repository, Depends(get_repository)],
) -> SettingsView:
    """Merge *update* into the stored preferences and persist them."""
    current = await repo.get_preferences(user_id) or UserPreferences(user_id=user_id)
    changes = update.model_dump(exclude_unset=True)

    try:
        merged = UserPreferences(
            user_id=user_id,
            eodhd_api_key=changes.get("eodhd_api_key", current.eodhd_api_key),
            preferred_currency=changes.get("preferred_currency") or current.preferred_currency,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors()[0]["msg"]) from exc

    saved = await repo.save_preferences(merged)
    logger.info("Settings updated for user %s: fields=%s", user_id, sorted(changes))
    return SettingsView.from_preferences(saved)

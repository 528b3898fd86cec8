"""User preference model backing the credential source."""

import datetime
from typing import Final

from pydantic import BaseModel, ConfigDict, field_validator

SUPPORTED_CURRENCIES: Final[frozenset[str]] = frozenset({"USD", "EUR", "GBP", "JPY"})


class UserPreferences(BaseModel):
    """Display and credential settings stored per user.

    ``eodhd_api_key`` is None until the user configures one.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    eodhd_api_key: str | None = None
    preferred_currency: str = "USD"
    updated_at: datetime.datetime | None = None

    @field_validator("eodhd_api_key")
    @classmethod
    def blank_key_is_none(cls, value: str | None) -> str | None:
        """Treat an empty or whitespace key as not configured."""
        if value is None:
            return None
        stripped = value.strip()
        return stripped or None

    @field_validator("preferred_currency")
    @classmethod
    def validate_currency(cls, value: str) -> str:
        """Upper-case the currency code and reject unsupported ones."""
        code = value.strip().upper()
        if code not in SUPPORTED_CURRENCIES:
            msg = f"Unsupported currency '{value}'. Expected one of {sorted(SUPPORTED_CURRENCIES)}"
            raise ValueError(msg)
        return code

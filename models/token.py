"""
Cached bearer token

A single value holding the access token together with its absolute expiry,
so validity is one predicate over one value.
"""
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional

from pydantic import Field

from models.base import ViaBaseModel

DEFAULT_TOKEN_LIFETIME_SECONDS = 3600


class CachedToken(ViaBaseModel):
    """Bearer token plus the moment it stops being usable."""
    access_token: str = Field(..., min_length=1, repr=False, description="Bearer token sent on data calls")
    expires_at: datetime = Field(..., description="Absolute expiry time (UTC)")

    def is_valid(self, now: datetime) -> bool:
        """A token is usable strictly before its expiry."""
        return now < self.expires_at

    def seconds_remaining(self, now: datetime) -> float:
        """Seconds until expiry, never negative."""
        return max((self.expires_at - now).total_seconds(), 0.0)

    @classmethod
    def from_token_response(cls, body: Any, now: datetime) -> Optional['CachedToken']:
        """
        Build a token from a credential exchange response body.

        Expected shape: ``{"token": {"access_token": str, "expires_in"?: number}}``.

        Args:
            body: Decoded JSON body of the exchange response
            now: Time the exchange completed

        Returns:
            CachedToken, or None when the body carries no access token
        """
        token_data = body.get("token") if isinstance(body, Mapping) else None
        if not isinstance(token_data, Mapping) or not token_data.get("access_token"):
            return None

        lifetime = token_data.get("expires_in") or DEFAULT_TOKEN_LIFETIME_SECONDS
        try:
            expires_at = now + timedelta(seconds=float(lifetime))
        except (TypeError, ValueError, OverflowError):
            return None

        return cls(access_token=str(token_data["access_token"]), expires_at=expires_at)
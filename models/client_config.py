"""
Connection settings for ViaClient
"""
from typing import Any

from pydantic import Field, model_validator

from models.base import ViaBaseModel

REQUIRED_FIELDS = ("base_url", "token_hash", "email")
MISSING_FIELDS_MESSAGE = "base_url, token_hash, and email are required to initialize ViaClient"


class ClientConfig(ViaBaseModel):
    """Immutable connection configuration supplied when a client is built."""
    base_url: str = Field(..., description="Base URL of the Via API")
    token_hash: str = Field(..., repr=False, description="Long-lived credential exchanged for bearer tokens")
    email: str = Field(..., description="Account email used in the credential exchange")

    @model_validator(mode='before')
    @classmethod
    def require_all_fields(cls, data: Any) -> Any:
        """Reject missing, empty or whitespace-only values."""
        if not isinstance(data, dict):
            return data

        for name in REQUIRED_FIELDS:
            value = data.get(name)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(MISSING_FIELDS_MESSAGE)
        return data

"""
Value objects for the Via API client

Immutable Pydantic models with validation.
"""

from models.base import ViaBaseModel
from models.client_config import ClientConfig
from models.token import CachedToken, DEFAULT_TOKEN_LIFETIME_SECONDS

__all__ = [
    'ViaBaseModel',
    'ClientConfig',
    'CachedToken',
    'DEFAULT_TOKEN_LIFETIME_SECONDS',
]

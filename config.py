"""
Configuration management for the Via API client
"""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class ViaConfig(BaseSettings):
    """Application configuration with environment variable support."""

    # Via API connection settings
    via_url: str = ""
    via_token: str = ""  # Credential hash exchanged for bearer tokens
    via_account_email: str = ""
    account_name: str = "<account name>"

    # Transport settings (None keeps the aiohttp default)
    request_timeout: Optional[float] = None

    # Application settings
    log_level: str = "INFO"
    log_dir: str = "logs"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"  # Ignore extra environment variables
    )

    @property
    def has_credentials(self) -> bool:
        """Check whether all values needed by ViaClient are present."""
        return bool(self.via_url and self.via_token and self.via_account_email)


# Global configuration instance - lazily initialized to avoid import-time errors
_config = None

def get_config() -> ViaConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ViaConfig()
    return _config

"""
Configuration management for the Tandem systems toolkit.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings.

    Can be configured via environment variables or .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="TANDEM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Endpoints
    base_url: str = Field(
        default="https://developer.api.autodesk.com/tandem/v1",
        description="Tandem REST API base URL",
    )

    # Auth (token is issued elsewhere, e.g. by a PKCE login flow)
    access_token: str | None = Field(default=None, description="Bearer token for the Tandem API")
    region: str | None = Field(default=None, description="Data region header (US, EMEA, AUS)")

    # Transport
    request_timeout_sec: float = Field(default=30.0, description="Per-request timeout")
    max_retries: int = Field(default=3, description="Retries for transient HTTP failures")

    # Systems resolution
    scan_workers: int = Field(default=1, ge=1, description="Concurrent model scans (1 = sequential)")


# Global settings instance
settings = Settings()

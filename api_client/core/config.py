"""
Typed configuration for API clients.

Uses pydantic-settings so config is:
- typed
- validated
- env-driven

Rule:
- this module defines *shared* settings building blocks
- each concrete client defines its own endpoint settings that extend
  ServiceEndpointSettings
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LogFormat = Literal["json", "text"]


class ObservabilitySettings(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(env_prefix="", extra="ignore")

    log_level: str = Field(default="info", alias="LOG_LEVEL")
    log_format: LogFormat = Field(default="json", alias="LOG_FORMAT")


class HttpClientSettings(BaseSettings):
    """
    Outbound HTTP transport behavior (timeouts, pool limits).

    Environment variables (with API_CLIENT_ prefix):
      - TIMEOUT_SECONDS=10
      - CONNECT_TIMEOUT_SECONDS=   (falls back to TIMEOUT_SECONDS)
      - MAX_CONNECTIONS=100
      - MAX_KEEPALIVE_CONNECTIONS=20
      - FOLLOW_REDIRECTS=false
      - USER_AGENT=
    """

    model_config = SettingsConfigDict(env_prefix="API_CLIENT_", extra="ignore")

    timeout_seconds: float = Field(default=10.0, ge=0.1, le=300.0)
    connect_timeout_seconds: Optional[float] = Field(default=None, ge=0.1, le=300.0)
    max_connections: int = Field(default=100, ge=1)
    max_keepalive_connections: int = Field(default=20, ge=0)
    follow_redirects: bool = False
    user_agent: Optional[str] = None


class ServiceEndpointSettings(BaseSettings):
    """
    Base URL + endpoint paths of one downstream service.

    Subclass per service, set an env_prefix and add ``endpoint_*`` fields:

        class S3Settings(ServiceEndpointSettings):
            model_config = SettingsConfigDict(env_prefix="S3_", extra="ignore")

            endpoint_upload: Optional[str] = None
            endpoint_download: Optional[str] = None

    Values are left unvalidated here; the client built from them refuses to
    start when the base URL or a declared endpoint is blank.
    """

    model_config = SettingsConfigDict(env_prefix="", extra="ignore")

    # Address without paths, e.g. http://s3-service:8888 (not .../api/v1)
    base_url: Optional[str] = None


def load_http_client_settings() -> HttpClientSettings:
    """Load and validate transport settings from environment."""
    return HttpClientSettings()

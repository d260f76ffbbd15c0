"""
Building blocks for HTTP API clients used inside FastAPI services.

This package provides:
- BaseApiClient: URL building, header composition, GET / POST helpers
- AuthContext: per-request bearer token + username
- CredentialsExtractor / auto_set_credentials: fill AuthContext from headers
- ApiClientError: raised for non-2xx upstream responses
"""

from __future__ import annotations

from .api.middleware.request_context import RequestContextMiddleware, current_request
from .api.setup import create_transport_from_settings, install_api_client
from .auth_context import AuthContext, get_auth_context
from .client import WITHOUT_QUERY_PARAMS, BaseApiClient
from .core.clients import HttpClientConfig, create_http_transport
from .core.exceptions import ApiClientError, AppError, ConfigurationError
from .core.logging import configure_logging
from .credentials import AutoSetCredentials, CredentialsExtractor, auto_set_credentials

__all__ = [
    "ApiClientError",
    "AppError",
    "AuthContext",
    "AutoSetCredentials",
    "BaseApiClient",
    "ConfigurationError",
    "CredentialsExtractor",
    "HttpClientConfig",
    "RequestContextMiddleware",
    "WITHOUT_QUERY_PARAMS",
    "auto_set_credentials",
    "configure_logging",
    "create_http_transport",
    "create_transport_from_settings",
    "current_request",
    "get_auth_context",
    "install_api_client",
]

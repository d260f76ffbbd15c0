"""
Service-level bootstrap.

This bridges:
- typed settings (transport config)
- the request context middleware used by auto_set_credentials
- FastAPI exception handlers for AppError / ApiClientError
- api_client log output (optional)
"""

from __future__ import annotations

from typing import Optional

import httpx
from fastapi import FastAPI

from api_client.api.middleware.request_context import RequestContextMiddleware
from api_client.core.clients import HttpClientConfig, create_http_transport
from api_client.core.config import HttpClientSettings, load_http_client_settings
from api_client.core.exceptions import install_exception_handlers
from api_client.core.logging import configure_logging


def install_api_client(app: FastAPI, *, service_name: Optional[str] = None) -> None:
    """
    Prepare a FastAPI app for request-scoped API clients.

    Args:
        app: FastAPI application.
        service_name: When given, api_client logs are configured for it
            (LOG_LEVEL / LOG_FORMAT); otherwise the host's logging applies.
    """
    if service_name is not None:
        configure_logging(service_name=service_name)
    app.add_middleware(RequestContextMiddleware)
    install_exception_handlers(app)


def create_transport_from_settings(
    settings: Optional[HttpClientSettings] = None,
) -> httpx.Client:
    """
    Build the shared transport from API_CLIENT_* env vars.

    Create it once at startup (e.g. in the FastAPI lifespan) and close it at
    shutdown.
    """
    settings = settings or load_http_client_settings()
    return create_http_transport(HttpClientConfig.from_settings(settings))

"""
HTTP transport factory for API clients.

A single shared httpx Client is created per process and handed to every
concrete API client, so connection pooling happens in one place. Calls are
synchronous; FastAPI runs sync handlers in its threadpool.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx

from api_client.core.config import HttpClientSettings


@dataclass(frozen=True)
class HttpClientConfig:
    """Configuration for the shared http client."""

    timeout_seconds: float
    connect_timeout_seconds: Optional[float] = None
    max_connections: int = 100
    max_keepalive_connections: int = 20
    follow_redirects: bool = False
    user_agent: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: HttpClientSettings) -> "HttpClientConfig":
        return cls(
            timeout_seconds=settings.timeout_seconds,
            connect_timeout_seconds=settings.connect_timeout_seconds,
            max_connections=settings.max_connections,
            max_keepalive_connections=settings.max_keepalive_connections,
            follow_redirects=settings.follow_redirects,
            user_agent=settings.user_agent,
        )


def create_http_transport(
    cfg: HttpClientConfig, *, transport: Optional[httpx.BaseTransport] = None
) -> httpx.Client:
    """
    Create a shared Client with sane defaults.

    Args:
        cfg: HTTP client config
        transport: Optional low-level transport (e.g. httpx.MockTransport in tests)

    Returns:
        httpx.Client
    """
    # httpx treats connect=None as "no connect timeout"; fall back to the default
    connect = cfg.connect_timeout_seconds or cfg.timeout_seconds
    timeout = httpx.Timeout(timeout=cfg.timeout_seconds, connect=connect)
    limits = httpx.Limits(
        max_connections=cfg.max_connections,
        max_keepalive_connections=cfg.max_keepalive_connections,
    )
    headers = {"User-Agent": cfg.user_agent} if cfg.user_agent else None
    return httpx.Client(
        timeout=timeout,
        limits=limits,
        headers=headers,
        follow_redirects=cfg.follow_redirects,
        transport=transport,
    )

"""
Binds the inbound request to the current execution context.

- Sets a ContextVar for the duration of the downstream call
- Resets it afterwards, even when the handler raises
- Lets code that has no ``request`` parameter (decorated handlers, services)
  look the request up with current_request()
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

_current_request: ContextVar[Optional[Request]] = ContextVar(
    "api_client_current_request", default=None
)


def current_request() -> Request:
    """
    Return the inbound request being handled.

    Raises:
        RuntimeError: when called outside request handling, or when
            RequestContextMiddleware is not installed.
    """
    request = _current_request.get()
    if request is None:
        raise RuntimeError(
            "No inbound request is bound to the current context; "
            "is RequestContextMiddleware installed?"
        )
    return request


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Make the current request reachable through current_request()."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        token = _current_request.set(request)
        try:
            return await call_next(request)
        finally:
            _current_request.reset(token)

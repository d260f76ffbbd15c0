"""
Per-request authentication context.

One AuthContext exists per inbound request. It lives on ``request.state`` so
it is discarded together with the request, and it is handed to API clients
explicitly (constructor or ``BaseApiClient.with_auth_context``).

    @router.get("/documents")
    def list_documents(auth: AuthContext = Depends(get_auth_context)):
        return DocumentsClient(transport, auth, settings.base_url).list_all()
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from starlette.requests import Request

_STATE_ATTR = "auth_context"


@dataclass
class AuthContext:
    """Bearer token and username of the caller of the current request."""

    # e.g. a JWT, without the "Bearer " prefix
    token: Optional[str] = None
    # login of the authenticated user, forwarded to downstream services
    username: Optional[str] = None

    def clear_token(self) -> None:
        self.token = None

    def clear_username(self) -> None:
        self.username = None

    def clear(self) -> None:
        """Forget both token and username."""
        self.token = None
        self.username = None

    def bearer_token(self) -> Optional[str]:
        """Token to send upstream, or None when there is nothing to attach."""
        if self.token is None or not self.token.strip():
            return None
        return self.token

    def __repr__(self) -> str:
        # never leak the token into logs / tracebacks
        token = "***" if self.token else None
        return f"AuthContext(token={token!r}, username={self.username!r})"


def get_auth_context(request: Request) -> AuthContext:
    """
    Return the AuthContext of ``request``, creating it on first access.

    Usable directly as a FastAPI dependency.
    """
    ctx = getattr(request.state, _STATE_ATTR, None)
    if ctx is None:
        ctx = AuthContext()
        setattr(request.state, _STATE_ATTR, ctx)
    return ctx

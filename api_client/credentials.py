"""
Copy caller credentials from inbound request headers into the AuthContext.

Two ways to use it on a FastAPI route:

As a dependency (options passed explicitly, request injected by FastAPI):

    @router.get("/profile")
    def profile(auth: AuthContext = Depends(CredentialsExtractor(extract_username=True))):
        ...

As a decorator (request taken from RequestContextMiddleware):

    @router.get("/profile")
    @auto_set_credentials(extract_username=True)
    def profile(auth: AuthContext = Depends(get_auth_context)):
        ...

Extraction is best-effort: a missing or empty header leaves the matching
field as it was and the handler always runs.
"""

import functools
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, TypeVar

from fastapi import Request

from api_client.api.middleware.request_context import current_request
from api_client.auth_context import AuthContext, get_auth_context

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class AutoSetCredentials:
    """Which headers to read and where to find them."""

    extract_token: bool = True
    token_header: str = "Authorization"
    extract_username: bool = False
    username_header: str = "X-Auth-Username"

    def apply(self, headers: Mapping[str, str], auth_context: AuthContext) -> None:
        """Populate ``auth_context`` from ``headers``; never raises on bad input."""
        if self.extract_token:
            raw = headers.get(self.token_header)
            if raw:
                auth_context.token = raw.removeprefix(BEARER_PREFIX)

        if self.extract_username:
            username = headers.get(self.username_header)
            if username:
                auth_context.username = username

        logger.debug(
            "Credentials extracted",
            extra={
                "token_set": auth_context.token is not None,
                "username_set": auth_context.username is not None,
            },
        )


class CredentialsExtractor:
    """FastAPI dependency: fill the request's AuthContext and return it."""

    def __init__(
        self,
        *,
        extract_token: bool = True,
        token_header: str = "Authorization",
        extract_username: bool = False,
        username_header: str = "X-Auth-Username",
    ) -> None:
        self.options = AutoSetCredentials(
            extract_token=extract_token,
            token_header=token_header,
            extract_username=extract_username,
            username_header=username_header,
        )

    def __call__(self, request: Request) -> AuthContext:
        auth_context = get_auth_context(request)
        self.options.apply(request.headers, auth_context)
        return auth_context


def _populate_from_current_request(options: AutoSetCredentials) -> None:
    request = current_request()
    options.apply(request.headers, get_auth_context(request))


def auto_set_credentials(
    func: Optional[F] = None,
    *,
    extract_token: bool = True,
    token_header: str = "Authorization",
    extract_username: bool = False,
    username_header: str = "X-Auth-Username",
) -> Any:
    """
    Decorate a handler so credentials are extracted before it runs.

    Works bare (``@auto_set_credentials``) or with options. Sync and async
    callables are both supported; the signature is preserved for FastAPI.

    Raises:
        RuntimeError: (at call time) when no inbound request is bound, i.e.
            the handler runs outside request handling.
    """
    options = AutoSetCredentials(
        extract_token=extract_token,
        token_header=token_header,
        extract_username=extract_username,
        username_header=username_header,
    )

    def decorator(fn: F) -> F:
        if inspect.iscoroutinefunction(fn):

            @functools.wraps(fn)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                _populate_from_current_request(options)
                return await fn(*args, **kwargs)

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            _populate_from_current_request(options)
            return fn(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    if func is not None:
        return decorator(func)
    return decorator

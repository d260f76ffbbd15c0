"""
Base class for synchronous HTTP API clients.

A concrete client:
- receives the shared httpx.Client, the caller's AuthContext and a base URL
- lists its endpoint paths in declared_endpoints()
- calls the execute_* helpers below from its own public methods

    class S3Client(BaseApiClient):
        def __init__(self, transport, auth_context, settings: S3Settings) -> None:
            super().__init__(transport, auth_context, settings.base_url)
            self.endpoint_upload = settings.endpoint_upload

        def declared_endpoints(self):
            return (self.endpoint_upload,)

        def upload(self, name: str, content: bytes) -> UploadResult:
            return self.execute_multipart_post_request(
                self.endpoint_upload, {"file": (name, content)}, UploadResult
            )

Endpoint configuration is validated once the most-derived __init__ has
returned; a blank base URL or endpoint raises ConfigurationError and the
client is never handed out.

Non-2xx responses raise ApiClientError (status + raw body). Transport errors
(connect failures, timeouts) propagate unchanged. Nothing is retried here.
"""

from __future__ import annotations

import abc
import copy
import functools
import logging
import secrets
from typing import (
    Any,
    Iterable,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
    Union,
)

import httpx
from pydantic import BaseModel, TypeAdapter

from api_client.auth_context import AuthContext
from api_client.core.exceptions import ApiClientError, ConfigurationError

logger = logging.getLogger(__name__)

C = TypeVar("C", bound="BaseApiClient")

QueryParams = Union[
    Mapping[str, Union[str, Sequence[str]]],
    Sequence[Tuple[str, str]],
]
# name -> value, or name -> [values]; values are str/scalars (form fields),
# bytes / file objects / (filename, content[, content_type]) tuples (files)
MultipartParts = Union[Mapping[str, Any], Sequence[Tuple[str, Any]]]

APPLICATION_JSON = "application/json"
ALL_MEDIA_TYPES = "*/*"
MULTIPART_FORM_DATA = "multipart/form-data"

# "no query parameters", same as passing None or an empty mapping
WITHOUT_QUERY_PARAMS: Optional[QueryParams] = None


@functools.lru_cache(maxsize=256)
def _type_adapter(response_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(response_type)


def _read_body(response: httpx.Response, response_type: Any) -> Any:
    if response_type is None:
        return None
    if response_type is str:
        return response.text
    if response_type is bytes:
        return response.content
    if not response.content:
        return None
    return _type_adapter(response_type).validate_json(response.content)


def _join_path(base_url: str, endpoint: str) -> str:
    if not endpoint:
        return base_url
    return f"{base_url.rstrip('/')}/{endpoint.lstrip('/')}"


def _multipart_field(value: Any) -> Any:
    if isinstance(value, (bytes, tuple)) or hasattr(value, "read"):
        return value
    # (filename=None, content) renders as a plain form field
    return (None, str(value))


def _multipart_fields(parts: MultipartParts) -> list[tuple[str, Any]]:
    items = parts.items() if isinstance(parts, Mapping) else parts
    fields: list[tuple[str, Any]] = []
    for name, value in items:
        values = value if isinstance(value, list) else [value]
        fields.extend((name, _multipart_field(v)) for v in values)
    return fields


class _ValidatesAfterInit(abc.ABCMeta):
    """Run auto_validate_endpoints() once the whole __init__ chain is done."""

    def __call__(cls, *args: Any, **kwargs: Any) -> Any:
        instance = super().__call__(*args, **kwargs)
        instance.auto_validate_endpoints()
        return instance


class BaseApiClient(metaclass=_ValidatesAfterInit):
    """
    Shared plumbing for API clients; meant to be subclassed, not used directly.

    The metaclass derives from ABCMeta, so subclasses may also mix in ABC and
    declare abstract methods.

    Args:
        transport: Shared httpx.Client (see create_http_transport).
        auth_context: Caller credentials, or None outside request handling.
        base_url: Service address without paths, e.g. http://s3-service:8888.
    """

    WITHOUT_QUERY_PARAMS = WITHOUT_QUERY_PARAMS

    def __init__(
        self,
        transport: httpx.Client,
        auth_context: Optional[AuthContext],
        base_url: Optional[str],
    ) -> None:
        self.transport = transport
        self.auth_context = auth_context
        self.base_url = base_url

    def with_auth_context(self: C, auth_context: Optional[AuthContext]) -> C:
        """Copy of this client that sends ``auth_context``'s credentials."""
        clone = copy.copy(self)
        clone.auth_context = auth_context
        return clone

    # --- configuration -------------------------------------------------

    def declared_endpoints(self) -> Iterable[Optional[str]]:
        """Endpoint paths this client calls. Override in subclasses."""
        return ()

    def auto_validate_endpoints(self) -> None:
        """
        Check base URL and declared endpoints; called automatically after init.

        Endpoints that are None (not configured at all) are skipped.

        Raises:
            ConfigurationError: base URL or an endpoint is blank, or an
                endpoint is not a string.
        """
        if self.base_url is None or not self.base_url.strip():
            raise ConfigurationError(
                f"Base URL is not set for {type(self).__name__}"
            )

        endpoints: list[str] = []
        for endpoint in self.declared_endpoints():
            if endpoint is None:
                continue
            if not isinstance(endpoint, str):
                raise ConfigurationError("Failed to access endpoint field")
            endpoints.append(endpoint)

        if endpoints:
            self.validate_config(*endpoints)

    def validate_config(self, *endpoints: Optional[str]) -> None:
        """Raise ConfigurationError if any endpoint is None or blank."""
        for endpoint in endpoints:
            if endpoint is None or not endpoint.strip():
                raise ConfigurationError(
                    f"Endpoint is not set for {type(self).__name__}"
                )

    # --- request building ----------------------------------------------

    def build_url(
        self,
        endpoint: Optional[str],
        query_params: Optional[QueryParams] = WITHOUT_QUERY_PARAMS,
    ) -> httpx.URL:
        """
        base URL + endpoint, plus query parameters in insertion order.

        Args:
            endpoint: Relative path, e.g. "/api/v1/files".
            query_params: Mapping (str or list of str values) or (key, value)
                pairs; repeated keys are kept.

        Returns:
            httpx.URL: str() gives the full URL; scheme/host/path/params are
                available separately.

        Raises:
            ValueError: base URL is None or not an absolute http(s) URL.
        """
        if self.base_url is None:
            raise ValueError("Base URL must not be None")

        url = httpx.URL(_join_path(self.base_url, endpoint or ""))
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError(f"[{self.base_url}] is not a valid HTTP URL")

        if query_params:
            # keeps a query already present in the endpoint, e.g. "/x?fmt=json"
            url = url.copy_merge_params(httpx.QueryParams(query_params))
        return url

    def compose_headers(
        self, accepted_media_types: Optional[Sequence[str]] = None
    ) -> httpx.Headers:
        """
        Authorization (when a token is present) + Accept.

        An empty or missing ``accepted_media_types`` leaves Accept out
        entirely rather than defaulting it.
        """
        headers = httpx.Headers()
        token = self.auth_context.bearer_token() if self.auth_context else None
        if token is not None:
            headers["Authorization"] = f"Bearer {token}"
        if accepted_media_types:
            headers["Accept"] = ", ".join(accepted_media_types)
        return headers

    def json_headers(self) -> httpx.Headers:
        return self.compose_headers([APPLICATION_JSON])

    def any_type_headers(self) -> httpx.Headers:
        return self.compose_headers([ALL_MEDIA_TYPES])

    # --- execution -----------------------------------------------------

    def _resolve_url(
        self,
        endpoint_or_url: Union[str, httpx.URL],
        query_params: Optional[QueryParams],
    ) -> httpx.URL:
        if isinstance(endpoint_or_url, httpx.URL):
            if query_params:
                raise ValueError("query_params cannot be combined with a built URL")
            return endpoint_or_url
        return self.build_url(endpoint_or_url, query_params)

    def _exchange(
        self,
        method: str,
        url: Union[str, httpx.URL],
        *,
        headers: httpx.Headers,
        **body: Any,
    ) -> httpx.Response:
        logger.debug("Executing request", extra={"method": method, "url": str(url)})
        response = self.transport.request(method, url, headers=headers, **body)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "API request failed",
                extra={
                    "method": method,
                    "url": str(url),
                    "status_code": response.status_code,
                },
            )
            raise ApiClientError(response) from exc
        return response

    def execute_get_request(
        self,
        endpoint_or_url: Union[str, httpx.URL],
        response_type: Any,
        query_params: Optional[QueryParams] = WITHOUT_QUERY_PARAMS,
        *,
        accept: str = APPLICATION_JSON,
    ) -> Any:
        """
        GET and deserialize the body as ``response_type``.

        ``endpoint_or_url`` is either an endpoint path (combined with
        ``query_params``) or an already built httpx.URL, e.g. a pagination
        link. ``str`` / ``bytes`` return the raw body; other types go through
        pydantic.

        Raises:
            ApiClientError: non-2xx response.
        """
        url = self._resolve_url(endpoint_or_url, query_params)
        response = self._exchange("GET", url, headers=self.compose_headers([accept]))
        return _read_body(response, response_type)

    def execute_get_request_for_file(
        self,
        endpoint_or_url: Union[str, httpx.URL],
        query_params: Optional[QueryParams] = WITHOUT_QUERY_PARAMS,
    ) -> httpx.Response:
        """GET with Accept: */* and return the raw response (binary downloads)."""
        url = self._resolve_url(endpoint_or_url, query_params)
        return self._exchange("GET", url, headers=self.any_type_headers())

    def execute_post_request(
        self,
        url: Union[str, httpx.URL],
        response_type: Any,
        *,
        headers: httpx.Headers,
        **body: Any,
    ) -> Any:
        """
        POST primitive the higher-level helpers delegate to.

        ``body`` is passed to httpx as-is (json=, files=, data=, content=).

        Raises:
            ApiClientError: non-2xx response.
        """
        response = self._exchange("POST", url, headers=headers, **body)
        return _read_body(response, response_type)

    def execute_multipart_post_request(
        self,
        endpoint: str,
        parts: MultipartParts,
        response_type: Any,
        query_params: Optional[QueryParams] = WITHOUT_QUERY_PARAMS,
    ) -> Any:
        """POST ``parts`` as multipart/form-data, in order."""
        url = self.build_url(endpoint, query_params)
        headers = self.json_headers()
        # httpx picks the boundary up from the header when encoding the body
        boundary = secrets.token_hex(16)
        headers["Content-Type"] = f"{MULTIPART_FORM_DATA}; boundary={boundary}"
        fields = _multipart_fields(parts)
        if not fields:
            # httpx sends no body for empty files; write the closing delimiter
            return self.execute_post_request(
                url,
                response_type,
                headers=headers,
                content=f"--{boundary}--\r\n".encode(),
            )
        return self.execute_post_request(url, response_type, headers=headers, files=fields)

    def execute_json_body_post_request(
        self, endpoint: str, body: Any, response_type: Any
    ) -> Any:
        """POST ``body`` (JSON-serializable value or pydantic model) as JSON."""
        url = self.build_url(endpoint, WITHOUT_QUERY_PARAMS)
        headers = self.json_headers()
        headers["Content-Type"] = APPLICATION_JSON
        if isinstance(body, BaseModel):
            body = body.model_dump(mode="json")
        return self.execute_post_request(url, response_type, headers=headers, json=body)

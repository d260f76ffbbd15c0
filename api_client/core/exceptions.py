"""
Exception types and FastAPI exception handlers.

Goals:
- one typed error for failed outbound calls (status + raw body preserved)
- fatal configuration errors raised at client construction
- consistent error response shape for services embedding the clients
- explicit exception chaining
"""

from __future__ import annotations

import logging
from typing import Annotated, Any, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Standard API error response."""

    error_code: Annotated[str, Field(description="Stable error code for clients")]
    message: Annotated[str, Field(description="Human readable error message")]
    trace_id: Annotated[
        Optional[str], Field(description="Trace id for correlation")
    ] = None
    details: Annotated[
        Optional[dict[str, Any]], Field(description="Optional error details")
    ] = None


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        *,
        error_code: str,
        message: str,
        http_status: int = 400,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.message = message
        self.http_status = http_status
        self.details = details


class ConfigurationError(AppError):
    """Raised when a client is constructed with a missing base URL or endpoint."""

    def __init__(self, message: str) -> None:
        super().__init__(
            error_code="CONFIGURATION_ERROR", message=message, http_status=500
        )


class ApiClientError(AppError):
    """
    Raised when an outbound call completes with a non-2xx status.

    The upstream response is kept as-is: ``status_code`` and the raw ``body``
    text are available for diagnostics, ``response`` for anything else.
    """

    def __init__(self, response: httpx.Response) -> None:
        body = response.text
        super().__init__(
            error_code="UPSTREAM_ERROR",
            message=(
                f"API request failed with status: {response.status_code} "
                f"and body: {body}"
            ),
            http_status=502,
            details={"upstream_status": response.status_code, "upstream_body": body},
        )
        self.response = response
        self.status_code = response.status_code
        self.body = body


def _trace_id_from_request(request: Request) -> Optional[str]:
    return getattr(request.state, "trace_id", None)


def install_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the app."""

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        trace_id = _trace_id_from_request(request)
        logger.warning(
            "AppError",
            extra={
                "error_code": exc.error_code,
                "trace_id": trace_id,
                "details": exc.details,
            },
        )
        return JSONResponse(
            status_code=exc.http_status,
            content=ErrorResponse(
                error_code=exc.error_code,
                message=exc.message,
                trace_id=trace_id,
                details=exc.details,
            ).model_dump(),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        trace_id = _trace_id_from_request(request)
        logger.info(
            "RequestValidationError",
            extra={"trace_id": trace_id, "errors": exc.errors()},
        )
        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error_code="VALIDATION_ERROR",
                message="Request validation failed",
                trace_id=trace_id,
                details={"errors": exc.errors()},
            ).model_dump(),
        )

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception) -> JSONResponse:
        trace_id = _trace_id_from_request(request)
        logger.exception("Unhandled exception", extra={"trace_id": trace_id})
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error_code="INTERNAL_ERROR",
                message="Internal server error",
                trace_id=trace_id,
            ).model_dump(),
        )

"""
Logging for the api_client package.

Only the "api_client" logger hierarchy is configured; the host service keeps
control of the root logger. Records are rendered as JSON lines (or text) with:
- trace_id / span_id of the current OpenTelemetry span
- outbound call fields (method, url, status_code) grouped under "http"
- credential flags (token_set, username_set) grouped under "auth"
- anything that looks like a credential masked before it is written
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass
from typing import Any, Optional

from opentelemetry import trace

from api_client.core.config import ObservabilitySettings

LIBRARY_LOGGER = "api_client"

_HTTP_KEYS = ("method", "url", "status_code")
_AUTH_KEYS = ("token_set", "username_set")
_SECRET_MARKERS = ("token", "authorization", "password", "secret")

# present on every LogRecord; everything else arrived through extra={...}
_STANDARD_KEYS = frozenset(vars(logging.makeLogRecord({}))) | {
    "message",
    "asctime",
    "trace_id",
    "span_id",
}


@dataclass(frozen=True)
class LoggingConfig:
    service_name: str
    level: str
    fmt: str


def _mask(key: str, value: Any) -> Any:
    if isinstance(value, str) and any(m in key.lower() for m in _SECRET_MARKERS):
        return "***"
    return value


class TraceContextFilter(logging.Filter):
    """Attach the ids of the active span, or None outside a trace."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        ctx = trace.get_current_span().get_span_context()
        record.trace_id = f"{ctx.trace_id:032x}" if ctx.is_valid else None
        record.span_id = f"{ctx.span_id:016x}" if ctx.is_valid else None
        return True


class JsonFormatter(logging.Formatter):
    """Render a record as one JSON object with http/auth sections."""

    def __init__(self, *, service_name: str) -> None:
        super().__init__()
        self._service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        extras = {
            k: _mask(k, v) for k, v in vars(record).items() if k not in _STANDARD_KEYS
        }
        payload: dict[str, Any] = {
            "ts": int(record.created * 1000),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "service_name": self._service_name,
            "trace_id": getattr(record, "trace_id", None),
            "span_id": getattr(record, "span_id", None),
        }
        for section, keys in (("http", _HTTP_KEYS), ("auth", _AUTH_KEYS)):
            grouped = {k: extras.pop(k) for k in keys if k in extras}
            if grouped:
                payload[section] = grouped
        if extras:
            payload["extra"] = extras
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(
    *,
    service_name: str,
    settings: Optional[ObservabilitySettings] = None,
) -> LoggingConfig:
    """
    Route api_client logs to stdout.

    Level and format come from LOG_LEVEL / LOG_FORMAT unless ``settings`` is
    given. Calling it again replaces the previous handler.
    """
    settings = settings or ObservabilitySettings()
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.addFilter(TraceContextFilter())
    if settings.log_format == "json":
        handler.setFormatter(JsonFormatter(service_name=service_name))
    else:
        handler.setFormatter(
            logging.Formatter(
                f"%(asctime)s %(levelname)s %(name)s service={service_name} "
                "trace_id=%(trace_id)s - %(message)s"
            )
        )

    logger = logging.getLogger(LIBRARY_LOGGER)
    logger.handlers[:] = [handler]
    logger.setLevel(level)
    logger.propagate = False

    # httpx logs every request at INFO; our DEBUG line already covers it
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))

    return LoggingConfig(
        service_name=service_name,
        level=logging.getLevelName(level).lower(),
        fmt=settings.log_format,
    )

import json
import logging

import pytest
from fastapi import FastAPI

from api_client import configure_logging, install_api_client
from api_client.core.config import ObservabilitySettings
from api_client.core.logging import LIBRARY_LOGGER, JsonFormatter, TraceContextFilter


@pytest.fixture
def library_logger():
    logger = logging.getLogger(LIBRARY_LOGGER)
    saved = list(logger.handlers), logger.level, logger.propagate
    yield logger
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]


def _format(**extra):
    record = logging.makeLogRecord(
        {"name": "api_client.client", "levelname": "WARNING", "msg": "API request failed", **extra}
    )
    TraceContextFilter().filter(record)
    return json.loads(JsonFormatter(service_name="documents").format(record))


def test_json_formatter_groups_client_fields():
    payload = _format(method="GET", url="http://upstream/x", status_code=500, attempt=1)

    assert payload["msg"] == "API request failed"
    assert payload["service_name"] == "documents"
    assert payload["trace_id"] is None
    assert payload["http"] == {"method": "GET", "url": "http://upstream/x", "status_code": 500}
    assert payload["extra"] == {"attempt": 1}


def test_json_formatter_groups_credential_flags_and_masks_secrets():
    payload = _format(token_set=True, username_set=False, auth_token="jwtToken")

    assert payload["auth"] == {"token_set": True, "username_set": False}
    assert payload["extra"] == {"auth_token": "***"}


def test_configure_logging_owns_only_library_logger(library_logger, monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.delenv("LOG_FORMAT", raising=False)
    root_handlers = list(logging.getLogger().handlers)

    cfg = configure_logging(service_name="documents")

    assert cfg.level == "debug"
    assert cfg.fmt == "json"
    assert library_logger.level == logging.DEBUG
    assert library_logger.propagate is False
    assert len(library_logger.handlers) == 1
    assert logging.getLogger().handlers == root_handlers


def test_configure_logging_text_format(library_logger):
    settings = ObservabilitySettings(LOG_LEVEL="warning", LOG_FORMAT="text")
    cfg = configure_logging(service_name="documents", settings=settings)
    assert cfg.fmt == "text"
    assert not isinstance(library_logger.handlers[0].formatter, JsonFormatter)


def test_install_api_client_configures_logging(library_logger):
    install_api_client(FastAPI(), service_name="documents")
    assert isinstance(library_logger.handlers[0].formatter, JsonFormatter)

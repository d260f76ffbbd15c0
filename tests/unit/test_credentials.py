import asyncio

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from api_client import (
    AuthContext,
    AutoSetCredentials,
    CredentialsExtractor,
    auto_set_credentials,
    get_auth_context,
    install_api_client,
)


def _as_dict(ctx: AuthContext):
    return {"token": ctx.token, "username": ctx.username}


# --- AutoSetCredentials.apply ------------------------------------------


def test_defaults():
    options = AutoSetCredentials()
    assert options.extract_token is True
    assert options.token_header == "Authorization"
    assert options.extract_username is False
    assert options.username_header == "X-Auth-Username"


def test_apply_strips_bearer_prefix():
    ctx = AuthContext()
    AutoSetCredentials().apply({"Authorization": "Bearer XYZ"}, ctx)
    assert ctx.token == "XYZ"


def test_apply_keeps_token_without_prefix():
    ctx = AuthContext()
    AutoSetCredentials().apply({"Authorization": "raw-token"}, ctx)
    assert ctx.token == "raw-token"


def test_apply_with_all_options():
    ctx = AuthContext()
    options = AutoSetCredentials(extract_username=True, username_header="username")
    options.apply({"Authorization": "Bearer testToken", "username": "testUser"}, ctx)
    assert _as_dict(ctx) == {"token": "testToken", "username": "testUser"}


def test_apply_username_only():
    ctx = AuthContext()
    options = AutoSetCredentials(extract_token=False, extract_username=True)
    options.apply({"Authorization": "Bearer testToken", "X-Auth-Username": "alice"}, ctx)
    assert _as_dict(ctx) == {"token": None, "username": "alice"}


def test_apply_ignores_username_unless_enabled():
    ctx = AuthContext()
    AutoSetCredentials().apply({"X-Auth-Username": "alice"}, ctx)
    assert ctx.username is None


@pytest.mark.parametrize("headers", [{}, {"Authorization": "", "X-Auth-Username": ""}])
def test_apply_leaves_fields_untouched_when_headers_missing(headers):
    ctx = AuthContext(token="previous", username="bob")
    AutoSetCredentials(extract_username=True).apply(headers, ctx)
    assert _as_dict(ctx) == {"token": "previous", "username": "bob"}


# --- FastAPI wiring ----------------------------------------------------


def make_app():
    app = FastAPI()
    install_api_client(app)

    @app.get("/dependency")
    def via_dependency(
        auth: AuthContext = Depends(CredentialsExtractor(extract_username=True)),
    ):
        return _as_dict(auth)

    @app.get("/decorated")
    @auto_set_credentials(extract_username=True)
    def decorated(auth: AuthContext = Depends(get_auth_context)):
        return _as_dict(auth)

    @app.get("/decorated-async")
    @auto_set_credentials(token_header="X-Api-Token")
    async def decorated_async(auth: AuthContext = Depends(get_auth_context)):
        return _as_dict(auth)

    @app.get("/bare")
    @auto_set_credentials
    def bare(auth: AuthContext = Depends(get_auth_context)):
        return _as_dict(auth)

    return app


@pytest.fixture
def client():
    return TestClient(make_app())


def test_dependency_populates_auth_context(client):
    response = client.get(
        "/dependency",
        headers={"Authorization": "Bearer XYZ", "X-Auth-Username": "alice"},
    )
    assert response.json() == {"token": "XYZ", "username": "alice"}


def test_decorator_populates_auth_context(client):
    response = client.get(
        "/decorated",
        headers={"Authorization": "Bearer XYZ", "X-Auth-Username": "alice"},
    )
    assert response.json() == {"token": "XYZ", "username": "alice"}


def test_decorator_on_async_handler_uses_custom_header(client):
    response = client.get(
        "/decorated-async",
        headers={"Authorization": "Bearer ignored", "X-Api-Token": "Bearer abc"},
    )
    assert response.json() == {"token": "abc", "username": None}


def test_bare_decorator_uses_defaults(client):
    response = client.get(
        "/bare", headers={"Authorization": "Bearer XYZ", "X-Auth-Username": "alice"}
    )
    assert response.json() == {"token": "XYZ", "username": None}


def test_handler_runs_without_credentials(client):
    response = client.get("/decorated")
    assert response.status_code == 200
    assert response.json() == {"token": None, "username": None}


def test_requests_do_not_share_credentials(client):
    client.get("/decorated", headers={"Authorization": "Bearer first"})
    response = client.get("/decorated")
    assert response.json()["token"] is None


def test_decorator_outside_request_fails_loudly():
    @auto_set_credentials
    def job():
        return "ran"

    with pytest.raises(RuntimeError):
        job()


def test_async_decorator_outside_request_fails_loudly():
    @auto_set_credentials
    async def job():
        return "ran"

    with pytest.raises(RuntimeError):
        asyncio.run(job())

from types import SimpleNamespace

import pytest

from src.auth import authentication
from src.auth.authentication import (
    AuthConfig,
    CredentialsMiddleware,
    create_auth_middleware,
    create_credentials_config,
)
from src.auth.lifecycle import TokenLifecycleManager
from src.models.base_models import ClientIdentity


async def call_next(context):
    return "next-result"


def use_headers(monkeypatch, headers):
    monkeypatch.setattr(
        authentication, "get_http_request", lambda: SimpleNamespace(headers=headers)
    )


def no_fetch(monkeypatch):
    async def fail_fetch():
        raise AssertionError("NPSSO fetch should not happen")

    monkeypatch.setattr(authentication, "fetch_npsso_async", fail_fetch)


@pytest.mark.asyncio
async def test_header_npsso_replaces_session_handle(monkeypatch, store):
    monkeypatch.delenv("NPSSO", raising=False)
    use_headers(monkeypatch, {"x-npsso": " header-npsso "})
    no_fetch(monkeypatch)
    auth = TokenLifecycleManager(store, session_handle="old")

    result = await CredentialsMiddleware(auth).on_request(SimpleNamespace(), call_next)

    assert result == "next-result"
    assert auth.session_handle == "header-npsso"


@pytest.mark.asyncio
async def test_environment_npsso_wins_over_header(monkeypatch, store):
    monkeypatch.setenv("NPSSO", "env-npsso")
    use_headers(monkeypatch, {"x-npsso": "header-npsso"})
    no_fetch(monkeypatch)
    auth = TokenLifecycleManager(store, session_handle="env-npsso")

    await CredentialsMiddleware(auth).on_request(SimpleNamespace(), call_next)

    assert auth.session_handle == "env-npsso"


@pytest.mark.asyncio
async def test_client_headers_configure_identity_once(monkeypatch, store):
    monkeypatch.delenv("NPSSO", raising=False)
    use_headers(
        monkeypatch,
        {"x-npsso": "n", "x-client-id": "header-client", "x-client-secret": "header-secret"},
    )
    no_fetch(monkeypatch)
    auth = TokenLifecycleManager(store)
    middleware = CredentialsMiddleware(auth)

    await middleware.on_request(SimpleNamespace(), call_next)

    assert auth.client_identity == ClientIdentity(
        client_id="header-client", client_secret="header-secret"
    )

    use_headers(monkeypatch, {"x-client-id": "other-client"})
    await middleware.on_request(SimpleNamespace(), call_next)

    assert auth.client_identity.client_id == "header-client"


@pytest.mark.asyncio
async def test_missing_npsso_is_fetched(monkeypatch, store):
    monkeypatch.delenv("NPSSO", raising=False)
    use_headers(monkeypatch, {})
    calls = []

    async def fake_fetch():
        calls.append(True)
        return "fetched-npsso"

    monkeypatch.setattr(authentication, "fetch_npsso_async", fake_fetch)
    auth = TokenLifecycleManager(store)

    await CredentialsMiddleware(auth).on_request(SimpleNamespace(), call_next)

    assert calls == [True]
    assert auth.session_handle == "fetched-npsso"


@pytest.mark.asyncio
async def test_fetch_disabled_leaves_session_empty(monkeypatch, store):
    use_headers(monkeypatch, {})
    no_fetch(monkeypatch)
    auth = TokenLifecycleManager(store)

    await CredentialsMiddleware(auth, AuthConfig(fetch_npsso=False)).on_request(
        SimpleNamespace(), call_next
    )

    assert auth.session_handle == ""


@pytest.mark.asyncio
async def test_outside_http_request_passes_through(monkeypatch, store):
    def no_request():
        raise RuntimeError("No active HTTP request found.")

    monkeypatch.setattr(authentication, "get_http_request", no_request)
    no_fetch(monkeypatch)
    auth = TokenLifecycleManager(store, session_handle="kept")

    result = await CredentialsMiddleware(auth).on_request(SimpleNamespace(), call_next)

    assert result == "next-result"
    assert auth.session_handle == "kept"


def test_create_auth_middleware_respects_enabled(store):
    auth = TokenLifecycleManager(store)

    assert create_auth_middleware(AuthConfig(enabled=False), auth_manager=auth) == []

    stack = create_auth_middleware(AuthConfig(), auth_manager=auth)
    assert len(stack) == 1
    assert isinstance(stack[0], CredentialsMiddleware)


def test_credentials_config_reads_fetch_flag(monkeypatch):
    monkeypatch.setenv("PSN_FETCH_NPSSO", "false")
    assert create_credentials_config().fetch_npsso is False

    monkeypatch.delenv("PSN_FETCH_NPSSO")
    assert create_credentials_config().fetch_npsso is True

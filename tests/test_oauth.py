"""Tests for the Google OAuth flow: nonce, URL, exchange handler."""

import asyncio
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from oauth import (
    AuthorizationURLBuilder,
    ExchangeStatus,
    GoogleOAuthManager,
    OAuthStateManager,
)
from session import ErrorKind, OAuthExchangeFailed

from .conftest import USER_PAYLOAD, bearer, body, json_response

REDIRECT_URI = "http://localhost:5173/auth/callback"


@pytest.fixture
def state_manager(tmp_path) -> OAuthStateManager:
    return OAuthStateManager(state_file=str(tmp_path / "oauth_state.json"))


@pytest.fixture
def navigations() -> list:
    return []


@pytest.fixture
def oauth(session, state_manager) -> GoogleOAuthManager:
    return GoogleOAuthManager(session, state_manager=state_manager, redirect_uri=REDIRECT_URI)


@pytest.fixture
def handler(oauth, navigations):
    return oauth.create_callback_handler(navigations.append, error_redirect_delay=0)


def route_successful_exchange(backend):
    backend.route("POST", "/auth/google/callback", json_response(200, {"access_token": "G1"}))
    backend.route("GET", "/auth/me", json_response(200, {"user": USER_PAYLOAD}))


# State nonce

def test_consume_matching_state(state_manager):
    state = state_manager.generate_state()

    assert state_manager.consume(state) is True
    assert state_manager.load_state() is None


def test_consume_discards_state_on_mismatch(state_manager):
    state_manager.generate_state()

    assert state_manager.consume("forged") is False
    assert state_manager.load_state() is None


def test_consume_without_stored_state(state_manager):
    assert state_manager.consume("anything") is False


def test_generated_states_are_unique(state_manager):
    assert state_manager.generate_state() != state_manager.generate_state()


# Authorization URL

def test_authorize_url_carries_stored_state(state_manager):
    builder = AuthorizationURLBuilder(state_manager, client_id="client-123", redirect_uri=REDIRECT_URI)

    url = urlparse(builder.get_authorize_url())
    params = {k: v[0] for k, v in parse_qs(url.query).items()}

    assert url.netloc == "accounts.google.com"
    assert params["client_id"] == "client-123"
    assert params["redirect_uri"] == REDIRECT_URI
    assert params["response_type"] == "code"
    assert "openid" in params["scope"]
    assert params["state"] == state_manager.load_state()


# Exchange handler

async def test_successful_exchange(handler, backend, state_manager, token_store, session, navigations):
    route_successful_exchange(backend)
    state = state_manager.generate_state()

    status = await handler.handle_callback({"code": "auth-code", "state": state})

    assert status is ExchangeStatus.SUCCESS
    assert handler.status is ExchangeStatus.SUCCESS
    assert body(backend.calls("POST", "/auth/google/callback")[0]) == {
        "code": "auth-code",
        "redirect_uri": REDIRECT_URI,
        "state": state,
    }
    assert token_store.get() == "G1"
    assert bearer(backend.calls("GET", "/auth/me")[0]) == "Bearer G1"
    assert session.state.is_authenticated is True
    assert session.state.user.id == 1
    assert navigations == ["/"]
    assert state_manager.load_state() is None


async def test_duplicate_invocation_exchanges_once(handler, backend, state_manager):
    route_successful_exchange(backend)
    state = state_manager.generate_state()
    params = {"code": "auth-code", "state": state}

    results = await asyncio.gather(handler.handle_callback(params), handler.handle_callback(params))
    again = await handler.handle_callback(params)

    assert results == [ExchangeStatus.SUCCESS, ExchangeStatus.SUCCESS]
    assert again is ExchangeStatus.SUCCESS
    assert backend.count("POST", "/auth/google/callback") == 1


async def test_state_mismatch_aborts_before_exchange(handler, backend, state_manager, token_store, session, navigations):
    route_successful_exchange(backend)
    state_manager.generate_state()

    status = await handler.handle_callback({"code": "auth-code", "state": "forged"})
    await handler.redirect_task

    assert status is ExchangeStatus.ERROR
    assert backend.count("POST", "/auth/google/callback") == 0
    assert token_store.get() is None
    assert state_manager.load_state() is None
    assert session.state.last_error is ErrorKind.OAUTH_EXCHANGE_FAILED
    assert navigations == ["/login"]


@pytest.mark.parametrize(
    "params",
    [
        {"error": "access_denied"},
        {"code": "auth-code"},
        {"state": "abc"},
        {},
    ],
)
async def test_provider_error_or_missing_params(handler, backend, state_manager, navigations, params):
    route_successful_exchange(backend)
    state_manager.generate_state()

    status = await handler.handle_callback(params)
    await handler.redirect_task

    assert status is ExchangeStatus.ERROR
    assert handler.error_message
    assert backend.count("POST", "/auth/google/callback") == 0
    assert state_manager.load_state() is None
    assert navigations == ["/login"]


async def test_error_redirect_waits_for_delay(oauth, backend, state_manager, navigations):
    handler = oauth.create_callback_handler(navigations.append, error_redirect_delay=0.05)

    await handler.handle_callback({"error": "access_denied"})
    assert navigations == []

    await handler.redirect_task
    assert navigations == ["/login"]


async def test_backend_rejection_is_error(handler, backend, state_manager, token_store):
    backend.route("POST", "/auth/google/callback", json_response(422, {"detail": "invalid code"}))
    state = state_manager.generate_state()

    status = await handler.handle_callback({"code": "stale", "state": state})
    await handler.redirect_task

    assert status is ExchangeStatus.ERROR
    assert token_store.get() is None
    assert backend.count("GET", "/auth/me") == 0


async def test_identity_failure_after_exchange_is_error(handler, backend, state_manager, token_store):
    backend.route("POST", "/auth/google/callback", json_response(200, {"access_token": "G1"}))
    backend.route("GET", "/auth/me", json_response(500))
    state = state_manager.generate_state()

    status = await handler.handle_callback({"code": "auth-code", "state": state})
    await handler.redirect_task

    assert status is ExchangeStatus.ERROR
    assert token_store.get() is None


async def test_async_navigate_is_awaited(oauth, backend, state_manager):
    route_successful_exchange(backend)
    visited = []

    async def navigate(path):
        await asyncio.sleep(0)
        visited.append(path)

    handler = oauth.create_callback_handler(navigate)
    state = state_manager.generate_state()

    await handler.handle_callback({"code": "auth-code", "state": state})

    assert visited == ["/"]


# One-shot ID token sign-in

async def test_login_with_id_token(oauth, backend, token_store, session):
    backend.route("POST", "/login/google", json_response(200, {"access_token": "G2"}))
    backend.route("GET", "/auth/me", json_response(200, USER_PAYLOAD))

    user = await oauth.login_with_id_token("google-id-token")

    assert user.id == 1
    assert token_store.get() == "G2"
    assert body(backend.calls("POST", "/login/google")[0]) == {"id_token": "google-id-token"}
    assert session.state.is_authenticated is True


async def test_login_with_id_token_rejected(oauth, backend, token_store, session):
    backend.route("POST", "/login/google", json_response(401, {"detail": "Invalid Google token"}))

    with pytest.raises(OAuthExchangeFailed) as exc_info:
        await oauth.login_with_id_token("bad-token")

    assert exc_info.value.detail == "Invalid Google token"
    assert token_store.get() is None
    assert session.state.last_error is ErrorKind.OAUTH_EXCHANGE_FAILED


async def test_exchange_unreachable_server(oauth, backend):
    def unreachable(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    backend.route("POST", "/login/google", unreachable)

    with pytest.raises(OAuthExchangeFailed):
        await oauth.login_with_id_token("google-id-token")

"""Tests for RefreshTransport."""

import httpx
import pytest

from session import NetworkUnavailable, RefreshRejected

from .conftest import USER_PAYLOAD, json_response


async def test_refresh_returns_new_access_token(session, backend):
    backend.route("POST", "/auth/refresh", json_response(200, {"access_token": "T2"}))

    assert await session.refresh_transport.refresh() == "T2"


async def test_refresh_does_not_store_the_token(session, backend, token_store):
    backend.route("POST", "/auth/refresh", json_response(200, {"access_token": "T2"}))

    await session.refresh_transport.refresh()

    assert token_store.get() is None


async def test_refresh_cookie_from_login_is_sent_implicitly(session, backend):
    backend.route(
        "POST",
        "/auth/login",
        json_response(
            200,
            {"access_token": "T1", "user": USER_PAYLOAD},
            headers={"set-cookie": "refresh_token=R1; Path=/; HttpOnly; Secure"},
        ),
    )
    backend.route("POST", "/auth/refresh", json_response(200, {"access_token": "T2"}))

    await session.login("a@b.com", "Secret1!")
    await session.refresh_transport.refresh()

    refresh_call = backend.calls("POST", "/auth/refresh")[0]
    assert "refresh_token=R1" in refresh_call.headers.get("cookie", "")
    assert refresh_call.content == b""


@pytest.mark.parametrize(
    "response",
    [
        json_response(401, {"detail": "refresh token expired"}),
        json_response(403),
        json_response(200, {"token": "wrong-field"}),
        json_response(200, {"access_token": ""}),
        httpx.Response(200, text="not json"),
    ],
)
async def test_refresh_rejections(session, backend, response):
    backend.route("POST", "/auth/refresh", response)

    with pytest.raises(RefreshRejected):
        await session.refresh_transport.refresh()


async def test_refresh_timeout_is_a_rejection(session, backend):
    def slow(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    backend.route("POST", "/auth/refresh", slow)

    with pytest.raises(RefreshRejected):
        await session.refresh_transport.refresh()


async def test_refresh_connection_failure_is_network_unavailable(session, backend):
    def unreachable(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    backend.route("POST", "/auth/refresh", unreachable)

    with pytest.raises(NetworkUnavailable):
        await session.refresh_transport.refresh()


async def test_refresh_request_carries_bounded_timeout(session, backend):
    backend.route("POST", "/auth/refresh", json_response(200, {"access_token": "T2"}))
    session.refresh_transport.timeout = 3.5

    await session.refresh_transport.refresh()

    timeout = backend.calls("POST", "/auth/refresh")[0].extensions["timeout"]
    assert timeout["read"] == 3.5

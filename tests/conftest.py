"""Shared fixtures: a scripted backend behind httpx.MockTransport."""

from __future__ import annotations

import inspect
import json
from collections import defaultdict
from typing import Any, Callable

import httpx
import pytest

from session import SessionClient
from utils.storage import MemoryTokenStorage

API_BASE = "https://api.example.com"

USER_PAYLOAD = {"id": 1, "username": "alice", "email": "a@b.com", "name": "Alice"}


def json_response(status_code: int, body: Any = None, **kwargs) -> httpx.Response:
    return httpx.Response(status_code, json=body if body is not None else {}, **kwargs)


class StubBackend:
    """Routes requests to scripted responses and records every call.

    A route is either a callable ``handler(request)`` (sync or async) or a
    list of responses served in order, the last one repeating.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Any] = {}
        self.requests: list[httpx.Request] = []
        self._served: dict[tuple[str, str], int] = defaultdict(int)

    def route(self, method: str, path: str, *responses: httpx.Response | Callable) -> None:
        if len(responses) == 1 and callable(responses[0]):
            self.routes[(method, path)] = responses[0]
        else:
            self.routes[(method, path)] = list(responses)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def count(self, method: str, path: str) -> int:
        return len(self.calls(method, path))

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        route = self.routes.get(key)
        if route is None:
            return json_response(404, {"detail": f"no route for {key}"})

        if callable(route):
            result = route(request)
            if inspect.isawaitable(result):
                result = await result
            return result

        index = min(self._served[key], len(route) - 1)
        self._served[key] += 1
        scripted = route[index]
        # Fresh object per call so a repeated response is never re-consumed
        return httpx.Response(scripted.status_code, headers=scripted.headers, content=scripted.content)


def bearer(request: httpx.Request) -> str | None:
    return request.headers.get("authorization")


def body(request: httpx.Request) -> dict:
    return json.loads(request.content or b"{}")


@pytest.fixture
def backend() -> StubBackend:
    return StubBackend()


@pytest.fixture
def token_store() -> MemoryTokenStorage:
    return MemoryTokenStorage()


@pytest.fixture
async def session(backend, token_store):
    client = SessionClient(
        base_url=API_BASE,
        token_store=token_store,
        transport=httpx.MockTransport(backend),
    )
    yield client
    await client.aclose()


@pytest.fixture
def expired_signals(session) -> list:
    signals: list = []
    session.on_session_expired(signals.append)
    return signals

"""SessionClient: one object wiring the whole session layer together"""

import logging
from typing import Any, Callable, Optional

import httpx

from settings import API_BASE_URL, CONNECT_TIMEOUT, REQUEST_TIMEOUT
from utils.storage import TokenStorage
from .auth_api import AuthAPI
from .gateway import RequestGateway, SessionExpiredListener
from .models import SessionState, User
from .restorer import SessionRestorer
from .state import SessionListener, SessionStore
from .token_refresh import RefreshTransport

logger = logging.getLogger(__name__)


class SessionClient:
    """Authenticated API client for the community site

    Owns a single ``httpx.AsyncClient``. Its cookie jar carries the refresh
    credential between login, refresh and logout; nothing else reads it.

    Typical use::

        async with SessionClient() as session:
            session.on_session_expired(lambda error: go_to("/login"))
            await session.restore()
            response = await session.gateway.get("/posts")
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token_store=None,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.client = client or httpx.AsyncClient(
            base_url=base_url or API_BASE_URL,
            timeout=httpx.Timeout(REQUEST_TIMEOUT, connect=CONNECT_TIMEOUT),
            transport=transport,
        )
        self.token_store = token_store if token_store is not None else TokenStorage()
        self.session_store = SessionStore()
        self.refresh_transport = RefreshTransport(self.client)
        self.gateway = RequestGateway(self.client, self.token_store, self.refresh_transport, self.session_store)
        self.restorer = SessionRestorer(self.token_store, self.gateway, self.session_store)
        self.auth = AuthAPI(self.gateway, self.token_store, self.session_store, self.restorer)

    async def __aenter__(self) -> "SessionClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    @property
    def state(self) -> SessionState:
        return self.session_store.state

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        return self.session_store.subscribe(listener)

    def on_session_expired(self, listener: SessionExpiredListener) -> Callable[[], None]:
        return self.gateway.on_session_expired(listener)

    async def restore(self) -> SessionState:
        return await self.restorer.restore()

    async def login(self, email: str, password: str) -> User:
        return await self.auth.login(email, password)

    async def signup(self, username: str, email: str, password: str) -> User:
        return await self.auth.signup(username, email, password)

    async def logout(self) -> None:
        await self.auth.logout()

    async def me(self) -> User:
        return await self.auth.me()

    async def update_me(self, **fields: Any) -> User:
        return await self.auth.update_me(**fields)

    async def delete_me(self) -> None:
        await self.auth.delete_me()

    def clear_error(self) -> None:
        self.session_store.clear_error()

"""Completion of the Google authorization-code flow"""

import asyncio
import inspect
import logging
from enum import Enum
from typing import Any, Callable, Mapping, Optional

import httpx

from settings import GOOGLE_REDIRECT_URI, HOME_PAGE, LOGIN_PAGE, OAUTH_ERROR_REDIRECT_DELAY
from session.errors import OAuthExchangeFailed, SessionError
from session.restorer import SessionRestorer
from session.state import SessionStore
from .state import OAuthStateManager
from .token_exchange import exchange_code

logger = logging.getLogger(__name__)

Navigate = Callable[[str], Any]


class ExchangeStatus(str, Enum):
    """Lifecycle of one callback: pending until it succeeds or fails"""

    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


class OAuthExchangeHandler:
    """Turns one provider redirect into an authenticated session

    One handler serves one arrival at the callback. Invoking it again, for
    example from a duplicated event, waits on the first attempt instead of
    exchanging the code a second time.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        token_store,
        state_manager: OAuthStateManager,
        restorer: SessionRestorer,
        session_store: SessionStore,
        navigate: Navigate,
        redirect_uri: Optional[str] = None,
        error_redirect_delay: Optional[float] = None
    ):
        self.client = client
        self.token_store = token_store
        self.state_manager = state_manager
        self.restorer = restorer
        self.session_store = session_store
        self.navigate = navigate
        self.redirect_uri = redirect_uri or GOOGLE_REDIRECT_URI
        self.error_redirect_delay = (
            OAUTH_ERROR_REDIRECT_DELAY if error_redirect_delay is None else error_redirect_delay
        )

        self.status = ExchangeStatus.PENDING
        self.error_message: Optional[str] = None
        self.redirect_task: Optional["asyncio.Task[None]"] = None
        self._task: Optional["asyncio.Task[ExchangeStatus]"] = None

    async def handle_callback(self, params: Mapping[str, str]) -> ExchangeStatus:
        """Process the provider's redirect query parameters

        Args:
            params: Query parameters (``code``, ``state`` and possibly ``error``)

        Returns:
            The terminal status, SUCCESS or ERROR
        """
        # Guard flag: exactly one exchange per arrival
        if self._task is None:
            self._task = asyncio.create_task(self._process(dict(params)))
        else:
            logger.debug("OAuth callback already being processed, ignoring duplicate")
        return await asyncio.shield(self._task)

    async def _process(self, params: Mapping[str, str]) -> ExchangeStatus:
        self.status = ExchangeStatus.PENDING
        self.session_store.begin_loading()

        try:
            await self._exchange(params)
        except SessionError as e:
            return self._fail(e)

        self.status = ExchangeStatus.SUCCESS
        logger.info("Google sign-in complete")
        await self._navigate(HOME_PAGE)
        return self.status

    async def _exchange(self, params: Mapping[str, str]) -> None:
        code = params.get("code")
        state = params.get("state")
        provider_error = params.get("error")

        if provider_error:
            self.state_manager.clear_state()
            raise OAuthExchangeFailed(f"Google sign-in failed: {provider_error}", detail=params.get("error_description"))

        if not code or not state:
            self.state_manager.clear_state()
            raise OAuthExchangeFailed("Authentication parameters are missing")

        # consume() discards the stored nonce whether or not it matches
        if not self.state_manager.consume(state):
            logger.warning("OAuth state mismatch, aborting sign-in")
            raise OAuthExchangeFailed("Invalid state parameter")

        access_token = await exchange_code(self.client, code, self.redirect_uri, state)
        self.token_store.set(access_token)

        try:
            user = await self.restorer.fetch_identity()
        except SessionError as e:
            self.token_store.clear()
            raise OAuthExchangeFailed("Could not load the signed-in user") from e

        self.session_store.set_authenticated(user)

    def _fail(self, error: SessionError) -> ExchangeStatus:
        self.status = ExchangeStatus.ERROR
        self.error_message = str(error)
        logger.error(f"OAuth callback failed: {error}")
        self.session_store.set_anonymous(error.kind)

        # Leave the message readable for a moment before going back to login
        self.redirect_task = asyncio.create_task(self._redirect_later(LOGIN_PAGE))
        return self.status

    async def _redirect_later(self, path: str) -> None:
        await asyncio.sleep(self.error_redirect_delay)
        await self._navigate(path)

    async def _navigate(self, path: str) -> None:
        result = self.navigate(path)
        if inspect.isawaitable(result):
            await result

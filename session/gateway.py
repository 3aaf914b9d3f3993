"""Authenticated request gateway

Every application call goes through RequestGateway. It attaches the stored
access token and, when the server answers 401, refreshes the token once and
re-issues the original request. Concurrent 401s share a single refresh.
"""

import asyncio
import logging
from typing import Any, Callable, Iterable, List, Optional

import httpx

from settings import LOGIN_PATH, SIGNUP_PATH
from .errors import (
    InvalidCredentials,
    NetworkUnavailable,
    RefreshRejected,
    RequestTimedOut,
    SessionExpired,
    detail_from_response,
)
from .models import ErrorKind
from .state import SessionStore
from .token_refresh import RefreshTransport

logger = logging.getLogger(__name__)

SENSITIVE_HEADERS = ("authorization", "cookie", "set-cookie")

# Credential-issuing endpoints: a 401 here means bad credentials, not a stale token
CREDENTIAL_PATHS = (LOGIN_PATH, SIGNUP_PATH)

SessionExpiredListener = Callable[[SessionExpired], Any]


class RequestGateway:
    """Attaches credentials and drives the refresh protocol for every request"""

    def __init__(
        self,
        client: httpx.AsyncClient,
        token_store,
        refresh_transport: RefreshTransport,
        session_store: SessionStore,
        credential_paths: Iterable[str] = CREDENTIAL_PATHS
    ):
        self.client = client
        self.token_store = token_store
        self.refresh_transport = refresh_transport
        self.session_store = session_store
        self.credential_paths = tuple(credential_paths)

        self._refresh_task: Optional["asyncio.Task[str]"] = None
        self._expiry_listeners: List[SessionExpiredListener] = []
        self._last_signalled: Optional[object] = None

    # Session-expired signal

    def on_session_expired(self, listener: SessionExpiredListener) -> Callable[[], None]:
        """Subscribe to involuntary logouts; returns an unsubscribe callable

        Hosts use this to navigate to their login page.
        """
        self._expiry_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._expiry_listeners:
                self._expiry_listeners.remove(listener)

        return unsubscribe

    def _signal_expired(self, marker: object, error: SessionExpired) -> None:
        # One signal per termination, however many requests observed it
        if self._last_signalled is marker:
            return
        self._last_signalled = marker

        logger.info("Session expired, notifying host to redirect to login")
        for listener in list(self._expiry_listeners):
            try:
                listener(error)
            except Exception:
                logger.exception("Session-expired listener raised")

    def _terminate_session(self) -> None:
        self.token_store.clear()
        self.session_store.set_anonymous(ErrorKind.SESSION_EXPIRED)

    # Request plumbing

    async def request(self, method: str, url: str, *, notify_expiry: bool = True, **kwargs) -> httpx.Response:
        """Build and send a request through the refresh protocol

        Args:
            method: HTTP method
            url: Path relative to the API origin, or an absolute URL
            notify_expiry: Whether a terminal failure fires the session-expired
                signal. The session is reset either way.
            **kwargs: Passed to ``httpx.AsyncClient.build_request``

        Returns:
            The first response that is not a recoverable 401

        Raises:
            InvalidCredentials: A credential-issuing call answered 401
            SessionExpired: Refresh failed, or the retried request answered 401 again
            NetworkUnavailable: No response was received
            RequestTimedOut: No response arrived within the request timeout
        """
        request = self.client.build_request(method, url, **kwargs)
        return await self.send(request, notify_expiry=notify_expiry)

    async def get(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("PUT", url, **kwargs)

    async def patch(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("PATCH", url, **kwargs)

    async def delete(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("DELETE", url, **kwargs)

    async def send(self, request: httpx.Request, *, notify_expiry: bool = True) -> httpx.Response:
        """Send a prepared request through the refresh protocol"""
        sent_token = self._attach_credential(request)
        response = await self._dispatch(request)
        if response.status_code != 401:
            return response

        if self._is_credential_request(request):
            raise InvalidCredentials("Login rejected", detail=detail_from_response(response))

        logger.debug(f"{request.method} {request.url.path} answered 401, refreshing credential")
        token = await self._fresh_token(sent_token, notify_expiry)

        retry = self._with_credential(request, token)
        response = await self._dispatch(retry)
        if response.status_code != 401:
            return response

        logger.warning(f"{request.method} {request.url.path} answered 401 after refresh")
        error = SessionExpired("Request rejected after refreshing credentials")
        # Only the first request to fail with this credential ends the session
        if self.token_store.get() == token:
            marker = object()
            self._terminate_session()
            if notify_expiry:
                self._signal_expired(marker, error)
        raise error

    def _attach_credential(self, request: httpx.Request) -> Optional[str]:
        token = self.token_store.get()
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        return token

    def _with_credential(self, request: httpx.Request, token: str) -> httpx.Request:
        """Copy of the original request carrying a different credential"""
        headers = httpx.Headers(request.headers)
        headers["Authorization"] = f"Bearer {token}"
        return self.client.build_request(
            request.method,
            request.url,
            headers=headers,
            content=request.content,
            extensions=request.extensions,
        )

    def _is_credential_request(self, request: httpx.Request) -> bool:
        return request.url.path.endswith(self.credential_paths)

    async def _dispatch(self, request: httpx.Request) -> httpx.Response:
        if logger.isEnabledFor(logging.DEBUG):
            log_request_headers(request)
        try:
            return await self.client.send(request)
        except httpx.TimeoutException as e:
            logger.warning(f"{request.method} {request.url.path} timed out: {e}")
            raise RequestTimedOut(f"Request timed out: {e}") from e
        except httpx.TransportError as e:
            # Not evidence of a bad credential, so no refresh is spent on it
            logger.warning(f"No response for {request.method} {request.url.path}: {e}")
            raise NetworkUnavailable(f"Network unavailable: {e}") from e

    # Single-flight refresh

    async def _fresh_token(self, sent_token: Optional[str], notify_expiry: bool) -> str:
        current = self.token_store.get()
        if sent_token and current is None:
            # An earlier refresh failure already ended and signalled this session
            logger.debug("Credential was cleared while the request was in flight")
            raise SessionExpired("Session expired, please log in again")
        if current and current != sent_token:
            logger.debug("Credential was replaced while the request was in flight, reusing it")
            return current

        task = self._refresh_task
        if task is None:
            task = asyncio.create_task(self._run_refresh())
            task.add_done_callback(_retrieve_outcome)
            self._refresh_task = task
        else:
            logger.debug("Refresh already in flight, waiting for it")

        try:
            # Shielded so one waiter's cancellation cannot cancel the shared refresh
            return await asyncio.shield(task)
        except RefreshRejected as e:
            error = SessionExpired("Session expired, please log in again")
            if notify_expiry:
                self._signal_expired(task, error)
            raise error from e

    async def _run_refresh(self) -> str:
        try:
            token = await self.refresh_transport.refresh()
            self.token_store.set(token)
            return token
        except RefreshRejected:
            self._terminate_session()
            raise
        finally:
            self._refresh_task = None

    @property
    def refresh_in_flight(self) -> bool:
        return self._refresh_task is not None


def _retrieve_outcome(task: "asyncio.Task[str]"):
    # Every waiter may have been cancelled before a failing refresh finished
    if not task.cancelled():
        task.exception()


def log_request_headers(request: httpx.Request):
    """Log outgoing request headers with credentials redacted"""
    logger.debug(f"{request.method} {request.url}")
    for header_name, header_value in request.headers.items():
        if header_name.lower() in SENSITIVE_HEADERS:
            logger.debug(f"  {header_name}: [REDACTED]")
        else:
            logger.debug(f"  {header_name}: {header_value}")

"""Account operations that change who is logged in"""

import json
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from settings import LOGIN_PATH, LOGOUT_PATH, ME_PATH, SIGNUP_PATH
from .errors import (
    InvalidCredentials,
    RequestFailed,
    SessionError,
    detail_from_response,
    raise_for_status,
)
from .gateway import RequestGateway
from .models import AuthResponse, User
from .restorer import SessionRestorer
from .state import SessionStore

logger = logging.getLogger(__name__)

# Statuses with which the backend rejects login/signup input
_REJECTED_CREDENTIAL_STATUSES = (400, 401, 409, 422)


class AuthAPI:
    """Login, signup, logout and profile calls wired to the session state"""

    def __init__(
        self,
        gateway: RequestGateway,
        token_store,
        session_store: SessionStore,
        restorer: SessionRestorer
    ):
        self.gateway = gateway
        self.token_store = token_store
        self.session_store = session_store
        self.restorer = restorer

    async def login(self, email: str, password: str) -> User:
        """POST /auth/login and authenticate the session

        Raises:
            InvalidCredentials: The server rejected the email/password pair
        """
        return await self._issue_credentials(LOGIN_PATH, {"email": email, "password": password})

    async def signup(self, username: str, email: str, password: str) -> User:
        """POST /auth/signup; a new account is logged in straight away"""
        return await self._issue_credentials(
            SIGNUP_PATH,
            {"username": username, "email": email, "password": password},
        )

    async def _issue_credentials(self, path: str, payload: Dict[str, Any]) -> User:
        self.session_store.begin_loading()
        try:
            response = await self.gateway.post(path, json=payload)
            if response.status_code in _REJECTED_CREDENTIAL_STATUSES:
                raise InvalidCredentials("Credentials rejected", detail=detail_from_response(response))
            raise_for_status(response)
            try:
                auth = AuthResponse.model_validate(response.json())
            except (json.JSONDecodeError, ValidationError) as e:
                raise RequestFailed(response.status_code, "Malformed credential response") from e

            user = await self.establish(auth.access_token, auth.user)
        except SessionError as e:
            logger.info(f"{path} failed: {e}")
            self.session_store.fail(e.kind)
            raise

        return user

    async def establish(self, access_token: str, user: Optional[User] = None) -> User:
        """Store a freshly issued credential and authenticate the session

        The identity fetch runs when the issuing endpoint returned no user.
        """
        self.token_store.set(access_token)
        if user is None:
            try:
                user = await self.restorer.fetch_identity()
            except SessionError:
                self.token_store.clear()
                raise
        logger.info(f"Authenticated as user {user.id}")
        self.session_store.set_authenticated(user)
        return user

    async def logout(self) -> None:
        """Best-effort server logout, then unconditional local cleanup"""
        self.session_store.begin_loading()
        try:
            response = await self.gateway.post(LOGOUT_PATH, notify_expiry=False)
            if not response.is_success:
                logger.warning(f"Server-side logout answered {response.status_code}")
        except SessionError as e:
            logger.warning(f"Server-side logout failed, clearing local session anyway: {e}")
        finally:
            self.token_store.clear()
            self.session_store.set_anonymous()
        logger.info("Logged out")

    async def me(self) -> User:
        """Re-read the current user and refresh the cached copy"""
        user = await self.restorer.fetch_identity()
        self.session_store.set_user(user)
        return user

    async def update_me(self, **fields: Any) -> User:
        """PUT /auth/me and replace the cached user"""
        response = raise_for_status(await self.gateway.put(ME_PATH, json=fields))
        try:
            user = User.from_payload(response.json())
        except (json.JSONDecodeError, ValidationError):
            # Some deployments answer with a status message only
            user = await self.restorer.fetch_identity()
        self.session_store.set_user(user)
        return user

    async def delete_me(self) -> None:
        """DELETE /auth/me and end the session"""
        raise_for_status(await self.gateway.delete(ME_PATH))
        self.token_store.clear()
        self.session_store.set_anonymous()
        logger.info("Account deleted, session cleared")

"""Boot-time session restore and the shared identity fetch"""

import json
import logging
from typing import Optional

from pydantic import ValidationError

from settings import IDENTITY_TIMEOUT, ME_PATH
from .errors import NetworkUnavailable, RequestFailed, RequestTimedOut, SessionError, raise_for_status
from .gateway import RequestGateway
from .models import ErrorKind, SessionState, User
from .state import SessionStore

logger = logging.getLogger(__name__)


class SessionRestorer:
    """Hydrates "who am I" from a stored credential without user interaction"""

    def __init__(
        self,
        token_store,
        gateway: RequestGateway,
        session_store: SessionStore,
        timeout: Optional[float] = None
    ):
        self.token_store = token_store
        self.gateway = gateway
        self.session_store = session_store
        self.timeout = IDENTITY_TIMEOUT if timeout is None else timeout
        self._restored = False

    async def fetch_identity(self, *, notify_expiry: bool = True) -> User:
        """GET /auth/me through the gateway

        An expired credential is refreshed transparently before this returns.

        Raises:
            SessionError: Any failure, including an exhausted refresh
        """
        response = await self.gateway.get(ME_PATH, timeout=self.timeout, notify_expiry=notify_expiry)
        raise_for_status(response)
        try:
            return User.from_payload(response.json())
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error(f"Identity response could not be parsed: {e}")
            raise RequestFailed(response.status_code, "Malformed identity response") from e

    async def restore(self) -> SessionState:
        """Run the boot-time restore

        Runs once per process. A restore that ended on a connectivity failure
        may be run again.
        """
        if self._restored:
            return self.session_store.state

        self.session_store.begin_loading()

        if not self.token_store.get():
            logger.debug("No stored credential, starting anonymous")
            self._restored = True
            self.session_store.set_anonymous()
            return self.session_store.state

        try:
            user = await self.fetch_identity(notify_expiry=False)
        except RequestTimedOut as e:
            # A bounded identity fetch that ran out of time counts as a failed restore
            logger.warning(f"Identity fetch timed out while restoring session: {e}")
            self._restored = True
            self.token_store.clear()
            self.session_store.set_anonymous()
            return self.session_store.state
        except NetworkUnavailable:
            # Keep the credential: an unreachable server says nothing about it
            logger.warning("Server unreachable while restoring session")
            self.session_store.set_anonymous(ErrorKind.NETWORK_UNAVAILABLE)
            return self.session_store.state
        except SessionError as e:
            # An expired session at boot is expected, not an error
            logger.info(f"Stored session could not be restored: {e}")
            self._restored = True
            self.token_store.clear()
            self.session_store.set_anonymous()
            return self.session_store.state

        self._restored = True
        logger.info(f"Restored session for user {user.id}")
        self.session_store.set_authenticated(user)
        return self.session_store.state

"""Access token refresh through the cookie-carried refresh credential"""

import json
import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from settings import REFRESH_PATH, REFRESH_TIMEOUT
from .errors import NetworkUnavailable, RefreshRejected
from .models import TokenResponse

logger = logging.getLogger(__name__)


class RefreshTransport:
    """Exchanges the implicit refresh credential for a new access token

    The refresh credential lives only in the shared client's cookie jar and
    is sent by httpx automatically; this class never reads it. Nothing is
    stored here either: the caller decides what to do with the new token.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        timeout: Optional[float] = None,
        path: str = REFRESH_PATH
    ):
        self.client = client
        self.timeout = REFRESH_TIMEOUT if timeout is None else timeout
        self.path = path

    async def refresh(self) -> str:
        """Mint a new access token

        Returns:
            The new access token

        Raises:
            RefreshRejected: Refresh credential missing, expired or revoked,
                or the endpoint did not answer in time
            NetworkUnavailable: The endpoint could not be reached at all
        """
        logger.info("Attempting to refresh access token...")
        try:
            response = await self.client.post(self.path, timeout=self.timeout)
        except httpx.TimeoutException as e:
            logger.error(f"Token refresh timed out after {self.timeout}s")
            raise RefreshRejected("Token refresh timed out") from e
        except httpx.TransportError as e:
            logger.warning(f"Token refresh could not reach the server: {e}")
            raise NetworkUnavailable(f"Token refresh failed: {e}") from e

        if response.status_code != 200:
            logger.error(f"Token refresh failed with status {response.status_code}")
            raise RefreshRejected(f"Token refresh rejected with status {response.status_code}")

        try:
            token = TokenResponse.model_validate(response.json())
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error(f"Token refresh response missing access token: {e}")
            raise RefreshRejected("Token refresh response missing access token") from e

        logger.info("Successfully refreshed access token")
        return token.access_token

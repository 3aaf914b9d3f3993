"""Exchange of provider grants for this system's access token"""

import json
import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from settings import GOOGLE_CALLBACK_PATH, GOOGLE_ID_TOKEN_LOGIN_PATH, REQUEST_TIMEOUT
from session.errors import OAuthExchangeFailed, detail_from_response
from session.models import TokenResponse

logger = logging.getLogger(__name__)


async def _post_for_token(
    client: httpx.AsyncClient,
    path: str,
    payload: Dict[str, Any],
    timeout: Optional[float]
) -> str:
    # Sent on the shared client so the refresh cookie lands in its jar
    try:
        response = await client.post(
            path,
            json=payload,
            timeout=REQUEST_TIMEOUT if timeout is None else timeout
        )
    except httpx.TransportError as e:
        logger.error(f"Could not reach {path}: {e}")
        raise OAuthExchangeFailed("Could not reach the authentication server") from e

    if not response.is_success:
        detail = detail_from_response(response)
        logger.error(f"Token exchange at {path} failed: {response.status_code} - {detail}")
        raise OAuthExchangeFailed(f"HTTP {response.status_code}: {response.reason_phrase}", detail=detail)

    try:
        token = TokenResponse.model_validate(response.json())
    except (json.JSONDecodeError, ValidationError) as e:
        logger.error(f"Token exchange at {path} returned no access token")
        raise OAuthExchangeFailed("Authentication server returned no access token") from e

    return token.access_token


async def exchange_code(
    client: httpx.AsyncClient,
    code: str,
    redirect_uri: str,
    state: str,
    timeout: Optional[float] = None
) -> str:
    """Exchange an authorization code at the backend

    Args:
        client: Shared API client
        code: Authorization code returned by the provider
        redirect_uri: The redirect URI used for the authorization request
        state: The state nonce returned by the provider

    Returns:
        Access token for this system

    Raises:
        OAuthExchangeFailed: Unreachable server, non-2xx answer or malformed body
    """
    logger.info("Exchanging authorization code for access token...")
    return await _post_for_token(
        client,
        GOOGLE_CALLBACK_PATH,
        {"code": code, "redirect_uri": redirect_uri, "state": state},
        timeout,
    )


async def exchange_id_token(
    client: httpx.AsyncClient,
    id_token: str,
    timeout: Optional[float] = None
) -> str:
    """Exchange a Google ID token at the backend (one-shot sign-in)"""
    logger.info("Exchanging Google ID token for access token...")
    return await _post_for_token(client, GOOGLE_ID_TOKEN_LOGIN_PATH, {"id_token": id_token}, timeout)

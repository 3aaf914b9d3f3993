"""Error taxonomy for the session layer

Every failure that leaves the session layer is a SessionError carrying the
ErrorKind that SessionState.last_error reports.
"""

from typing import Optional

import httpx

from .models import ErrorKind


class SessionError(Exception):
    """Base class for session-layer failures"""

    kind: ErrorKind = ErrorKind.REQUEST_FAILED

    def __init__(self, message: str = "", detail: Optional[str] = None):
        super().__init__(message or self.__class__.__name__)
        self.detail = detail


class InvalidCredentials(SessionError):
    """Login or signup was rejected; no refresh is attempted"""

    kind = ErrorKind.INVALID_CREDENTIALS


class SessionExpired(SessionError):
    """The session could not be kept alive and has been reset to anonymous"""

    kind = ErrorKind.SESSION_EXPIRED


class RefreshRejected(SessionError):
    """The refresh endpoint refused the implicit long-lived credential"""

    kind = ErrorKind.REFRESH_REJECTED


class NetworkUnavailable(SessionError):
    """No response was received at all"""

    kind = ErrorKind.NETWORK_UNAVAILABLE


class RequestTimedOut(NetworkUnavailable):
    """The request was sent but no answer arrived within its timeout"""


class OAuthExchangeFailed(SessionError):
    """The OAuth callback flow failed at some step"""

    kind = ErrorKind.OAUTH_EXCHANGE_FAILED


class RequestFailed(SessionError):
    """The server answered with a non-2xx status outside the 401 protocol"""

    kind = ErrorKind.REQUEST_FAILED

    def __init__(self, status_code: int, detail: Optional[str] = None):
        super().__init__(f"HTTP {status_code}: {detail or 'request failed'}", detail=detail)
        self.status_code = status_code


def detail_from_response(response: httpx.Response) -> Optional[str]:
    """Extract the server's error message from a ``{"detail": ...}`` body"""
    try:
        body = response.json()
    except ValueError:
        return response.text or None

    if isinstance(body, dict):
        detail = body.get("detail") or body.get("message")
        if isinstance(detail, str):
            return detail
        if detail is not None:
            # Validation errors arrive as a list of field problems
            return str(detail)
    return None


def raise_for_status(response: httpx.Response) -> httpx.Response:
    """Raise RequestFailed for any non-2xx response"""
    if not response.is_success:
        raise RequestFailed(response.status_code, detail_from_response(response))
    return response

"""Authenticated session layer for the community site client

Acquires, stores, refreshes and attaches credentials to every request,
and exposes the resulting SessionState to the rest of the application.
"""

from .models import ErrorKind, SessionState, User, TokenResponse, AuthResponse
from .errors import (
    SessionError,
    InvalidCredentials,
    SessionExpired,
    RefreshRejected,
    NetworkUnavailable,
    RequestTimedOut,
    OAuthExchangeFailed,
    RequestFailed,
)
from .state import SessionStore
from .token_refresh import RefreshTransport
from .gateway import RequestGateway
from .restorer import SessionRestorer
from .auth_api import AuthAPI
from .client import SessionClient

__all__ = [
    "ErrorKind",
    "SessionState",
    "User",
    "TokenResponse",
    "AuthResponse",
    "SessionError",
    "InvalidCredentials",
    "SessionExpired",
    "RefreshRejected",
    "NetworkUnavailable",
    "RequestTimedOut",
    "OAuthExchangeFailed",
    "RequestFailed",
    "SessionStore",
    "RefreshTransport",
    "RequestGateway",
    "SessionRestorer",
    "AuthAPI",
    "SessionClient",
]

"""Data models for the session layer"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ErrorKind(str, Enum):
    """Failure categories reported through SessionState.last_error"""

    INVALID_CREDENTIALS = "invalid_credentials"
    SESSION_EXPIRED = "session_expired"
    REFRESH_REJECTED = "refresh_rejected"
    NETWORK_UNAVAILABLE = "network_unavailable"
    OAUTH_EXCHANGE_FAILED = "oauth_exchange_failed"
    REQUEST_FAILED = "request_failed"


class User(BaseModel):
    """Read-through cache of the server's user record"""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: int
    username: str
    email: str
    display_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("display_name", "displayName", "name"),
    )

    @classmethod
    def from_payload(cls, payload: Any) -> "User":
        """Build a User from ``{"user": {...}}`` or from top-level user fields

        Raises:
            ValidationError: The payload is not a user record in either shape
        """
        if not isinstance(payload, dict):
            return cls.model_validate(payload)
        nested = payload.get("user")
        if isinstance(nested, dict):
            return cls.model_validate(nested)
        return cls.model_validate(payload)


class TokenResponse(BaseModel):
    """Body of /auth/refresh, /login/google and /auth/google/callback"""

    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(min_length=1)


class AuthResponse(TokenResponse):
    """Body of /auth/login and /auth/signup"""

    user: Optional[User] = None


@dataclass(frozen=True)
class SessionState:
    """The externally observable session: anonymous or authenticated

    Attributes:
        user: Cached identity, only set while authenticated
        is_authenticated: Whether a usable session exists
        loading: True while a session transition is in flight
        last_error: Kind of the last user-facing failure
    """
    user: Optional[User] = None
    is_authenticated: bool = False
    loading: bool = False
    last_error: Optional[ErrorKind] = None

    @classmethod
    def anonymous(cls, last_error: Optional[ErrorKind] = None) -> "SessionState":
        return cls(last_error=last_error)

    @classmethod
    def authenticated(cls, user: User) -> "SessionState":
        return cls(user=user, is_authenticated=True)

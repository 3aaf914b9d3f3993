"""Tests for the session data models."""

import pytest
from pydantic import ValidationError

from session import AuthResponse, ErrorKind, SessionState, TokenResponse, User

from .conftest import USER_PAYLOAD


def test_user_from_nested_payload():
    user = User.from_payload({"user": USER_PAYLOAD})

    assert user.id == 1
    assert user.display_name == "Alice"


def test_user_from_top_level_payload():
    assert User.from_payload(USER_PAYLOAD).username == "alice"


@pytest.mark.parametrize("key", ["display_name", "displayName", "name"])
def test_user_display_name_aliases(key):
    user = User.from_payload({"id": 2, "username": "bob", "email": "b@c.com", key: "Bob"})

    assert user.display_name == "Bob"


def test_user_is_immutable():
    user = User.from_payload(USER_PAYLOAD)

    with pytest.raises(ValidationError):
        user.username = "mallory"


def test_user_requires_id():
    with pytest.raises(ValidationError):
        User.from_payload({"username": "alice", "email": "a@b.com"})


def test_token_response_rejects_empty_token():
    with pytest.raises(ValidationError):
        TokenResponse.model_validate({"access_token": ""})


def test_auth_response_user_is_optional():
    response = AuthResponse.model_validate({"access_token": "T1", "token_type": "bearer"})

    assert response.user is None


def test_session_state_constructors():
    anonymous = SessionState.anonymous(ErrorKind.SESSION_EXPIRED)
    assert anonymous.is_authenticated is False
    assert anonymous.user is None
    assert anonymous.last_error is ErrorKind.SESSION_EXPIRED

    user = User.from_payload(USER_PAYLOAD)
    authenticated = SessionState.authenticated(user)
    assert authenticated.is_authenticated is True
    assert authenticated.user == user
    assert authenticated.loading is False


@pytest.mark.parametrize("payload", [["unexpected"], "alice", None])
def test_user_from_non_object_payload(payload):
    with pytest.raises(ValidationError):
        User.from_payload(payload)

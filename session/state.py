"""Observable holder for the current SessionState"""

import logging
from dataclasses import replace
from typing import Callable, List, Optional

from .models import ErrorKind, SessionState, User

logger = logging.getLogger(__name__)

SessionListener = Callable[[SessionState], None]


class SessionStore:
    """Holds the one SessionState the rest of the application reads

    Every transition replaces the state wholesale, so the cached user is
    invalidated whenever the session changes. Listeners are called
    synchronously, in subscription order, after each transition.
    """

    def __init__(self, initial: Optional[SessionState] = None):
        self._state = initial or SessionState.anonymous()
        self._listeners: List[SessionListener] = []

    @property
    def state(self) -> SessionState:
        return self._state

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _transition(self, state: SessionState) -> None:
        previous = self._state
        self._state = state
        logger.debug(
            f"Session transition: authenticated={previous.is_authenticated}->{state.is_authenticated} "
            f"loading={state.loading} last_error={state.last_error}"
        )
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Session listener raised during transition")

    def begin_loading(self) -> None:
        self._transition(replace(self._state, loading=True, last_error=None))

    def set_authenticated(self, user: User) -> None:
        self._transition(SessionState.authenticated(user))

    def set_anonymous(self, last_error: Optional[ErrorKind] = None) -> None:
        self._transition(SessionState.anonymous(last_error))

    def set_user(self, user: User) -> None:
        """Replace the cached user of an authenticated session"""
        self._transition(replace(self._state, user=user, is_authenticated=True, loading=False))

    def fail(self, kind: ErrorKind) -> None:
        """Record a user-facing failure without changing who is logged in"""
        self._transition(replace(self._state, loading=False, last_error=kind))

    def clear_error(self) -> None:
        if self._state.last_error is not None:
            self._transition(replace(self._state, last_error=None))

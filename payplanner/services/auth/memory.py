"""
In-Memory Authentication Provider

Local stand-in for a hosted identity provider, used by tests and local
runs. Reproduces the provider's validation rules and error codes.
"""

from typing import Optional
from uuid import uuid4

from payplanner.services.auth.interface import (
    EMAIL_ALREADY_IN_USE,
    INVALID_CREDENTIAL,
    MISSING_PASSWORD,
    POPUP_CLOSED_BY_USER,
    USER_NOT_FOUND,
    WEAK_PASSWORD,
    AuthError,
    AuthProvider,
    Identity,
    SessionListener,
    Unsubscribe,
)


MIN_PASSWORD_LENGTH = 6


class InMemoryAuthProvider(AuthProvider):
    """
    Email/password accounts held in a dict.

    Federated sign-in succeeds only when a federated identity has been
    configured; otherwise it behaves as if the user closed the popup.
    """

    def __init__(self, federated_identity: Optional[Identity] = None):
        self._accounts: dict[str, tuple[str, Identity]] = {}
        self._federated_identity = federated_identity
        self._current: Optional[Identity] = None
        self._listeners: list[SessionListener] = []

    @property
    def current_user(self) -> Optional[Identity]:
        return self._current

    def _set_session(self, identity: Optional[Identity]) -> None:
        self._current = identity
        for listener in list(self._listeners):
            listener(identity)

    async def create_account(self, email: str, password: str) -> Identity:
        if not password:
            raise AuthError(MISSING_PASSWORD)
        if email in self._accounts:
            raise AuthError(EMAIL_ALREADY_IN_USE)
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthError(WEAK_PASSWORD)

        identity = Identity(uid=uuid4().hex, email=email)
        self._accounts[email] = (password, identity)
        self._set_session(identity)
        return identity

    async def sign_in(self, email: str, password: str) -> Identity:
        if not password:
            raise AuthError(MISSING_PASSWORD)
        if email not in self._accounts:
            raise AuthError(USER_NOT_FOUND)

        stored_password, identity = self._accounts[email]
        if stored_password != password:
            raise AuthError(INVALID_CREDENTIAL)

        self._set_session(identity)
        return identity

    async def sign_in_with_federated_provider(self) -> Identity:
        if self._federated_identity is None:
            raise AuthError(POPUP_CLOSED_BY_USER)
        self._set_session(self._federated_identity)
        return self._federated_identity

    async def sign_out(self) -> None:
        self._set_session(None)

    def on_session_change(self, listener: SessionListener) -> Unsubscribe:
        self._listeners.append(listener)
        listener(self._current)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

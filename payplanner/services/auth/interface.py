"""
Abstract Authentication Interface

The engine never talks to an identity provider directly. It consumes a
small capability: create account, sign in (password or federated),
sign out, and a session listener. All it gets back is an opaque
Identity whose uid namespaces the user's documents.

Provider failures surface as AuthError carrying a provider error code.
The code is mapped to a user-facing message through a fixed lookup
table; unknown codes get a generic message.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict


class Identity(BaseModel):
    """Opaque signed-in user."""
    model_config = ConfigDict(frozen=True)

    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None


SessionListener = Callable[[Optional[Identity]], None]
Unsubscribe = Callable[[], None]


# Provider error codes
EMAIL_ALREADY_IN_USE = "auth/email-already-in-use"
INVALID_CREDENTIAL = "auth/invalid-credential"
WEAK_PASSWORD = "auth/weak-password"
USER_NOT_FOUND = "auth/user-not-found"
MISSING_PASSWORD = "auth/missing-password"
POPUP_CLOSED_BY_USER = "auth/popup-closed-by-user"
POPUP_BLOCKED = "auth/popup-blocked"

AUTH_ERROR_MESSAGES: dict[str, str] = {
    EMAIL_ALREADY_IN_USE: "Email already in use",
    INVALID_CREDENTIAL: "Invalid credentials",
    WEAK_PASSWORD: "Password should be at least 6 characters",
    USER_NOT_FOUND: "User not found",
    MISSING_PASSWORD: "Password cannot be empty",
}

DEFAULT_AUTH_ERROR_MESSAGE = "An unknown error occurred"
FEDERATED_SIGN_IN_FAILED_MESSAGE = "Google sign-in failed. Please try again."

# Federated failures the user caused themselves; logged, never shown
SILENT_FEDERATED_CODES = frozenset({POPUP_CLOSED_BY_USER, POPUP_BLOCKED})


def describe_auth_error(code: str, default: str = DEFAULT_AUTH_ERROR_MESSAGE) -> str:
    """User-facing message for a provider error code."""
    return AUTH_ERROR_MESSAGES.get(code, default)


class AuthError(Exception):
    """Authentication failure reported by the provider."""

    def __init__(self, code: str, message: Optional[str] = None):
        self.code = code
        super().__init__(message or code)


class AuthProvider(ABC):
    """
    Abstract interface for the identity provider.

    Implementations raise AuthError for any failure.
    """

    @abstractmethod
    async def create_account(self, email: str, password: str) -> Identity:
        pass

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> Identity:
        pass

    @abstractmethod
    async def sign_in_with_federated_provider(self) -> Identity:
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        pass

    @abstractmethod
    def on_session_change(self, listener: SessionListener) -> Unsubscribe:
        """
        Register a listener called with the Identity on sign-in and None
        on sign-out. The listener is also called once immediately with the
        current session.

        Returns:
            A callable that removes the listener
        """
        pass

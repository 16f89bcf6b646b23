"""Authentication services: provider interface, error codes and a local provider."""

from payplanner.services.auth.interface import (
    AUTH_ERROR_MESSAGES,
    DEFAULT_AUTH_ERROR_MESSAGE,
    FEDERATED_SIGN_IN_FAILED_MESSAGE,
    SILENT_FEDERATED_CODES,
    AuthError,
    AuthProvider,
    Identity,
    SessionListener,
    Unsubscribe,
    describe_auth_error,
)
from payplanner.services.auth.memory import InMemoryAuthProvider

__all__ = [
    "AUTH_ERROR_MESSAGES",
    "DEFAULT_AUTH_ERROR_MESSAGE",
    "FEDERATED_SIGN_IN_FAILED_MESSAGE",
    "SILENT_FEDERATED_CODES",
    "AuthError",
    "AuthProvider",
    "Identity",
    "InMemoryAuthProvider",
    "SessionListener",
    "Unsubscribe",
    "describe_auth_error",
]

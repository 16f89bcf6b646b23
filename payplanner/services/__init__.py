"""Services package."""

from payplanner.services.auth import (
    AuthError,
    AuthProvider,
    Identity,
    InMemoryAuthProvider,
)
from payplanner.services.storage import (
    DocumentStore,
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
    InMemoryDocumentStore,
    NotFoundError,
    StorageConnectionError,
    StorageError,
    UserCollections,
)

__all__ = [
    # Auth services
    "AuthError",
    "AuthProvider",
    "Identity",
    "InMemoryAuthProvider",
    # Storage services
    "DocumentStore",
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStore",
    "InMemoryDocumentStore",
    "NotFoundError",
    "StorageConnectionError",
    "StorageError",
    "UserCollections",
]

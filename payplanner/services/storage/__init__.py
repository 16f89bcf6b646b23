"""
Storage Services Package

Provides the abstract document store interface and its implementations:
an in-memory store (tests, local runs) and a Google Sheets backend.
"""

from payplanner.services.storage.interface import (
    DocumentStore,
    NotFoundError,
    Record,
    StorageConnectionError,
    StorageError,
    UserCollections,
)
from payplanner.services.storage.memory import InMemoryDocumentStore
from payplanner.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
)

__all__ = [
    # Interfaces
    "DocumentStore",
    "Record",
    "UserCollections",
    # Exceptions
    "NotFoundError",
    "StorageConnectionError",
    "StorageError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStore",
    "InMemoryDocumentStore",
]

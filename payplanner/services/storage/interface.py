"""
Abstract Storage Interface

DESIGN DECISION: The engine talks to a small document store contract
rather than to any particular database. This allows us to:
1. Run against Google Sheets, or anything else with the same shape
2. Use in-memory storage for testing
3. Keep period logic decoupled from storage implementation

Documents are flat dicts addressed by (collection_path, document_id).
Collection paths are "/"-joined strings under a per-user namespace
(see UserCollections). The store does no schema enforcement; readers
assume the shape the engine itself wrote.

Every method is async: a call may suspend while a remote read or write
completes. Implementations raise StorageError (or a subclass) on failure.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


Record = dict[str, Any]


class DocumentStore(ABC):
    """
    Abstract interface for document storage operations.

    Records returned by list_all() and get() include their document id
    under the "id" key. Records passed in never need one.
    """

    @abstractmethod
    async def list_all(self, collection_path: str) -> list[Record]:
        """
        Every document in a collection, in insertion order.

        Returns an empty list for a collection that has never been written.
        """
        pass

    @abstractmethod
    async def create(self, collection_path: str, fields: Record) -> str:
        """
        Insert a document under a newly generated id.

        Returns:
            The generated document id
        """
        pass

    @abstractmethod
    async def get(self, collection_path: str, document_id: str) -> Optional[Record]:
        """
        Fetch one document.

        Returns:
            The record if found, None otherwise
        """
        pass

    @abstractmethod
    async def update(self, collection_path: str, document_id: str, fields: Record) -> None:
        """
        Merge `fields` into an existing document.

        Raises:
            NotFoundError: If the document doesn't exist
        """
        pass

    @abstractmethod
    async def delete(self, collection_path: str, document_id: str) -> None:
        """Delete a document. Deleting a missing document is not an error."""
        pass

    @abstractmethod
    async def set(self, collection_path: str, document_id: str, fields: Record) -> None:
        """Create or fully replace the document with an explicit id."""
        pass


class UserCollections:
    """
    Collection paths inside one user's namespace.

        {root}/{uid}/bankAccounts
        {root}/{uid}/expenses
        {root}/{uid}/payInfo                 (singleton document "main")
        {root}/{uid}/payPeriods/main         (documents keyed by ISO start date)
        {root}/{uid}/payPeriodBankAccounts
        {root}/{uid}/payPeriodExpenses
        {root}/{uid}/auditLog
    """

    def __init__(self, root: str, uid: str):
        if not uid:
            raise ValueError("A user id is required to build collection paths")
        self.base = f"{root}/{uid}"

    @property
    def bank_accounts(self) -> str:
        return f"{self.base}/bankAccounts"

    @property
    def expenses(self) -> str:
        return f"{self.base}/expenses"

    @property
    def pay_info(self) -> str:
        return f"{self.base}/payInfo"

    @property
    def pay_periods(self) -> str:
        return f"{self.base}/payPeriods/main"

    @property
    def pay_period_bank_accounts(self) -> str:
        return f"{self.base}/payPeriodBankAccounts"

    @property
    def pay_period_expenses(self) -> str:
        return f"{self.base}/payPeriodExpenses"

    @property
    def audit_log(self) -> str:
        return f"{self.base}/auditLog"


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass

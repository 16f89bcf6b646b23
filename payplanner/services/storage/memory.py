"""
In-Memory Document Store

Used by tests and for local runs without any backend configured.
Records are deep-copied on the way in and out so callers can never
mutate stored state by accident.
"""

import copy
from typing import Optional
from uuid import uuid4

from payplanner.services.storage.interface import DocumentStore, NotFoundError, Record


class InMemoryDocumentStore(DocumentStore):
    """Dict-of-dicts implementation of the document store."""

    def __init__(self):
        # collection_path -> {document_id: fields}; dicts keep insertion order
        self._collections: dict[str, dict[str, Record]] = {}

    def _collection(self, collection_path: str) -> dict[str, Record]:
        return self._collections.setdefault(collection_path, {})

    @staticmethod
    def _with_id(document_id: str, fields: Record) -> Record:
        return {**copy.deepcopy(fields), "id": document_id}

    async def list_all(self, collection_path: str) -> list[Record]:
        return [
            self._with_id(document_id, fields)
            for document_id, fields in self._collections.get(collection_path, {}).items()
        ]

    async def create(self, collection_path: str, fields: Record) -> str:
        document_id = uuid4().hex[:20]
        self._collection(collection_path)[document_id] = self._strip_id(fields)
        return document_id

    async def get(self, collection_path: str, document_id: str) -> Optional[Record]:
        fields = self._collections.get(collection_path, {}).get(document_id)
        if fields is None:
            return None
        return self._with_id(document_id, fields)

    async def update(self, collection_path: str, document_id: str, fields: Record) -> None:
        collection = self._collections.get(collection_path, {})
        if document_id not in collection:
            raise NotFoundError(f"Document not found: {collection_path}/{document_id}")
        collection[document_id].update(self._strip_id(fields))

    async def delete(self, collection_path: str, document_id: str) -> None:
        self._collections.get(collection_path, {}).pop(document_id, None)

    async def set(self, collection_path: str, document_id: str, fields: Record) -> None:
        self._collection(collection_path)[document_id] = self._strip_id(fields)

    @staticmethod
    def _strip_id(fields: Record) -> Record:
        return {key: copy.deepcopy(value) for key, value in fields.items() if key != "id"}

    def count(self, collection_path: str) -> int:
        """Number of documents in a collection (test convenience)."""
        return len(self._collections.get(collection_path, {}))

"""In-memory document backend for tests and offline runs."""

import copy
from collections.abc import Callable
from uuid import uuid4

from src.shots.services.database.base import Document, DocumentBackend, ListenerRegistration
from src.shots.services.database.exceptions import NotFoundError
from src.shots.services.database.query import Collection, Query

# (stored before the write, stored after it); None when absent
Change = tuple[Document | None, Document | None]


class InMemoryListenerRegistration(ListenerRegistration):
    """Registration in an ``InMemoryDocumentBackend`` listener table."""

    def __init__(self, backend: "InMemoryDocumentBackend", token: str) -> None:
        self._backend = backend
        self._token = token

    async def remove(self) -> None:
        self._backend._listeners.pop(self._token, None)


class InMemoryDocumentBackend(DocumentBackend):
    """
    Dictionary-backed store with the same semantics as the remote backend.

    Documents are deep-copied on the way in and out so callers cannot
    mutate stored state. Batches are applied in one step. After every
    write, the listeners whose query matched a changed document (before or
    after the write) are notified synchronously.
    """

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, Document]] = {}
        self._listeners: dict[str, tuple[Query, Callable[[], None]]] = {}

    @property
    def listener_count(self) -> int:
        """Number of live listener registrations."""
        return len(self._listeners)

    def _table(self, collection: Collection) -> dict[str, Document]:
        return self._collections.setdefault(str(collection), {})

    def _notify(self, collection: Collection, changes: list[Change]) -> None:
        for query, on_change in list(self._listeners.values()):
            if query.collection != collection:
                continue
            if any(
                document is not None and query.matches(document)
                for change in changes
                for document in change
            ):
                on_change()

    async def fetch(self, collection: Collection, document_id: str) -> Document | None:
        document = self._table(collection).get(document_id)
        return copy.deepcopy(document) if document is not None else None

    async def select(self, query: Query) -> list[Document]:
        matches = [
            copy.deepcopy(document)
            for document in self._table(query.collection).values()
            if query.matches(document)
        ]
        if query.limit is not None:
            matches = matches[: query.limit]
        return matches

    async def set(self, collection: Collection, document_id: str, data: Document) -> None:
        table = self._table(collection)
        before = table.get(document_id)
        table[document_id] = {**copy.deepcopy(data), "id": document_id}
        self._notify(collection, [(before, table[document_id])])

    async def insert(self, collection: Collection, data: Document) -> str:
        document_id = data.get("id") or str(uuid4())
        await self.set(collection, document_id, data)
        return document_id

    async def insert_if_absent(
        self, collection: Collection, document_id: str, data: Document
    ) -> bool:
        if document_id in self._table(collection):
            return False
        await self.set(collection, document_id, data)
        return True

    async def update(self, collection: Collection, document_id: str, data: Document) -> None:
        table = self._table(collection)
        if document_id not in table:
            raise NotFoundError(f"Document {collection}/{document_id} does not exist")
        before = table[document_id]
        table[document_id] = {**before, **copy.deepcopy(data)}
        self._notify(collection, [(before, table[document_id])])

    async def delete(self, collection: Collection, document_id: str) -> None:
        before = self._table(collection).pop(document_id, None)
        if before is not None:
            self._notify(collection, [(before, None)])

    async def set_many(self, collection: Collection, rows: list[tuple[str, Document]]) -> None:
        table = self._table(collection)
        staged = {
            document_id: {**copy.deepcopy(data), "id": document_id} for document_id, data in rows
        }
        changes = [(table.get(document_id), document) for document_id, document in staged.items()]
        table.update(staged)
        if changes:
            self._notify(collection, changes)

    async def delete_many(self, collection: Collection, document_ids: list[str]) -> None:
        table = self._table(collection)
        changes: list[Change] = [
            (table.pop(document_id), None) for document_id in document_ids if document_id in table
        ]
        if changes:
            self._notify(collection, changes)

    async def listen(
        self, query: Query, on_change: Callable[[], None]
    ) -> ListenerRegistration:
        token = str(uuid4())
        self._listeners[token] = (query, on_change)
        return InMemoryListenerRegistration(self, token)

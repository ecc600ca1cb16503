"""Abstract raw-document backend used by the document store façade."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from src.shots.services.database.query import Collection, Query

Document = dict[str, Any]


class ListenerRegistration(ABC):
    """Handle to one live backend listener. Removing it is the only way to stop it."""

    @abstractmethod
    async def remove(self) -> None:
        """Release the listener. Must be safe to call more than once."""
        pass


class DocumentBackend(ABC):
    """
    Raw dictionary operations against a document store.

    Implementations translate vendor failures into
    ``TransientNetworkError`` (connection problems) or ``StoreWriteError``
    (rejected requests). They never decode documents into models.
    """

    @abstractmethod
    async def fetch(self, collection: Collection, document_id: str) -> Document | None:
        """Return the document stored under ``document_id``, or None."""
        pass

    @abstractmethod
    async def select(self, query: Query) -> list[Document]:
        """Return every document matching ``query``."""
        pass

    @abstractmethod
    async def set(self, collection: Collection, document_id: str, data: Document) -> None:
        """Create or replace the document at ``document_id`` with ``data``."""
        pass

    @abstractmethod
    async def insert(self, collection: Collection, data: Document) -> str:
        """Insert a new document and return its id."""
        pass

    @abstractmethod
    async def insert_if_absent(
        self, collection: Collection, document_id: str, data: Document
    ) -> bool:
        """Write the document only if ``document_id`` is free. Returns True if written."""
        pass

    @abstractmethod
    async def update(self, collection: Collection, document_id: str, data: Document) -> None:
        """Merge ``data`` into an existing document. Raises NotFoundError if missing."""
        pass

    @abstractmethod
    async def delete(self, collection: Collection, document_id: str) -> None:
        """Delete one document. Deleting a missing document is not an error."""
        pass

    @abstractmethod
    async def set_many(self, collection: Collection, rows: list[tuple[str, Document]]) -> None:
        """Create or replace several documents in one atomic batch."""
        pass

    @abstractmethod
    async def delete_many(self, collection: Collection, document_ids: list[str]) -> None:
        """Delete several documents in one atomic batch."""
        pass

    @abstractmethod
    async def listen(
        self, query: Query, on_change: Callable[[], None]
    ) -> ListenerRegistration:
        """Call ``on_change`` whenever a document in ``query.collection`` changes."""
        pass

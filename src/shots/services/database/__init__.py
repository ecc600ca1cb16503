"""Document store façade and its backends."""

from src.shots.services.database.base import DocumentBackend, ListenerRegistration
from src.shots.services.database.exceptions import (
    DecodeError,
    DocumentStoreError,
    NotFoundError,
    StoreWriteError,
    TransientNetworkError,
)
from src.shots.services.database.memory_backend import InMemoryDocumentBackend
from src.shots.services.database.query import Collection, Query
from src.shots.services.database.store import DocumentStore, Subscription

__all__ = [
    "Collection",
    "DecodeError",
    "DocumentBackend",
    "DocumentStore",
    "DocumentStoreError",
    "InMemoryDocumentBackend",
    "ListenerRegistration",
    "NotFoundError",
    "Query",
    "StoreWriteError",
    "Subscription",
    "TransientNetworkError",
]

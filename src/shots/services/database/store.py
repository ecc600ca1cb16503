"""Typed document store façade over a raw document backend."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, Protocol, TypeVar

from pydantic import BaseModel, ValidationError

from src.shots.config import settings
from src.shots.models.session import Absent, DocumentState, Exists
from src.shots.services.database.base import Document, DocumentBackend, ListenerRegistration
from src.shots.services.database.exceptions import (
    DecodeError,
    DocumentStoreError,
    NotFoundError,
    StoreWriteError,
    TransientNetworkError,
)
from src.shots.services.database.query import Collection, Query
from src.shots.services.retry import retrying

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class WireModel(Protocol):
    """Model with explicit document mapping functions."""

    def to_wire(self) -> dict[str, Any]: ...

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> Any: ...


def encode(value: Any, replace: bool = False) -> Document:
    """
    Convert a model into a plain document dictionary.

    Unset optionals are left out. With ``replace``, every model field is
    present and unset ones are written as None, so the document replaces
    whatever was stored before.

    Args:
        value: Object with ``to_wire()``, a pydantic model, or a dict
        replace: Include unset model fields as None

    Returns:
        Plain dictionary

    Raises:
        StoreWriteError: If the value cannot be represented as a document
    """
    if hasattr(value, "to_wire"):
        data = value.to_wire()
    elif isinstance(value, BaseModel):
        data = value.model_dump(mode="json", exclude_none=True)
    elif isinstance(value, dict):
        return dict(value)
    else:
        raise StoreWriteError(f"Cannot convert {type(value).__name__} to document data")

    if replace and isinstance(value, BaseModel):
        return {name: None for name in type(value).model_fields} | data
    return data


def _field_value(value: Any) -> Any:
    """Plain representation of a value written into a single field."""
    if hasattr(value, "to_wire") or isinstance(value, BaseModel):
        return encode(value)
    if isinstance(value, list | tuple):
        return [_field_value(item) for item in value]
    return value


def decode(model: type[T], data: Document) -> T:
    """
    Decode one document into ``model``.

    Raises:
        DecodeError: If the document does not fit the model
    """
    try:
        if hasattr(model, "from_wire"):
            return model.from_wire(data)
        return model.model_validate(data)  # type: ignore[attr-defined]
    except DecodeError:
        logger.error(f"Failed to decode {model.__name__} document {data.get('id')}")
        raise
    except (ValidationError, ValueError, TypeError, KeyError) as e:
        logger.error(f"Failed to decode {model.__name__} document {data.get('id')}: {e}")
        raise DecodeError(f"Malformed {model.__name__} document {data.get('id')}: {e}") from e


class Subscription(Generic[T]):
    """
    Live query handle.

    Iterating yields the full list of matching documents: once for the
    current state, then again after every change. Pending change
    notifications are coalesced, so a slow consumer only sees the latest
    state. The backend listener belongs to this handle and is released by
    ``aclose()``, by leaving ``async with``, or when iteration fails or is
    cancelled.

    Example:
        >>> async with await store.subscribe(Query(Collection.USERS), User) as users:
        ...     async for snapshot in users:
        ...         print(len(snapshot))
    """

    def __init__(self, load: Callable[[], Awaitable[list[T]]]) -> None:
        self._load = load
        self._changed = asyncio.Event()
        self._changed.set()
        self._registration: ListenerRegistration | None = None
        self._closed = False

    def _attach(self, registration: ListenerRegistration) -> None:
        self._registration = registration

    def notify(self) -> None:
        """Mark the match set as changed. Called by the backend listener."""
        self._changed.set()

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> "Subscription[T]":
        return self

    async def __anext__(self) -> list[T]:
        if self._closed:
            raise StopAsyncIteration
        try:
            await self._changed.wait()
            self._changed.clear()
            if self._closed:
                raise StopAsyncIteration
            return await self._load()
        except BaseException:
            await self.aclose()
            raise

    async def aclose(self) -> None:
        """Stop the subscription and release its backend listener."""
        self._closed = True
        # Wake a consumer blocked in __anext__ so it can finish
        self._changed.set()
        if self._registration is not None:
            registration, self._registration = self._registration, None
            await registration.remove()

    async def __aenter__(self) -> "Subscription[T]":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


class DocumentStore:
    """
    Typed CRUD and live queries over remote document collections.

    This is the only component that talks to the backend. Raw backend
    calls run through the retry executor, which retries only
    ``TransientNetworkError``; rejected writes and missing documents fail on
    the first attempt. Decoding happens afterwards and is never retried.
    Every failure surfaces as a ``DocumentStoreError``.

    Example:
        >>> store = DocumentStore(SupabaseDocumentBackend(client))
        >>> user = await store.get_once(Collection.USERS, "abc123", User)
    """

    def __init__(
        self,
        backend: DocumentBackend,
        retry_attempts: int | None = None,
        retry_delay: float | None = None,
    ) -> None:
        """
        Initialize the store.

        Args:
            backend: Raw document backend
            retry_attempts: Attempts per backend call (defaults to settings)
            retry_delay: Seconds between attempts (defaults to settings)
        """
        self.backend = backend
        self.retry_attempts = (
            retry_attempts if retry_attempts is not None else settings.network_retry_attempts
        )
        self.retry_delay = (
            retry_delay if retry_delay is not None else settings.network_retry_delay_seconds
        )

    async def _run(self, operation: Callable[[], Awaitable[R]]) -> R:
        try:
            return await retrying(
                operation,
                attempts=self.retry_attempts,
                delay=self.retry_delay,
                retry_on=TransientNetworkError,
            )
        except DocumentStoreError:
            raise
        except Exception as e:
            raise StoreWriteError(str(e)) from e

    async def get_once(self, collection: Collection, document_id: str, model: type[T]) -> T:
        """
        Fetch and decode one document by id.

        Args:
            collection: Collection to read
            document_id: Document key
            model: Model to decode into

        Returns:
            Decoded document

        Raises:
            NotFoundError: If the document does not exist
            DecodeError: If the document is malformed
        """
        data = await self._run(lambda: self.backend.fetch(collection, document_id))
        if data is None:
            raise NotFoundError(f"Document {collection}/{document_id} does not exist")
        return decode(model, data)

    async def query_once(self, query: Query, model: type[T]) -> list[T]:
        """
        Fetch every document matching ``query``.

        A single malformed document fails the whole call.

        Raises:
            DecodeError: If any matching document is malformed
        """
        documents = await self._run(lambda: self.backend.select(query))
        return [decode(model, data) for data in documents]

    async def check_exists(self, query: Query, model: type[T]) -> DocumentState[T]:
        """
        Report whether any document matches ``query``.

        Returns:
            ``Exists(first_match)`` or ``Absent()``
        """
        limited = Query(query.collection, dict(query.filters), limit=1)
        documents = await self._run(lambda: self.backend.select(limited))
        if not documents:
            return Absent()
        return Exists(decode(model, documents[0]))

    async def upsert(self, collection: Collection, document_id: str | None, value: Any) -> str:
        """
        Create or replace a document.

        Writing at an existing id replaces the whole document: fields unset
        on ``value`` are cleared.

        Args:
            collection: Collection to write
            document_id: Key to overwrite, or None to insert a new document
            value: Model or dict to store

        Returns:
            Id of the written document

        Raises:
            StoreWriteError: If the value cannot be encoded or the write fails
        """
        if document_id is None:
            data = encode(value)
            return await self._run(lambda: self.backend.insert(collection, data))
        data = encode(value, replace=True)
        await self._run(lambda: self.backend.set(collection, document_id, data))
        return document_id

    async def create(self, collection: Collection, document_id: str, value: Any) -> bool:
        """
        Write a document only if nothing is stored under ``document_id`` yet.

        Returns:
            True if the document was created, False if one already existed
        """
        data = encode(value)
        return await self._run(lambda: self.backend.insert_if_absent(collection, document_id, data))

    async def upsert_many(self, collection: Collection, pairs: list[tuple[Any, str]]) -> None:
        """
        Create or replace several documents in one atomic batch.

        Args:
            collection: Collection to write
            pairs: ``(value, document_id)`` pairs
        """
        rows = [(document_id, encode(value, replace=True)) for value, document_id in pairs]
        await self._run(lambda: self.backend.set_many(collection, rows))

    async def update_field(
        self, collection: Collection, document_id: str, field: str, value: Any
    ) -> None:
        """
        Overwrite one field of an existing document.

        Models are converted to plain dictionaries before they are sent.

        Raises:
            NotFoundError: If the document does not exist
        """
        data = {field: _field_value(value)}
        await self._run(lambda: self.backend.update(collection, document_id, data))

    async def delete_one(self, collection: Collection, document_id: str) -> None:
        """Delete one document."""
        await self._run(lambda: self.backend.delete(collection, document_id))

    async def delete_many(self, collection: Collection, document_ids: list[str]) -> None:
        """Delete several documents in one atomic batch."""
        ids = list(document_ids)
        await self._run(lambda: self.backend.delete_many(collection, ids))

    async def subscribe(self, query: Query, model: type[T]) -> Subscription[T]:
        """
        Open a live query.

        Registers exactly one backend listener, owned by the returned handle.

        Returns:
            Subscription yielding the full match set on every change
        """
        subscription: Subscription[T] = Subscription(lambda: self.query_once(query, model))
        registration = await self._run(lambda: self.backend.listen(query, subscription.notify))
        subscription._attach(registration)
        logger.debug(f"Subscribed to {query.collection}", extra={"filters": query.filters})
        return subscription

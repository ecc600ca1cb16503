"""Supabase (PostgREST + Realtime) implementation of the document backend."""

import logging
from collections.abc import Callable
from typing import Any
from uuid import uuid4

import httpx
from realtime import AsyncRealtimeChannel
from realtime.types import RealtimePostgresChangesListenEvent
from supabase import AsyncClient, PostgrestAPIError

from src.shots.services.database.base import Document, DocumentBackend, ListenerRegistration
from src.shots.services.database.exceptions import (
    NotFoundError,
    StoreWriteError,
    TransientNetworkError,
)
from src.shots.services.database.query import Collection, Query

logger = logging.getLogger(__name__)


class RealtimeListenerRegistration(ListenerRegistration):
    """Owns one Realtime channel; removing the registration removes the channel."""

    def __init__(self, client: AsyncClient, channel: AsyncRealtimeChannel) -> None:
        self._client = client
        self._channel: AsyncRealtimeChannel | None = channel

    async def remove(self) -> None:
        if self._channel is None:
            return
        channel, self._channel = self._channel, None
        try:
            await self._client.remove_channel(channel)
        except Exception as e:
            logger.warning(f"Failed to remove realtime channel {channel.topic}: {e}")


class SupabaseDocumentBackend(DocumentBackend):
    """
    Stores each document as a table row keyed by its ``id`` column.

    Collections map one-to-one onto tables in the ``public`` schema. Query
    filters become ``eq`` clauses. Writes are row upserts on ``id``; they
    replace a row only when ``data`` names every column, which is what
    ``DocumentStore.upsert`` sends. Live queries open one Realtime
    ``postgres_changes`` channel per registration.

    Example:
        >>> client = await get_supabase_client()
        >>> backend = SupabaseDocumentBackend(client)
        >>> await backend.fetch(Collection.USERS, "abc123")
    """

    def __init__(self, client: AsyncClient, schema: str = "public") -> None:
        """
        Initialize the backend.

        Args:
            client: Async Supabase client
            schema: Postgres schema holding the collection tables
        """
        self.client = client
        self.schema = schema

    async def _execute(self, request: Any, action: str) -> Any:
        try:
            return await request.execute()
        except PostgrestAPIError as e:
            raise StoreWriteError(f"{action} failed: {e.message or e}") from e
        except httpx.TransportError as e:
            raise TransientNetworkError(f"{action} failed: {e}") from e

    async def fetch(self, collection: Collection, document_id: str) -> Document | None:
        request = self.client.table(collection).select("*").eq("id", document_id).limit(1)
        response = await self._execute(request, f"Fetch {collection}/{document_id}")
        return response.data[0] if response.data else None

    async def select(self, query: Query) -> list[Document]:
        request = self.client.table(query.collection).select("*")

        for field_name, value in query.filters.items():
            request = request.eq(field_name, value)

        if query.limit is not None:
            request = request.limit(query.limit)

        response = await self._execute(request, f"Query {query.collection}")
        return response.data

    async def set(self, collection: Collection, document_id: str, data: Document) -> None:
        row = {**data, "id": document_id}
        request = self.client.table(collection).upsert(row, on_conflict="id")
        await self._execute(request, f"Write {collection}/{document_id}")

    async def insert(self, collection: Collection, data: Document) -> str:
        document_id = data.get("id") or str(uuid4())
        request = self.client.table(collection).insert({**data, "id": document_id})
        await self._execute(request, f"Insert into {collection}")
        return document_id

    async def insert_if_absent(
        self, collection: Collection, document_id: str, data: Document
    ) -> bool:
        row = {**data, "id": document_id}
        # ON CONFLICT DO NOTHING returns no rows when the id is taken
        request = self.client.table(collection).upsert(
            row, on_conflict="id", ignore_duplicates=True
        )
        response = await self._execute(request, f"Create {collection}/{document_id}")
        return bool(response.data)

    async def update(self, collection: Collection, document_id: str, data: Document) -> None:
        request = self.client.table(collection).update(data).eq("id", document_id)
        response = await self._execute(request, f"Update {collection}/{document_id}")
        if not response.data:
            raise NotFoundError(f"Document {collection}/{document_id} does not exist")

    async def delete(self, collection: Collection, document_id: str) -> None:
        request = self.client.table(collection).delete().eq("id", document_id)
        await self._execute(request, f"Delete {collection}/{document_id}")

    async def set_many(self, collection: Collection, rows: list[tuple[str, Document]]) -> None:
        if not rows:
            return
        # A single multi-row upsert is one statement, so it commits atomically
        payload = [{**data, "id": document_id} for document_id, data in rows]
        request = self.client.table(collection).upsert(payload, on_conflict="id")
        await self._execute(request, f"Batch write of {len(rows)} into {collection}")

    async def delete_many(self, collection: Collection, document_ids: list[str]) -> None:
        if not document_ids:
            return
        request = self.client.table(collection).delete().in_("id", document_ids)
        await self._execute(request, f"Batch delete of {len(document_ids)} from {collection}")

    async def listen(
        self, query: Query, on_change: Callable[[], None]
    ) -> ListenerRegistration:
        channel = self.client.channel(f"{query.collection}-{uuid4()}")
        channel.on_postgres_changes(
            RealtimePostgresChangesListenEvent.All,
            callback=lambda payload: on_change(),
            table=str(query.collection),
            schema=self.schema,
        )
        try:
            await channel.subscribe()
        except Exception as e:
            await self.client.remove_channel(channel)
            raise TransientNetworkError(f"Subscribe to {query.collection} failed: {e}") from e

        logger.debug(f"Opened realtime channel {channel.topic}", extra={"query": repr(query)})
        return RealtimeListenerRegistration(self.client, channel)

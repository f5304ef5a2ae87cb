"""Document store contract and its Supabase-backed implementation."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Protocol, Sequence

from supabase import Client

logger = logging.getLogger(__name__)


class StoreNotConfiguredError(RuntimeError):
    """Raised when a store operation is attempted without database credentials."""


class DocumentStore(Protocol):
    """Narrow async contract the services rely on.

    Every table is treated as an independent partition; no read-after-write
    consistency is assumed across tables.
    """

    async def get(self, table: str, key: str, *, key_column: str = "id") -> dict[str, Any] | None:
        ...

    async def query(
        self,
        table: str,
        *,
        eq: Mapping[str, Any] | None = None,
        in_: Mapping[str, Sequence[Any]] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        ...

    async def count(
        self,
        table: str,
        *,
        eq: Mapping[str, Any] | None = None,
        in_: Mapping[str, Sequence[Any]] | None = None,
    ) -> int:
        ...

    async def upsert(self, table: str, record: Mapping[str, Any], *, on_conflict: str = "id") -> None:
        ...

    async def insert(self, table: str, record: Mapping[str, Any]) -> None:
        ...

    async def update(
        self, table: str, key: str, values: Mapping[str, Any], *, key_column: str = "id"
    ) -> None:
        ...


class SupabaseDocumentStore:
    """`DocumentStore` over the synchronous supabase-py client.

    Each call runs in a worker thread so concurrent reads issued from the
    event loop do not block one another.
    """

    def __init__(self, client: Client | None) -> None:
        self._client = client

    @property
    def configured(self) -> bool:
        return self._client is not None

    def _require_client(self) -> Client:
        if self._client is None:
            raise StoreNotConfiguredError(
                "Supabase not configured. Set JDC_SUPABASE_URL and JDC_SUPABASE_KEY environment variables."
            )
        return self._client

    @staticmethod
    def _apply_filters(builder, eq, in_):
        for column, value in (eq or {}).items():
            builder = builder.eq(column, value)
        for column, values in (in_ or {}).items():
            builder = builder.in_(column, list(values))
        return builder

    async def get(self, table: str, key: str, *, key_column: str = "id") -> dict[str, Any] | None:
        client = self._require_client()

        def _run() -> dict[str, Any] | None:
            response = client.table(table).select("*").eq(key_column, key).limit(1).execute()
            rows = response.data or []
            return rows[0] if rows else None

        return await asyncio.to_thread(_run)

    async def query(
        self,
        table: str,
        *,
        eq: Mapping[str, Any] | None = None,
        in_: Mapping[str, Sequence[Any]] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        client = self._require_client()

        def _run() -> list[dict[str, Any]]:
            builder = self._apply_filters(client.table(table).select("*"), eq, in_)
            if order_by:
                builder = builder.order(order_by, desc=descending)
            if limit is not None:
                builder = builder.limit(limit)
            return list(builder.execute().data or [])

        return await asyncio.to_thread(_run)

    async def count(
        self,
        table: str,
        *,
        eq: Mapping[str, Any] | None = None,
        in_: Mapping[str, Sequence[Any]] | None = None,
    ) -> int:
        client = self._require_client()

        def _run() -> int:
            builder = client.table(table).select("*", count="exact", head=True)
            response = self._apply_filters(builder, eq, in_).execute()
            return int(response.count or 0)

        return await asyncio.to_thread(_run)

    async def upsert(self, table: str, record: Mapping[str, Any], *, on_conflict: str = "id") -> None:
        client = self._require_client()
        await asyncio.to_thread(
            lambda: client.table(table).upsert(dict(record), on_conflict=on_conflict).execute()
        )

    async def insert(self, table: str, record: Mapping[str, Any]) -> None:
        client = self._require_client()
        await asyncio.to_thread(lambda: client.table(table).insert(dict(record)).execute())

    async def update(
        self, table: str, key: str, values: Mapping[str, Any], *, key_column: str = "id"
    ) -> None:
        client = self._require_client()
        await asyncio.to_thread(
            lambda: client.table(table).update(dict(values)).eq(key_column, key).execute()
        )

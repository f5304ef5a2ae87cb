from __future__ import annotations

import asyncio
from typing import Any, Mapping, Sequence

import pytest


class FakeStore:
    """In-memory stand-in for the document store used across the test suite."""

    def __init__(self, tables: dict[str, list[dict]] | None = None) -> None:
        self.tables: dict[str, list[dict]] = {name: list(rows) for name, rows in (tables or {}).items()}
        self.failing: set[str] = set()
        self.failing_writes: set[str] = set()
        self.gates: dict[str, asyncio.Event] = {}
        self.calls: list[tuple[str, str]] = []

    async def _enter(self, op: str, table: str) -> None:
        self.calls.append((op, table))
        gate = self.gates.get(table)
        if gate is not None:
            await gate.wait()
        if table in self.failing:
            raise ConnectionError(f"{table} unavailable")

    @staticmethod
    def _matches(row: dict, eq, in_) -> bool:
        for column, value in (eq or {}).items():
            if row.get(column) != value:
                return False
        for column, values in (in_ or {}).items():
            if row.get(column) not in set(values):
                return False
        return True

    async def get(self, table: str, key: str, *, key_column: str = "id") -> dict | None:
        await self._enter("get", table)
        for row in self.tables.get(table, []):
            if row.get(key_column) == key:
                return dict(row)
        return None

    async def query(
        self,
        table: str,
        *,
        eq: Mapping[str, Any] | None = None,
        in_: Mapping[str, Sequence[Any]] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict]:
        await self._enter("query", table)
        rows = [dict(r) for r in self.tables.get(table, []) if self._matches(r, eq, in_)]
        if order_by:
            rows.sort(key=lambda r: (r.get(order_by) is not None, r.get(order_by) or ""), reverse=descending)
        return rows[:limit] if limit is not None else rows

    async def count(self, table: str, *, eq=None, in_=None) -> int:
        await self._enter("count", table)
        return sum(1 for r in self.tables.get(table, []) if self._matches(r, eq, in_))

    async def upsert(self, table: str, record: Mapping[str, Any], *, on_conflict: str = "id") -> None:
        self.calls.append(("upsert", table))
        if table in self.failing_writes:
            raise ConnectionError(f"{table} read-only")
        rows = self.tables.setdefault(table, [])
        rows[:] = [r for r in rows if r.get(on_conflict) != record.get(on_conflict)]
        rows.append(dict(record))

    async def insert(self, table: str, record: Mapping[str, Any]) -> None:
        self.calls.append(("insert", table))
        self.tables.setdefault(table, []).append(dict(record))

    async def update(self, table: str, key: str, values: Mapping[str, Any], *, key_column: str = "id") -> None:
        self.calls.append(("update", table))
        for row in self.tables.get(table, []):
            if row.get(key_column) == key:
                row.update(values)


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()

"""Registry of geocoding lookups currently in progress."""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass
from typing import Optional

from ...models.domain import Coordinates

_token_ids = itertools.count(1)


@dataclass(frozen=True, slots=True)
class LookupToken:
    key: str
    token_id: int


class InFlightRegistry:
    """At most one lookup per normalized address at any time.

    Each held key carries a future that completes when the holder releases it,
    so other callers can wait for the outcome instead of issuing a duplicate
    request. A release without a result cancels that future.
    """

    def __init__(self) -> None:
        self._entries: dict[str, tuple[LookupToken, asyncio.Future]] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self) -> frozenset[str]:
        return frozenset(self._entries)

    def try_acquire(self, key: str) -> Optional[LookupToken]:
        """Claim ``key``; returns None when another lookup already holds it."""
        if key in self._entries:
            return None
        token = LookupToken(key=key, token_id=next(_token_ids))
        future = asyncio.get_running_loop().create_future()
        self._entries[key] = (token, future)
        return token

    def pending(self, key: str) -> Optional[asyncio.Future]:
        entry = self._entries.get(key)
        return entry[1] if entry else None

    def release(self, token: LookupToken, *, resolved: bool = False, result: Optional[Coordinates] = None) -> None:
        """Drop ``token``'s claim and publish its outcome to any waiters.

        Releasing a stale token (already released, or superseded) is a no-op.
        """
        entry = self._entries.get(token.key)
        if entry is None or entry[0] != token:
            return
        del self._entries[token.key]
        future = entry[1]
        if future.done():
            return
        if resolved:
            future.set_result(result)
        else:
            future.cancel()

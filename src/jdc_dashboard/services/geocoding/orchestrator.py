"""Batch geocoding with cache lookup, de-duplication and supersession."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Protocol

from ...models.domain import Coordinates
from ..errors import GeocodingError
from .cache import GeocodeCacheClient
from .inflight import InFlightRegistry
from .normalizer import normalize_address
from .opencage_client import GeocodeCandidate

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "Geocoding API key missing"


class Geocoder(Protocol):
    async def geocode(self, address: str) -> Optional[GeocodeCandidate]:
        ...


@dataclass(frozen=True, slots=True)
class _Outcome:
    key: str
    coordinates: Optional[Coordinates]
    kind: str  # "resolved" | "not_found" | "failed"
    message: Optional[str] = None


@dataclass(slots=True)
class GeocodeBatchResult:
    """Read-only view of one batch, restricted to the requested keys."""

    coordinates: dict[str, Optional[Coordinates]]
    error: Optional[str]
    busy: bool
    not_found: frozenset[str] = field(default_factory=frozenset)
    failed: frozenset[str] = field(default_factory=frozenset)
    pending: frozenset[str] = field(default_factory=frozenset)
    cancelled: bool = False


class GeocodingOrchestrator:
    """Resolves sets of addresses to coordinates for one owner (a map view/session).

    The result map and error list are only written by :meth:`geocode` after
    checking that its batch is still current; superseded lookups are cancelled
    and never write to the map or the cache. The in-flight registry may be
    shared between orchestrators so one address is never fetched twice at once.
    """

    def __init__(
        self,
        geocoder: Optional[Geocoder],
        cache: Optional[GeocodeCacheClient] = None,
        registry: Optional[InFlightRegistry] = None,
    ) -> None:
        self._geocoder = geocoder
        self._cache = cache
        self._registry = registry if registry is not None else InFlightRegistry()
        self._results: dict[str, Optional[Coordinates]] = {}
        self._not_found: set[str] = set()
        self._failed: set[str] = set()
        self._errors: list[str] = []
        self._generation = 0
        self._tasks: set[asyncio.Task] = set()
        self._background: set[asyncio.Task] = set()
        self._closed = False

    @property
    def registry(self) -> InFlightRegistry:
        return self._registry

    @property
    def coordinates(self) -> dict[str, Optional[Coordinates]]:
        return dict(self._results)

    @property
    def error(self) -> Optional[str]:
        return " | ".join(self._errors) if self._errors else None

    @property
    def busy(self) -> bool:
        return any(not task.done() for task in self._tasks)

    async def geocode(self, addresses: Iterable[Optional[str]]) -> GeocodeBatchResult:
        if self._closed:
            raise RuntimeError("Geocoding orchestrator is closed.")
        if isinstance(addresses, (str, bytes)):
            raise TypeError("addresses must be a collection of strings, not a single string")

        requested: dict[str, str] = {}
        for raw in addresses:
            key = normalize_address(raw)
            if key and key not in requested:
                requested[key] = raw.strip()

        generation = await self._supersede()
        self._errors = []

        if not requested:
            self._results.clear()
            self._not_found.clear()
            self._failed.clear()
            return self._snapshot(requested)

        tasks: list[asyncio.Task] = []
        waiting = 0
        for key, original in requested.items():
            if key in self._results and key not in self._failed:
                continue
            if key in self._registry:
                waiting += 1
            tasks.append(asyncio.create_task(self._lookup(key, original, generation)))
        self._tasks = set(tasks)

        if not tasks:
            return self._snapshot(requested)

        logger.info(
            f"Batch geocoding {len(tasks) - waiting} new addresses ({waiting} already in flight elsewhere)"
        )
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        if generation != self._generation:
            logger.debug("Geocoding batch superseded, discarding its results")
            return self._snapshot(requested, cancelled=True)

        for outcome in outcomes:
            if isinstance(outcome, _Outcome):
                self._apply(outcome)
            elif isinstance(outcome, BaseException) and not isinstance(outcome, asyncio.CancelledError):
                logger.error(f"Geocoding task failed unexpectedly: {outcome!r}")
        return self._snapshot(requested)

    async def cancel(self) -> None:
        """Abandon the current batch without touching the result map."""
        await self._supersede()

    async def drain(self) -> None:
        """Wait for background cache writes started by completed lookups."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def aclose(self) -> None:
        self._closed = True
        await self._supersede()
        await self.drain()

    async def _supersede(self) -> int:
        self._generation += 1
        generation = self._generation
        stale = [task for task in self._tasks if not task.done()]
        self._tasks = set()
        for task in stale:
            task.cancel()
        if stale:
            await asyncio.gather(*stale, return_exceptions=True)
        return generation

    def _apply(self, outcome: _Outcome) -> None:
        key = outcome.key
        self._results[key] = outcome.coordinates
        self._not_found.discard(key)
        self._failed.discard(key)
        if outcome.kind == "not_found":
            self._not_found.add(key)
        elif outcome.kind == "failed":
            self._failed.add(key)
            if outcome.message and outcome.message not in self._errors:
                self._errors.append(outcome.message)

    def _snapshot(self, requested: dict[str, str], *, cancelled: bool = False) -> GeocodeBatchResult:
        keys = set(requested)
        return GeocodeBatchResult(
            coordinates={key: self._results[key] for key in requested if key in self._results},
            error=self.error,
            busy=self.busy,
            not_found=frozenset(keys & self._not_found),
            failed=frozenset(keys & self._failed),
            pending=frozenset(keys - set(self._results)),
            cancelled=cancelled,
        )

    def _schedule(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _lookup(self, key: str, original: str, generation: int) -> Optional[_Outcome]:
        # A task cancelled before its first step never holds a token.
        token = self._registry.try_acquire(key)
        if token is None:
            future = self._registry.pending(key)
            return await self._await_other(key, future) if future is not None else None
        resolved = False
        result: Optional[Coordinates] = None
        try:
            outcome = await self._resolve(key, original, generation)
            if outcome.kind != "failed":
                resolved, result = True, outcome.coordinates
            return outcome
        finally:
            self._registry.release(token, resolved=resolved, result=result)

    async def _resolve(self, key: str, original: str, generation: int) -> _Outcome:
        if self._cache is not None:
            entry = await self._cache.get(key)
            if entry is not None:
                kind = "not_found" if entry.not_found else "resolved"
                return _Outcome(key, entry.coordinates, kind)

        if self._geocoder is None:
            return _Outcome(key, None, "failed", MISSING_KEY_MESSAGE)

        try:
            candidate = await self._geocoder.geocode(original)
        except GeocodingError as e:
            logger.warning(f"Error geocoding address '{original}': {e}")
            return _Outcome(key, None, "failed", e.user_message)
        except Exception as e:
            logger.exception(f"Unexpected error geocoding address '{original}': {e}")
            return _Outcome(key, None, "failed", GeocodingError.user_message)

        if generation != self._generation:
            # Superseded while the response was in transit; leave the cache alone.
            raise asyncio.CancelledError()

        if candidate is None:
            if self._cache is not None:
                self._schedule(self._cache.put_not_found(key))
            return _Outcome(key, None, "not_found")

        if self._cache is not None:
            self._schedule(self._cache.put(key, candidate.coordinates))
        return _Outcome(key, candidate.coordinates, "resolved")

    async def _await_other(self, key: str, future: asyncio.Future) -> Optional[_Outcome]:
        await asyncio.wait({future})
        if future.cancelled():
            return None
        coordinates = future.result()
        return _Outcome(key, coordinates, "resolved" if coordinates is not None else "not_found")

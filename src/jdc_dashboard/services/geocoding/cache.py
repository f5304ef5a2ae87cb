"""Geocode cache persisted in the document store."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from ...config import settings
from ...data.records import coerce_datetime, coerce_float
from ...db.store import DocumentStore
from ...models.domain import Coordinates, GeocodeCacheEntry

logger = logging.getLogger(__name__)

KEY_COLUMN = "address"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GeocodeCacheClient:
    """Reads and writes whole cache rows keyed by normalized address.

    Reads fail soft (a miss) and writes never raise: the cache must not break
    the geocoding path it sits in front of.
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        table: str | None = None,
        expiry: timedelta | None = None,
        negative_expiry: timedelta | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.table = table or settings.geocode_cache_table
        if expiry is None and settings.geocode_cache_expiry_days is not None:
            expiry = timedelta(days=settings.geocode_cache_expiry_days)
        self.expiry = expiry
        if negative_expiry is None:
            negative_expiry = timedelta(hours=settings.geocode_negative_cache_hours)
        self.negative_expiry = negative_expiry
        self._clock = clock

    @property
    def caches_negative_results(self) -> bool:
        return self.negative_expiry > timedelta(0)

    def _is_stale(self, entry: GeocodeCacheEntry) -> bool:
        window = self.negative_expiry if entry.not_found else self.expiry
        if window is None:
            return False
        if entry.resolved_at is None:
            # Without a write time a negative entry cannot be aged, so it is not trusted.
            return entry.not_found
        return self._clock() - entry.resolved_at > window

    async def get(self, key: str) -> Optional[GeocodeCacheEntry]:
        if not key:
            return None
        try:
            record = await self.store.get(self.table, key, key_column=KEY_COLUMN)
        except Exception as e:
            logger.warning(f"Geocode cache read failed for '{key}': {e}")
            return None
        if not record:
            logger.debug(f"Geocode cache miss for '{key}'")
            return None

        resolved_at = coerce_datetime(record.get("resolved_at"))
        if record.get("not_found"):
            if not self.caches_negative_results:
                return None
            entry = GeocodeCacheEntry(key=key, coordinates=None, resolved_at=resolved_at)
        else:
            lat = coerce_float(record.get("latitude"))
            lng = coerce_float(record.get("longitude"))
            if lat is None or lng is None:
                logger.warning(f"Ignoring malformed geocode cache row for '{key}'")
                return None
            entry = GeocodeCacheEntry(key=key, coordinates=Coordinates(lat=lat, lng=lng), resolved_at=resolved_at)

        if self._is_stale(entry):
            logger.debug(f"Geocode cache entry expired for '{key}'")
            return None
        logger.debug(f"Geocode cache hit for '{key}'")
        return entry

    async def put(self, key: str, coordinates: Coordinates) -> bool:
        return await self._write(
            key,
            {"latitude": coordinates.lat, "longitude": coordinates.lng, "not_found": False},
        )

    async def put_not_found(self, key: str) -> bool:
        if not self.caches_negative_results:
            return False
        return await self._write(key, {"latitude": None, "longitude": None, "not_found": True})

    async def _write(self, key: str, values: dict) -> bool:
        record = {KEY_COLUMN: key, **values, "resolved_at": self._clock().isoformat()}
        try:
            await self.store.upsert(self.table, record, on_conflict=KEY_COLUMN)
        except Exception as e:
            logger.error(f"Failed to store geocode cache entry for '{key}': {e}")
            return False
        logger.debug(f"Geocode saved to cache for '{key}'")
        return True

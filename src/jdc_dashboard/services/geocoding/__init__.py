"""Address geocoding with a persistent cache and request de-duplication."""

from __future__ import annotations

import logging
from typing import Optional

from ...config import settings
from ...db.store import DocumentStore
from .cache import GeocodeCacheClient
from .inflight import InFlightRegistry, LookupToken
from .normalizer import normalize_address
from .opencage_client import GeocodeCandidate, OpenCageClient
from .orchestrator import GeocodeBatchResult, GeocodingOrchestrator

logger = logging.getLogger(__name__)


def build_orchestrator(
    store: Optional[DocumentStore],
    registry: Optional[InFlightRegistry] = None,
    geocoder: Optional[OpenCageClient] = None,
) -> GeocodingOrchestrator:
    """Wire an orchestrator from settings; missing pieces degrade instead of failing."""
    if geocoder is None and settings.opencage_api_key:
        geocoder = OpenCageClient()
    elif geocoder is None:
        logger.warning("OpenCage API key not configured; cache misses will report an error")
    cache = GeocodeCacheClient(store) if store is not None else None
    return GeocodingOrchestrator(geocoder, cache=cache, registry=registry)


__all__ = [
    "GeocodeBatchResult",
    "GeocodeCacheClient",
    "GeocodeCandidate",
    "GeocodingOrchestrator",
    "InFlightRegistry",
    "LookupToken",
    "OpenCageClient",
    "build_orchestrator",
    "normalize_address",
]

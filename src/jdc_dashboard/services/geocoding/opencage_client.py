"""HTTP client for the OpenCage forward geocoding API."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from ...config import settings
from ...models.domain import Coordinates
from ..errors import (
    GeocodingError,
    InvalidApiKeyError,
    NoResponseError,
    QuotaExceededError,
    UpstreamApiError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GeocodeCandidate:
    coordinates: Coordinates
    formatted: Optional[str] = None


def _error_message(response: httpx.Response) -> Optional[str]:
    try:
        payload = response.json()
    except ValueError:
        return None
    status_block = payload.get("status") if isinstance(payload, dict) else None
    if isinstance(status_block, dict):
        return status_block.get("message")
    return None


def classify_http_error(response: httpx.Response) -> GeocodingError:
    code = response.status_code
    if code in (401, 403):
        return InvalidApiKeyError(_error_message(response), status_code=code)
    if code == 402:
        return QuotaExceededError(_error_message(response), status_code=code)
    return UpstreamApiError(code, _error_message(response))


class OpenCageClient:
    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        language: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key or settings.opencage_api_key
        if not self.api_key:
            raise ValueError("OpenCage API key is not configured.")
        self.base_url = base_url or settings.opencage_base_url
        self.language = language or settings.geocode_language
        self.timeout = timeout if timeout is not None else settings.geocode_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.geocode_max_retries
        self.backoff_seconds = (
            backoff_seconds if backoff_seconds is not None else settings.geocode_backoff_seconds
        )
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(self.timeout, connect=10.0))

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def geocode(self, address: str) -> Optional[GeocodeCandidate]:
        """Resolve ``address`` to its first candidate, or None when there are no results.

        Raises a ``GeocodingError`` subclass on authorization, quota, transport
        or other upstream failures. Timeouts, network errors and 5xx responses
        are retried with exponential backoff.
        """
        params = {"q": address, "key": self.api_key, "language": self.language, "no_annotations": 1}
        attempt = 0
        while True:
            try:
                response = await self._client.get(self.base_url, params=params)
                response.raise_for_status()
                payload = response.json()
                break
            except httpx.HTTPStatusError as e:
                error = classify_http_error(e.response)
                if e.response.status_code < 500 or attempt >= self.max_retries:
                    raise error from e
            except (httpx.TimeoutException, httpx.NetworkError) as e:
                if attempt >= self.max_retries:
                    logger.warning(f"Geocoding request for '{address}' got no response after {attempt + 1} attempts: {e}")
                    raise NoResponseError(str(e)) from e
            except ValueError as e:
                raise GeocodingError(f"Invalid JSON from geocoding API: {e}") from e
            attempt += 1
            wait_time = self.backoff_seconds * (2 ** (attempt - 1))
            logger.debug(f"Geocoding retry in {wait_time:.1f}s (attempt {attempt}/{self.max_retries})")
            await asyncio.sleep(wait_time)

        results = payload.get("results") or []
        if not results:
            logger.info(f"No geocoding results for '{address}'")
            return None
        first = results[0]
        geometry = first.get("geometry") or {}
        try:
            coordinates = Coordinates(lat=float(geometry["lat"]), lng=float(geometry["lng"]))
        except (KeyError, TypeError, ValueError) as e:
            raise GeocodingError(f"Geocoding result without usable geometry: {e}") from e
        return GeocodeCandidate(coordinates=coordinates, formatted=first.get("formatted"))

"""Geocoding API schemas."""

from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, Field

from ..services.geocoding import GeocodeBatchResult


class GeocodeRequest(BaseModel):
    addresses: List[str | None] = Field(default_factory=list, max_length=500)


class CoordinatesModel(BaseModel):
    lat: float
    lng: float


class GeocodeResponse(BaseModel):
    coordinates: Dict[str, CoordinatesModel | None]
    error: str | None = None
    isLoading: bool
    notFound: List[str]
    failed: List[str]
    pending: List[str]
    cancelled: bool = False

    @classmethod
    def from_result(cls, result: GeocodeBatchResult) -> "GeocodeResponse":
        return cls(
            coordinates={
                key: CoordinatesModel(lat=c.lat, lng=c.lng) if c is not None else None
                for key, c in result.coordinates.items()
            },
            error=result.error,
            isLoading=result.busy,
            notFound=sorted(result.not_found),
            failed=sorted(result.failed),
            pending=sorted(result.pending),
            cancelled=result.cancelled,
        )

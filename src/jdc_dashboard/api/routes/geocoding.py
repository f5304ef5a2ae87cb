"""Batch geocoding for the map view."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ...schemas.geocoding import GeocodeRequest, GeocodeResponse
from ...services.session import DashboardSession
from ..deps import get_session

router = APIRouter(prefix="/geocode", tags=["geocoding"])


@router.post("", response_model=GeocodeResponse, status_code=status.HTTP_200_OK)
async def geocode_addresses(
    request: GeocodeRequest,
    session: DashboardSession = Depends(get_session),
) -> GeocodeResponse:
    """Resolve the addresses currently shown on the caller's map.

    A newer request from the same session supersedes this one; the superseded
    response comes back with ``cancelled`` set and unchanged coordinates.
    """
    result = await session.geocode(request.addresses)
    return GeocodeResponse.from_result(result)

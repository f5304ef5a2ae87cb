"""Shipment listing grouped by client."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...data.shipments_repository import fetch_shipments_for_sectors
from ...db.store import DocumentStore
from ...models.domain import UserProfile
from ...schemas.shipments import ClientGroupModel, ShipmentGroupsResponse, ShipmentModel
from ...services.shipments import filter_and_group_shipments
from ...services.users import accessible_sectors
from ..deps import get_profile, get_store

router = APIRouter(prefix="/shipments", tags=["shipments"])


@router.get("", response_model=ShipmentGroupsResponse, status_code=status.HTTP_200_OK)
async def list_shipments(
    sector: str | None = Query(default=None, description="Optional exact sector filter"),
    search: str | None = Query(default=None, description="Client name or code substring"),
    active_only: bool = Query(default=False, description="Only shipments not yet delivered"),
    store: DocumentStore = Depends(get_store),
    profile: Optional[UserProfile] = Depends(get_profile),
) -> ShipmentGroupsResponse:
    sectors = accessible_sectors(profile)
    try:
        shipments = await fetch_shipments_for_sectors(store, sectors, active_only=active_only)
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Unable to load shipments: {exc}",
        ) from exc

    groups, sector_options = filter_and_group_shipments(
        shipments, sector=sector, search=search, accessible_sectors=sectors
    )
    return ShipmentGroupsResponse(
        groups=[
            ClientGroupModel(
                client=group.key,
                clientCode=group.client_code,
                count=len(group.shipments),
                shipments=[ShipmentModel.from_shipment(s) for s in group.shipments],
            )
            for group in groups
        ],
        availableSectors=sector_options,
        total=sum(len(group.shipments) for group in groups),
    )

"""Dashboard overview, recent tickets and statistics snapshots."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...config import settings
from ...db.store import DocumentStore
from ...models.domain import UserProfile
from ...schemas.dashboard import DashboardResponse, RecentTicketsResponse, SnapshotModel, TicketModel
from ...services.dashboard import load_dashboard
from ...services.errors import SnapshotExistsError
from ...services.session import DashboardSession
from ...services.stats import record_daily_snapshot
from ...services.users import accessible_sectors
from ..deps import get_admin_profile, get_profile, get_session, get_store

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard", response_model=DashboardResponse, status_code=status.HTTP_200_OK)
async def get_dashboard(
    store: DocumentStore = Depends(get_store),
    profile: Optional[UserProfile] = Depends(get_profile),
) -> DashboardResponse:
    data = await load_dashboard(store, accessible_sectors(profile))
    return DashboardResponse.from_data(data)


@router.get("/tickets/recent", response_model=RecentTicketsResponse, status_code=status.HTTP_200_OK)
async def get_recent_tickets(
    count: int = Query(default=settings.recent_tickets_limit, ge=1, le=500),
    session: DashboardSession = Depends(get_session),
    profile: Optional[UserProfile] = Depends(get_profile),
) -> RecentTicketsResponse:
    sectors = accessible_sectors(profile)
    await session.tickets.refresh(sectors, count)
    return RecentTicketsResponse(
        items=[TicketModel.from_ticket(t) for t in session.tickets.tickets],
        sectors=sectors,
    )


@router.post("/stats/snapshots", response_model=SnapshotModel, status_code=status.HTTP_201_CREATED)
async def create_snapshot(
    store: DocumentStore = Depends(get_store),
    admin: UserProfile = Depends(get_admin_profile),
) -> SnapshotModel:
    try:
        snapshot = await record_daily_snapshot(store, settings.available_sectors)
    except SnapshotExistsError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return SnapshotModel(
        id=snapshot.id,
        timestamp=snapshot.timestamp,
        ticketCount=snapshot.ticket_count,
        shipmentCount=snapshot.shipment_count,
        clientCount=snapshot.client_count,
    )

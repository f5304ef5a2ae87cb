"""Dashboard and ticket API schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel

from ..models.domain import Ticket
from ..services.dashboard import DashboardData
from .shipments import ShipmentModel


class CountsModel(BaseModel):
    ticketCount: int | None = None
    shipmentCount: int | None = None
    clientCount: int | None = None


class SnapshotModel(BaseModel):
    id: str
    timestamp: datetime | None = None
    ticketCount: int | None = None
    shipmentCount: int | None = None
    clientCount: int | None = None


class TicketModel(BaseModel):
    id: str
    sector: str
    date: datetime
    client: str | None = None
    description: str | None = None
    status: str | None = None
    statusCategory: str

    @classmethod
    def from_ticket(cls, ticket: Ticket) -> "TicketModel":
        return cls(
            id=ticket.id,
            sector=ticket.sector,
            date=ticket.date,
            client=ticket.client,
            description=ticket.description,
            status=ticket.status,
            statusCategory=ticket.status_category.value,
        )


class DashboardResponse(BaseModel):
    live: CountsModel
    evolution: CountsModel
    latestSnapshot: SnapshotModel | None = None
    recentTickets: List[TicketModel]
    recentShipments: List[ShipmentModel]
    error: str | None = None

    @classmethod
    def from_data(cls, data: DashboardData) -> "DashboardResponse":
        snapshot = data.latest_snapshot
        return cls(
            live=CountsModel(
                ticketCount=data.live.ticket_count,
                shipmentCount=data.live.shipment_count,
                clientCount=data.live.client_count,
            ),
            evolution=CountsModel(
                ticketCount=data.evolution.ticket_count,
                shipmentCount=data.evolution.shipment_count,
                clientCount=data.evolution.client_count,
            ),
            latestSnapshot=SnapshotModel(
                id=snapshot.id,
                timestamp=snapshot.timestamp,
                ticketCount=snapshot.ticket_count,
                shipmentCount=snapshot.shipment_count,
                clientCount=snapshot.client_count,
            )
            if snapshot
            else None,
            recentTickets=[TicketModel.from_ticket(t) for t in data.recent_tickets],
            recentShipments=[ShipmentModel.from_shipment(s) for s in data.recent_shipments],
            error=data.error,
        )


class RecentTicketsResponse(BaseModel):
    items: List[TicketModel]
    sectors: List[str]

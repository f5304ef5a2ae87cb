"""Dashboard overview: live counts, evolution and recent items in one pass."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from ..config import settings
from ..data.shipments_repository import fetch_recent_shipments
from ..data.snapshots_repository import fetch_latest_snapshot
from ..db.store import DocumentStore
from ..models.domain import Shipment, StatsSnapshot, Ticket
from .stats import Evolution, LiveCounts, compute_evolution, fetch_live_counts
from .tickets import fetch_recent_tickets

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DashboardData:
    live: LiveCounts
    evolution: Evolution
    latest_snapshot: Optional[StatsSnapshot]
    recent_tickets: list[Ticket]
    recent_shipments: list[Shipment]
    errors: list[str] = field(default_factory=list)

    @property
    def error(self) -> Optional[str]:
        return " | ".join(self.errors) if self.errors else None


async def load_dashboard(
    store: DocumentStore,
    sectors: Sequence[str],
    *,
    ticket_count: int | None = None,
    shipment_count: int | None = None,
) -> DashboardData:
    """Fetch everything the overview shows; each part degrades on its own."""
    ticket_count = ticket_count or settings.recent_tickets_limit
    shipment_count = shipment_count or settings.recent_shipments_limit
    errors: list[str] = []

    async def snapshot() -> Optional[StatsSnapshot]:
        try:
            return await fetch_latest_snapshot(store)
        except Exception as e:
            logger.warning(f"Error fetching latest snapshot: {e}")
            return None

    async def tickets() -> list[Ticket]:
        try:
            return await fetch_recent_tickets(store, sectors, ticket_count)
        except Exception as e:
            logger.warning(f"Error fetching recent tickets: {e}")
            errors.append("Recent tickets unavailable")
            return []

    async def shipments() -> list[Shipment]:
        try:
            return await fetch_recent_shipments(store, sectors, shipment_count)
        except Exception as e:
            logger.warning(f"Error fetching recent shipments: {e}")
            errors.append("Recent shipments unavailable")
            return []

    latest, live, recent_tickets, recent_shipments = await asyncio.gather(
        snapshot(), fetch_live_counts(store, sectors), tickets(), shipments()
    )
    if None in (live.ticket_count, live.shipment_count, live.client_count):
        errors.append("Some statistics are unavailable")

    return DashboardData(
        live=live,
        evolution=compute_evolution(live, latest),
        latest_snapshot=latest,
        recent_tickets=recent_tickets,
        recent_shipments=recent_shipments,
        errors=errors,
    )

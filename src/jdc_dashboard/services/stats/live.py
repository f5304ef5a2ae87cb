"""Live aggregate counts read straight from the document store."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional, Sequence

from ...config import settings
from ...data.shipments_repository import ACTIVE_STATUS, STATUS_COLUMN, fetch_shipments_for_sectors
from ...data.snapshots_repository import save_snapshot
from ...db.store import DocumentStore
from ...models.domain import StatsSnapshot
from .evolution import LiveCounts

logger = logging.getLogger(__name__)


async def count_tickets(store: DocumentStore, sectors: Sequence[str]) -> int:
    """Total tickets across ``sectors``; each sector table is counted server-side.

    Unlike the recent-tickets merge, a failing sector fails the total: a
    partial sum would be reported as a (wrong) count.
    """
    unique_sectors = list(dict.fromkeys(s for s in sectors if s))
    if not unique_sectors:
        return 0
    counts = await asyncio.gather(*(store.count(sector) for sector in unique_sectors))
    return sum(counts)


async def count_active_shipments(store: DocumentStore) -> int:
    return await store.count(settings.shipments_table, eq={STATUS_COLUMN: ACTIVE_STATUS})


async def count_active_clients(store: DocumentStore, sectors: Optional[Sequence[str]] = None) -> int:
    """Distinct client codes among active shipments (requires reading the rows)."""
    if sectors is None:
        records = await store.query(settings.shipments_table, eq={STATUS_COLUMN: ACTIVE_STATUS})
        codes = {str(r.get("codeClient")).strip() for r in records if r.get("codeClient")}
    else:
        shipments = await fetch_shipments_for_sectors(store, sectors, active_only=True)
        codes = {s.client_code for s in shipments if s.client_code}
    return len(codes)


async def _soft(label: str, coro) -> Optional[int]:
    try:
        return await coro
    except Exception as e:
        logger.warning(f"Error fetching live {label} count: {e}")
        return None


async def fetch_live_counts(store: DocumentStore, sectors: Sequence[str]) -> LiveCounts:
    """Every count degrades to None independently on failure."""
    tickets, shipments, clients = await asyncio.gather(
        _soft("ticket", count_tickets(store, sectors)),
        _soft("shipment", count_active_shipments(store)),
        _soft("client", count_active_clients(store)),
    )
    return LiveCounts(ticket_count=tickets, shipment_count=shipments, client_count=clients)


async def record_daily_snapshot(
    store: DocumentStore,
    sectors: Sequence[str],
    now: Optional[datetime] = None,
) -> StatsSnapshot:
    """Persist today's live counts as the new baseline.

    Raises ``SnapshotExistsError`` if the day was already recorded and
    ``RuntimeError`` when a live count is unavailable.
    """
    now = now or datetime.now(timezone.utc)
    live = await fetch_live_counts(store, sectors)
    if None in (live.ticket_count, live.shipment_count, live.client_count):
        raise RuntimeError("Live counts unavailable; snapshot not recorded.")
    snapshot = StatsSnapshot(
        id=now.date().isoformat(),
        timestamp=now,
        ticket_count=live.ticket_count,
        shipment_count=live.shipment_count,
        client_count=live.client_count,
    )
    await save_snapshot(store, snapshot)
    logger.info(f"Recorded stats snapshot {snapshot.id}")
    return snapshot

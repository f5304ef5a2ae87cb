"""Periodic statistics snapshots."""

from __future__ import annotations

from typing import Optional

from .records import coerce_datetime, coerce_int, first_present
from ..config import settings
from ..db.store import DocumentStore
from ..models.domain import StatsSnapshot
from ..services.errors import SnapshotExistsError


def snapshot_from_record(record: dict) -> StatsSnapshot:
    return StatsSnapshot(
        id=str(record.get("id", "")),
        timestamp=coerce_datetime(record.get("timestamp")),
        ticket_count=coerce_int(first_present(record, "ticketCount", "totalTickets")),
        shipment_count=coerce_int(first_present(record, "shipmentCount", "activeShipments")),
        client_count=coerce_int(first_present(record, "clientCount", "activeClients")),
    )


def snapshot_to_record(snapshot: StatsSnapshot) -> dict:
    return {
        "id": snapshot.id,
        "timestamp": snapshot.timestamp.isoformat() if snapshot.timestamp else None,
        "ticketCount": snapshot.ticket_count,
        "shipmentCount": snapshot.shipment_count,
        "clientCount": snapshot.client_count,
    }


async def fetch_latest_snapshot(store: DocumentStore) -> Optional[StatsSnapshot]:
    records = await store.query(settings.snapshots_table, order_by="timestamp", descending=True, limit=1)
    return snapshot_from_record(records[0]) if records else None


async def save_snapshot(store: DocumentStore, snapshot: StatsSnapshot) -> None:
    """Insert ``snapshot``; snapshots are never overwritten."""
    existing = await store.get(settings.snapshots_table, snapshot.id)
    if existing is not None:
        raise SnapshotExistsError(f"A snapshot already exists for period {snapshot.id}")
    await store.insert(settings.snapshots_table, snapshot_to_record(snapshot))

"""Data access helpers for CTN shipments."""

from __future__ import annotations

import logging
from typing import Sequence

from .records import clean_str, coerce_datetime, coerce_float, first_present
from ..config import settings
from ..db.store import DocumentStore
from ..models.domain import Shipment

logger = logging.getLogger(__name__)

ACTIVE_STATUS = "NON"
SECTOR_COLUMN = "secteur"
STATUS_COLUMN = "statutExpedition"


def shipment_from_record(record: dict) -> Shipment:
    return Shipment(
        id=str(record.get("id", "")),
        client_code=clean_str(first_present(record, "codeClient", "client_code")),
        client_name=clean_str(first_present(record, "nomClient", "client_name")),
        sector=clean_str(record.get(SECTOR_COLUMN)),
        status=clean_str(record.get(STATUS_COLUMN)),
        article=clean_str(first_present(record, "article", "nomArticle", "designation")),
        address=clean_str(first_present(record, "adresse", "address")),
        city=clean_str(first_present(record, "ville", "city")),
        postal_code=clean_str(first_present(record, "codePostal", "postal_code")),
        tracking_number=clean_str(first_present(record, "numeroSuivi", "trackingNumber", "tracking_number")),
        created_at=coerce_datetime(record.get("dateCreation")),
        latitude=coerce_float(record.get("latitude")),
        longitude=coerce_float(record.get("longitude")),
        raw=record,
    )


def _recency_key(shipment: Shipment):
    # Dated shipments first (newest first), then by id; creation dates are not reliably present.
    if shipment.created_at is None:
        return (1, 0.0, shipment.id)
    return (0, -shipment.created_at.timestamp(), shipment.id)


def order_shipments(shipments: Sequence[Shipment]) -> list[Shipment]:
    return sorted(shipments, key=_recency_key)


async def fetch_shipments_for_sectors(
    store: DocumentStore,
    sectors: Sequence[str],
    *,
    active_only: bool = False,
) -> list[Shipment]:
    """All shipments belonging to ``sectors`` in deterministic recency order."""
    unique_sectors = list(dict.fromkeys(s for s in sectors if s))
    if not unique_sectors:
        return []
    eq = {STATUS_COLUMN: ACTIVE_STATUS} if active_only else None
    records = await store.query(
        settings.shipments_table,
        eq=eq,
        in_={SECTOR_COLUMN: unique_sectors},
    )
    shipments = order_shipments([shipment_from_record(record) for record in records])
    logger.info(
        f"Found {len(shipments)} {'active ' if active_only else ''}shipments for sectors: {', '.join(unique_sectors)}"
    )
    return shipments


async def fetch_recent_shipments(store: DocumentStore, sectors: Sequence[str], count: int) -> list[Shipment]:
    if count <= 0:
        raise ValueError(f"count must be positive, got {count}")
    shipments = await fetch_shipments_for_sectors(store, sectors)
    return shipments[:count]

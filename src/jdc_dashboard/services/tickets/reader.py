"""Recent tickets merged across per-sector tables."""

from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from ...data.records import EPOCH, clean_str, coerce_datetime, first_present
from ...db.store import DocumentStore
from ...models.domain import Ticket

logger = logging.getLogger(__name__)

ORDER_COLUMN = "date"


def ticket_from_record(record: dict, sector: str) -> Ticket:
    return Ticket(
        id=str(record.get("id", "")),
        sector=sector,
        # Undated tickets sort last.
        date=coerce_datetime(record.get(ORDER_COLUMN)) or EPOCH,
        client=clean_str(first_present(record, "client", "raisonSociale")),
        description=clean_str(record.get("description")),
        status=clean_str(first_present(record, "statut", "status")),
        raw=record,
    )


async def _read_sector(store: DocumentStore, sector: str, count: int) -> list[Ticket]:
    try:
        records = await store.query(sector, order_by=ORDER_COLUMN, descending=True, limit=count)
    except Exception as e:
        logger.warning(f"Error fetching tickets for sector {sector}: {e}")
        return []
    return [ticket_from_record(record, sector) for record in records]


async def fetch_recent_tickets(store: DocumentStore, sectors: Sequence[str], count: int) -> list[Ticket]:
    """Return at most ``count`` tickets across ``sectors``, newest first.

    Each sector is read with its own bounded query; a failing sector
    contributes nothing. Because each sector is bounded independently the
    merged set is re-sorted before truncation.
    """
    if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
        raise ValueError(f"count must be a positive integer, got {count!r}")
    unique_sectors = list(dict.fromkeys(s for s in sectors if s))
    if not unique_sectors:
        return []

    logger.debug(f"Fetching recent tickets for sectors: {', '.join(unique_sectors)}")
    per_sector = await asyncio.gather(*(_read_sector(store, s, count) for s in unique_sectors))
    merged = [ticket for tickets in per_sector for ticket in tickets]
    merged.sort(key=lambda ticket: ticket.date, reverse=True)
    logger.info(f"Found {len(merged)} tickets across {len(unique_sectors)} sectors, returning top {count}")
    return merged[:count]


class TicketFeed:
    """Latest recent-tickets view for one consumer.

    Every refresh takes a generation number; a refresh that finishes after a
    newer one started is discarded instead of overwriting newer state.
    """

    def __init__(self, store: DocumentStore) -> None:
        self.store = store
        self.tickets: list[Ticket] = []
        self._generation = 0
        self._applied_generation = 0

    @property
    def loading(self) -> bool:
        return self._applied_generation < self._generation

    async def refresh(self, sectors: Sequence[str], count: int) -> bool:
        """Reload; returns False when the result was superseded and dropped."""
        self._generation += 1
        generation = self._generation
        try:
            tickets = await fetch_recent_tickets(self.store, sectors, count)
        except Exception:
            # A failed refresh still ends its own loading state.
            if generation == self._generation:
                self._applied_generation = generation
            raise
        if generation != self._generation:
            logger.debug(f"Discarding superseded ticket refresh #{generation}")
            return False
        self.tickets = tickets
        self._applied_generation = generation
        return True

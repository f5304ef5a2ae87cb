"""Change-over-time metrics between live counts and the latest snapshot."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ...models.domain import StatsSnapshot


@dataclass(frozen=True, slots=True)
class LiveCounts:
    ticket_count: Optional[int]
    shipment_count: Optional[int]
    client_count: Optional[int]


@dataclass(frozen=True, slots=True)
class Evolution:
    ticket_count: Optional[int]
    shipment_count: Optional[int]
    client_count: Optional[int]


def compute_delta(live: Optional[int], baseline: Optional[int]) -> Optional[int]:
    """Signed change from ``baseline`` to ``live``.

    A missing baseline counts as "no change" (0); a missing live value cannot
    be compared and yields None.
    """
    if live is None:
        return None
    if baseline is None:
        return 0
    return live - baseline


def compute_evolution(live: LiveCounts, snapshot: Optional[StatsSnapshot]) -> Evolution:
    return Evolution(
        ticket_count=compute_delta(live.ticket_count, snapshot.ticket_count if snapshot else None),
        shipment_count=compute_delta(live.shipment_count, snapshot.shipment_count if snapshot else None),
        client_count=compute_delta(live.client_count, snapshot.client_count if snapshot else None),
    )

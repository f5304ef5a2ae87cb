"""Client-side filtering and grouping of shipments for display."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from ...models.domain import Shipment

UNKNOWN_CLIENT = "Unknown client"


@dataclass(slots=True)
class ClientGroup:
    key: str
    shipments: list[Shipment]

    @property
    def client_code(self) -> Optional[str]:
        return next((s.client_code for s in self.shipments if s.client_code), None)


def client_key(shipment: Shipment) -> str:
    return shipment.client_name or shipment.client_code or UNKNOWN_CLIENT


def _matches(value: Optional[str], needle: str) -> bool:
    return bool(value) and needle in value.lower()


def filter_shipments(
    shipments: Iterable[Shipment],
    sector: Optional[str] = None,
    search: Optional[str] = None,
    accessible_sectors: Optional[Sequence[str]] = None,
) -> list[Shipment]:
    """Sector filter (exact) first, then case-insensitive search on client name or code.

    ``accessible_sectors`` additionally hides rows outside the viewer's sectors.
    """
    filtered = list(shipments)
    if accessible_sectors is not None:
        allowed = set(accessible_sectors)
        filtered = [s for s in filtered if s.sector in allowed]
    if sector:
        filtered = [s for s in filtered if s.sector == sector]
    needle = (search or "").strip().lower()
    if needle:
        filtered = [
            s for s in filtered if _matches(s.client_name, needle) or _matches(s.client_code, needle)
        ]
    return filtered


def group_shipments_by_client(shipments: Iterable[Shipment]) -> list[ClientGroup]:
    """Groups keep first-seen member order; groups are sorted by key."""
    grouped: dict[str, list[Shipment]] = {}
    for shipment in shipments:
        grouped.setdefault(client_key(shipment), []).append(shipment)
    ordered = sorted(grouped.items(), key=lambda item: (item[0].casefold(), item[0]))
    return [ClientGroup(key=key, shipments=members) for key, members in ordered]


def available_sectors(shipments: Iterable[Shipment]) -> list[str]:
    """Distinct sectors of the unfiltered collection, for the filter control."""
    return sorted({s.sector for s in shipments if s.sector})


def filter_and_group_shipments(
    shipments: Sequence[Shipment],
    sector: Optional[str] = None,
    search: Optional[str] = None,
    accessible_sectors: Optional[Sequence[str]] = None,
) -> tuple[list[ClientGroup], list[str]]:
    visible = filter_shipments(shipments, sector=sector, search=search, accessible_sectors=accessible_sectors)
    return group_shipments_by_client(visible), available_sectors(shipments)

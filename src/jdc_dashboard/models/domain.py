"""Domain models for tickets, shipments, profiles and geocoding records."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


@dataclass(frozen=True, slots=True)
class Coordinates:
    lat: float
    lng: float


@dataclass(slots=True)
class GeocodeCacheEntry:
    """A cached geocoding outcome keyed by normalized address.

    ``coordinates`` is None for a negative entry (confirmed "not found").
    """

    key: str
    coordinates: Optional[Coordinates]
    resolved_at: Optional[datetime]

    @property
    def not_found(self) -> bool:
        return self.coordinates is None


class TicketStatus(str, Enum):
    NEW = "new"
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"
    CANCELLED = "cancelled"
    RMA_REQUESTED = "rma_requested"
    OTHER = "other"


class ShipmentStatus(str, Enum):
    DELIVERED = "delivered"
    PENDING = "pending"
    EXCEPTION = "exception"
    OTHER = "other"


# First matching marker wins.
_TICKET_STATUS_MARKERS: tuple[tuple[str, TicketStatus], ...] = (
    ("fermé", TicketStatus.CLOSED),
    ("en cours", TicketStatus.IN_PROGRESS),
    ("annulé", TicketStatus.CANCELLED),
    ("demande de rma", TicketStatus.RMA_REQUESTED),
    ("nouveau", TicketStatus.NEW),
    ("ouvert", TicketStatus.OPEN),
)

_SHIPMENT_STATUS_CODES = {
    "oui": ShipmentStatus.DELIVERED,
    "non": ShipmentStatus.PENDING,
    "relicat": ShipmentStatus.EXCEPTION,
}


def classify_ticket_status(raw: Optional[str]) -> TicketStatus:
    """Map a free-form ticket status label onto a display category."""
    if not raw:
        return TicketStatus.OTHER
    lowered = raw.lower()
    for marker, category in _TICKET_STATUS_MARKERS:
        if marker in lowered:
            return category
    return TicketStatus.OTHER


def classify_shipment_status(raw: Optional[str]) -> ShipmentStatus:
    if not raw:
        return ShipmentStatus.OTHER
    return _SHIPMENT_STATUS_CODES.get(raw.strip().lower(), ShipmentStatus.OTHER)


@dataclass(slots=True)
class Ticket:
    """A SAP ticket read from one sector table.

    ``id`` is only unique inside its sector; ``key`` disambiguates merged results.
    """

    id: str
    sector: str
    date: datetime
    client: Optional[str]
    description: Optional[str]
    status: Optional[str]
    raw: dict = field(default_factory=dict, repr=False)

    @property
    def key(self) -> tuple[str, str]:
        return (self.sector, self.id)

    @property
    def status_category(self) -> TicketStatus:
        return classify_ticket_status(self.status)


@dataclass(slots=True)
class Shipment:
    """A CTN shipment record from the shipments table."""

    id: str
    client_code: Optional[str]
    client_name: Optional[str]
    sector: Optional[str]
    status: Optional[str]
    article: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    tracking_number: Optional[str] = None
    created_at: Optional[datetime] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    raw: dict = field(default_factory=dict, repr=False)

    @property
    def status_category(self) -> ShipmentStatus:
        return classify_shipment_status(self.status)

    @property
    def full_address(self) -> str:
        """Address line used for geocoding: street, postal code and city."""
        parts = [self.address, " ".join(p for p in (self.postal_code, self.city) if p)]
        return ", ".join(p.strip() for p in parts if p and p.strip())


@dataclass(slots=True)
class StatsSnapshot:
    id: str
    timestamp: Optional[datetime]
    ticket_count: Optional[int]
    shipment_count: Optional[int]
    client_count: Optional[int]


@dataclass(slots=True)
class UserProfile:
    uid: str
    email: str
    role: str
    sectors: list[str] = field(default_factory=list)
    display_name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return (self.role or "").lower() == "admin"


@dataclass(frozen=True, slots=True)
class AppUser:
    """Identity already resolved by the auth provider."""

    uid: str
    email: Optional[str]
    display_name: Optional[str] = None

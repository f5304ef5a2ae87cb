"""Shipment API schemas."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel

from ..models.domain import Shipment


class ShipmentModel(BaseModel):
    id: str
    clientCode: str | None = None
    clientName: str | None = None
    sector: str | None = None
    status: str | None = None
    statusCategory: str
    article: str | None = None
    address: str | None = None
    trackingNumber: str | None = None

    @classmethod
    def from_shipment(cls, shipment: Shipment) -> "ShipmentModel":
        return cls(
            id=shipment.id,
            clientCode=shipment.client_code,
            clientName=shipment.client_name,
            sector=shipment.sector,
            status=shipment.status,
            statusCategory=shipment.status_category.value,
            article=shipment.article,
            address=shipment.full_address or None,
            trackingNumber=shipment.tracking_number,
        )


class ClientGroupModel(BaseModel):
    client: str
    clientCode: str | None = None
    count: int
    shipments: List[ShipmentModel]


class ShipmentGroupsResponse(BaseModel):
    groups: List[ClientGroupModel]
    availableSectors: List[str]
    total: int

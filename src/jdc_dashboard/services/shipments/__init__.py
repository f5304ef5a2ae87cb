from .grouping import (
    UNKNOWN_CLIENT,
    ClientGroup,
    available_sectors,
    client_key,
    filter_and_group_shipments,
    filter_shipments,
    group_shipments_by_client,
)

__all__ = [
    "UNKNOWN_CLIENT",
    "ClientGroup",
    "available_sectors",
    "client_key",
    "filter_and_group_shipments",
    "filter_shipments",
    "group_shipments_by_client",
]

from .evolution import Evolution, LiveCounts, compute_delta, compute_evolution
from .live import (
    count_active_clients,
    count_active_shipments,
    count_tickets,
    fetch_live_counts,
    record_daily_snapshot,
)

__all__ = [
    "Evolution",
    "LiveCounts",
    "compute_delta",
    "compute_evolution",
    "count_active_clients",
    "count_active_shipments",
    "count_tickets",
    "fetch_live_counts",
    "record_daily_snapshot",
]

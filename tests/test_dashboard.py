import asyncio
from datetime import datetime, timezone

import pytest

from jdc_dashboard.services.dashboard import load_dashboard
from jdc_dashboard.services.errors import SnapshotExistsError
from jdc_dashboard.services.stats import fetch_live_counts, record_daily_snapshot

from conftest import FakeStore

NOW = datetime(2025, 4, 10, 18, 30, tzinfo=timezone.utc)


def _store():
    return FakeStore(
        {
            "CHR": [
                {"id": "1", "date": "2025-04-01T08:00:00Z", "statut": "Nouveau"},
                {"id": "2", "date": "2025-04-02T08:00:00Z", "statut": "Fermé"},
            ],
            "Tabac": [{"id": "1", "date": "2025-04-03T08:00:00Z"}],
            "Envoi": [
                {"id": "s1", "secteur": "CHR", "statutExpedition": "NON", "codeClient": "C1"},
                {"id": "s2", "secteur": "CHR", "statutExpedition": "NON", "codeClient": "C1"},
                {"id": "s3", "secteur": "Tabac", "statutExpedition": "NON", "codeClient": "C2"},
                {"id": "s4", "secteur": "CHR", "statutExpedition": "OUI", "codeClient": "C3"},
            ],
            "dailyStatsSnapshots": [
                {"id": "2025-04-08", "timestamp": "2025-04-08T23:00:00Z", "ticketCount": 1,
                 "shipmentCount": 5, "clientCount": 2},
                {"id": "2025-04-09", "timestamp": "2025-04-09T23:00:00Z", "totalTickets": 2,
                 "activeShipments": 1, "activeClients": 2},
            ],
        }
    )


def test_live_counts():
    live = asyncio.run(fetch_live_counts(_store(), ["CHR", "Tabac"]))

    assert (live.ticket_count, live.shipment_count, live.client_count) == (3, 3, 2)


def test_dashboard_compares_against_latest_snapshot():
    data = asyncio.run(load_dashboard(_store(), ["CHR", "Tabac"], ticket_count=2, shipment_count=10))

    assert data.latest_snapshot.id == "2025-04-09"
    assert (data.evolution.ticket_count, data.evolution.shipment_count, data.evolution.client_count) == (1, 2, 0)
    assert [t.key for t in data.recent_tickets] == [("Tabac", "1"), ("CHR", "2")]
    assert [s.id for s in data.recent_shipments] == ["s1", "s2", "s3", "s4"]
    assert data.error is None


def test_dashboard_degrades_per_part():
    store = _store()
    store.failing.update({"Envoi", "dailyStatsSnapshots"})

    data = asyncio.run(load_dashboard(store, ["CHR", "Tabac"]))

    assert data.latest_snapshot is None
    assert data.live.ticket_count == 3
    assert data.live.shipment_count is None
    assert data.evolution.ticket_count == 0
    assert data.evolution.shipment_count is None
    assert len(data.recent_tickets) == 3
    assert data.recent_shipments == []
    assert data.error == "Recent shipments unavailable | Some statistics are unavailable"


def test_record_daily_snapshot_once_per_day():
    store = _store()

    snapshot = asyncio.run(record_daily_snapshot(store, ["CHR", "Tabac"], now=NOW))

    assert snapshot.id == "2025-04-10"
    assert store.tables["dailyStatsSnapshots"][-1] == {
        "id": "2025-04-10",
        "timestamp": NOW.isoformat(),
        "ticketCount": 3,
        "shipmentCount": 3,
        "clientCount": 2,
    }
    with pytest.raises(SnapshotExistsError):
        asyncio.run(record_daily_snapshot(store, ["CHR", "Tabac"], now=NOW))


def test_snapshot_refused_when_counts_unavailable():
    store = _store()
    store.failing.add("Tabac")

    with pytest.raises(RuntimeError):
        asyncio.run(record_daily_snapshot(store, ["CHR", "Tabac"], now=NOW))
    assert ("insert", "dailyStatsSnapshots") not in store.calls

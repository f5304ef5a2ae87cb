import pytest
from fastapi.testclient import TestClient

from jdc_dashboard.main import create_app
from jdc_dashboard.models.domain import AppUser

from conftest import FakeStore

TOKENS = {
    "admin-token": AppUser(uid="u0", email="admin@jdc.fr"),
    "tech-token": AppUser(uid="u1", email="tech@jdc.fr"),
    "new-token": AppUser(uid="u2", email="new@jdc.fr"),
}


class DummyIdentity:
    async def resolve(self, token):
        return TOKENS.get(token)


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def store():
    return FakeStore(
        {
            "users": [
                {"id": "u0", "email": "admin@jdc.fr", "role": "Admin", "secteurs": ["CHR", "Tabac"]},
                {"id": "u1", "email": "tech@jdc.fr", "role": "Technician", "secteurs": ["CHR"],
                 "displayName": "Tech"},
            ],
            "CHR": [{"id": "1", "date": "2025-04-01T08:00:00Z", "client": "Bar A", "statut": "Ouvert"}],
            "Tabac": [{"id": "7", "date": "2025-04-02T08:00:00Z", "client": "Tabac B"}],
            "Envoi": [
                {"id": "s1", "secteur": "CHR", "statutExpedition": "NON", "codeClient": "C1", "nomClient": "Acme"},
                {"id": "s2", "secteur": "CHR", "statutExpedition": "OUI", "codeClient": "C2", "nomClient": "Beta"},
                {"id": "s3", "secteur": "Tabac", "statutExpedition": "NON", "codeClient": "C3", "nomClient": "Acme Tabac"},
            ],
            "geocodeCache": [
                {"address": "1 rue haute paris", "latitude": 48.86, "longitude": 2.34, "not_found": False,
                 "resolved_at": None},
            ],
        }
    )


@pytest.fixture
def client(store):
    app = create_app(store=store, identity=DummyIdentity())
    with TestClient(app) as test_client:
        yield test_client


def test_health_endpoints(client):
    assert client.get("/api/health").json() == {"status": "ok"}

    database = client.get("/api/health/database").json()
    assert database["connected"] is True
    assert database["users_count"] == 2


def test_requests_without_valid_token_are_rejected(client):
    missing = client.get("/api/dashboard")
    invalid = client.get("/api/dashboard", headers=_auth("nope"))

    assert missing.status_code == 401
    assert missing.headers["WWW-Authenticate"] == "Bearer"
    assert invalid.status_code == 401


def test_dashboard_is_limited_to_profile_sectors(client):
    response = client.get("/api/dashboard", headers=_auth("tech-token"))

    assert response.status_code == 200
    body = response.json()
    assert [t["id"] for t in body["recentTickets"]] == ["1"]
    assert body["recentTickets"][0]["statusCategory"] == "open"
    assert body["live"]["ticketCount"] == 1
    assert body["evolution"]["ticketCount"] == 0
    assert body["latestSnapshot"] is None


def test_recent_tickets_endpoint(client):
    response = client.get("/api/tickets/recent", params={"count": 1}, headers=_auth("admin-token"))

    assert response.status_code == 200
    body = response.json()
    assert body["sectors"] == ["CHR", "Tabac"]
    assert [(t["sector"], t["id"]) for t in body["items"]] == [("Tabac", "7")]

    assert client.get("/api/tickets/recent", params={"count": 0}, headers=_auth("admin-token")).status_code == 422


def test_shipments_are_grouped_by_client(client):
    response = client.get("/api/shipments", params={"search": "ACME"}, headers=_auth("admin-token"))

    body = response.json()
    assert response.status_code == 200
    assert [g["client"] for g in body["groups"]] == ["Acme", "Acme Tabac"]
    assert body["availableSectors"] == ["CHR", "Tabac"]
    assert body["total"] == 2


def test_shipments_sector_filter_and_active_only(client):
    response = client.get(
        "/api/shipments", params={"sector": "CHR", "active_only": True}, headers=_auth("admin-token")
    )

    body = response.json()
    assert [g["clientCode"] for g in body["groups"]] == ["C1"]
    assert body["availableSectors"] == ["CHR", "Tabac"]


def test_geocode_serves_cached_addresses(client):
    response = client.post(
        "/api/geocode",
        json={"addresses": ["1 Rue Haute  Paris", None, ""]},
        headers=_auth("tech-token"),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["coordinates"] == {"1 rue haute paris": {"lat": 48.86, "lng": 2.34}}
    assert body["isLoading"] is False
    assert body["cancelled"] is False


def test_profile_lifecycle(client, store):
    assert client.get("/api/users/me", headers=_auth("new-token")).status_code == 404

    created = client.post("/api/users", json={"displayName": "Newbie"}, headers=_auth("new-token"))
    assert created.status_code == 201
    assert created.json()["role"] == "Technician"
    assert created.json()["secteurs"] == []
    assert client.get("/api/users/me", headers=_auth("new-token")).json()["displayName"] == "Newbie"

    updated = client.patch(
        "/api/users/u2", json={"role": "Viewer", "secteurs": ["Kezia"]}, headers=_auth("admin-token")
    )
    assert updated.status_code == 200
    assert updated.json() == {"uid": "u2", "updatedFields": ["role", "secteurs"]}
    assert client.get("/api/users/me", headers=_auth("new-token")).json()["secteurs"] == ["Kezia"]

    listing = client.get("/api/users", headers=_auth("admin-token")).json()
    assert [p["uid"] for p in listing] == ["u0", "u2", "u1"]


def test_creating_a_second_profile_conflicts(client, store):
    response = client.post("/api/users", json={"displayName": "Boss"}, headers=_auth("admin-token"))

    assert response.status_code == 409
    me = client.get("/api/users/me", headers=_auth("admin-token")).json()
    assert me["role"] == "Admin"
    assert me["secteurs"] == ["CHR", "Tabac"]


def test_admin_endpoints_require_admin_role(client):
    assert client.get("/api/users", headers=_auth("tech-token")).status_code == 403
    assert client.patch("/api/users/u1", json={"role": "Admin"}, headers=_auth("tech-token")).status_code == 403
    assert client.post("/api/stats/snapshots", headers=_auth("tech-token")).status_code == 403


def test_update_errors(client):
    unknown = client.patch("/api/users/ghost", json={"role": "Viewer"}, headers=_auth("admin-token"))
    invalid = client.patch("/api/users/u1", json={"role": "Overlord"}, headers=_auth("admin-token"))

    assert unknown.status_code == 404
    assert invalid.status_code == 400


def test_snapshot_endpoint_conflicts_on_second_call(client):
    first = client.post("/api/stats/snapshots", headers=_auth("admin-token"))
    second = client.post("/api/stats/snapshots", headers=_auth("admin-token"))

    assert first.status_code == 201
    assert first.json()["ticketCount"] == 2
    assert second.status_code == 409

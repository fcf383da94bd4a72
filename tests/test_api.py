"""Tests for the HTTP sync surface."""

import pytest
from fastapi.testclient import TestClient

from rostersync.config import SyncConfig
from rostersync.errors import RosterFetchError
from rostersync.roster.fields import FieldSelector
from rostersync.sync.engine import Reconciler
from tests.fakes import GUILD_ID, ROLE_ID, FakeDirectory, FakeRoster
from web.backend.app.main import app
from web.backend.app.routers.sync import get_reconciler

API_KEY = "test-admin-key"
HEADERS = {"X-API-Key": API_KEY}


def _reconciler(roster: FakeRoster) -> Reconciler:
    config = SyncConfig(
        sheet_csv_url="https://example.com/sheet.csv",
        role_id=ROLE_ID,
        id_field=FieldSelector(name="id"),
        signed_field=FieldSelector(name="signed"),
    )
    directory = FakeDirectory({"123": set(), "456": {ROLE_ID}})
    return Reconciler(directory, roster, config)


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setenv("ROSTERSYNC_API_KEY", API_KEY)
    reconciler = _reconciler(FakeRoster("id,signed\n123,yes\n456,no\n"))
    app.dependency_overrides[get_reconciler] = lambda: reconciler
    yield TestClient(app), reconciler
    app.dependency_overrides.clear()


def test_health():
    assert TestClient(app).get("/health").json() == {"status": "healthy"}


def test_requires_admin_key(client):
    http, _ = client
    resp = http.post(f"/api/sync/{GUILD_ID}", json={"dry_run": True})
    assert resp.status_code == 401
    resp = http.post(
        f"/api/sync/{GUILD_ID}", json={"dry_run": True}, headers={"X-API-Key": "wrong"}
    )
    assert resp.status_code == 401


def test_bearer_token_is_accepted(client):
    http, _ = client
    resp = http.get("/api/sync/state", headers={"Authorization": f"Bearer {API_KEY}"})
    assert resp.status_code == 200


def test_dry_run(client):
    http, reconciler = client
    resp = http.post(f"/api/sync/{GUILD_ID}", json={"dry_run": True}, headers=HEADERS)

    assert resp.status_code == 200
    data = resp.json()
    assert data["dry_run"] is True
    assert data["to_add"] == ["123"]
    assert data["to_remove"] == ["456"]
    assert data["added"] == 0
    assert "(dry-run)" in data["summary"]
    assert reconciler.client.mutations == []
    assert http.get("/api/sync/state", headers=HEADERS).json() == []


def test_real_sync_commits_state(client):
    http, _ = client
    resp = http.post(f"/api/sync/{GUILD_ID}", headers=HEADERS)

    assert resp.status_code == 200
    assert resp.json()["added"] == 1
    state = http.get("/api/sync/state", headers=HEADERS).json()
    assert state == [
        {"guild_id": GUILD_ID, "allowed_count": 1, "denied_count": 1, "holders_count": 1}
    ]


def test_failure_hides_internal_detail(monkeypatch):
    monkeypatch.setenv("ROSTERSYNC_API_KEY", API_KEY)
    reconciler = _reconciler(FakeRoster("", error=RosterFetchError("HTTP 500 from secret host")))
    app.dependency_overrides[get_reconciler] = lambda: reconciler
    try:
        resp = TestClient(app).post(f"/api/sync/{GUILD_ID}", headers=HEADERS)
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 502
    assert resp.json() == {"detail": "Sync failed"}

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from telephony.errors import PlatformRequestError

SESSION_EVENT = {
    "uuid": "4f7d2c",
    "event": "/restapi/v1.0/account/9/extension/101/telephony/sessions",
    "body": {
        "telephonySessionId": "s1",
        "eventTime": "2024-01-01T00:00:00Z",
        "parties": [{"id": "p1", "extensionId": "101", "status": {"code": "Proceeding"}}],
    },
}


@pytest.fixture()
def api_client(app, registry, platform):
    import api.dependencies as deps

    app.dependency_overrides[deps.get_registry] = lambda: registry

    with TestClient(app) as test_client:
        yield test_client, registry, platform

    app.dependency_overrides.clear()


def test_validation_token_is_echoed(api_client):
    client, registry, _ = api_client

    resp = client.post("/api/telephony/notifications", headers={"Validation-Token": "abc-123"})

    assert resp.status_code == 200
    assert resp.headers["Validation-Token"] == "abc-123"
    assert resp.json() == {"status": "validated"}
    assert registry.sessions == []


def test_notification_is_ingested(api_client):
    client, registry, _ = api_client

    resp = client.post("/api/telephony/notifications", json=SESSION_EVENT)

    assert resp.status_code == 200
    assert resp.json() == {"status": "accepted"}
    assert "s1" in registry.sessions_map


def test_unrelated_notification_is_accepted_and_ignored(api_client):
    client, registry, _ = api_client

    resp = client.post(
        "/api/telephony/notifications",
        json={"event": "/restapi/v1.0/account/~/extension/~/message-store", "body": {}},
    )

    assert resp.status_code == 200
    assert registry.sessions == []


def test_non_json_notification_is_rejected(api_client):
    client, _, _ = api_client

    resp = client.post(
        "/api/telephony/notifications",
        content=b"not json",
        headers={"Content-Type": "application/json"},
    )

    assert resp.status_code == 400


def test_sessions_endpoints(api_client):
    client, _, _ = api_client
    client.post("/api/telephony/notifications", json=SESSION_EVENT)

    listing = client.get("/api/telephony/sessions")
    single = client.get("/api/telephony/sessions/s1")
    missing = client.get("/api/telephony/sessions/nope")

    assert [s["id"] for s in listing.json()] == ["s1"]
    assert single.json()["parties"][0]["status"]["code"] == "Proceeding"
    assert single.json()["extensionId"] == "101"
    assert missing.status_code == 404


def test_status_reports_registry_state(api_client):
    client, _, _ = api_client
    client.post("/api/telephony/notifications", json=SESSION_EVENT)

    resp = client.get("/api/telephony/status")

    assert resp.json() == {
        "ready": False,
        "accountId": "9",
        "extensionId": "101",
        "sessionCount": 1,
        "deviceCount": 0,
    }


def test_call_out_creates_session(api_client):
    client, registry, platform = api_client
    platform.responses["/account/~/telephony/call-out"] = {
        "session": {"id": "s5", "parties": [{"id": "p1", "extensionId": "101", "status": {"code": "Setup"}}]}
    }

    resp = client.post("/api/telephony/call-out", json={"deviceId": "d1", "phoneNumber": "+15550100"})

    assert resp.status_code == 200
    assert resp.json()["id"] == "s5"
    assert "s5" in registry.sessions_map


def test_call_out_maps_errors(api_client):
    client, _, platform = api_client

    invalid = client.post("/api/telephony/call-out", json={"deviceId": "d1"})
    platform.responses["/account/~/telephony/call-out"] = PlatformRequestError()
    upstream = client.post("/api/telephony/call-out", json={"deviceId": "d1", "extensionNumber": "202"})

    assert invalid.status_code == 422
    assert upstream.status_code == 502
    assert upstream.json()["detail"] == PlatformRequestError.default_detail


def test_conference_endpoint(api_client):
    client, _, platform = api_client
    platform.responses["/account/~/telephony/conference"] = {"session": {"id": "conf-1"}}

    resp = client.post("/api/telephony/conference")

    assert resp.status_code == 200
    assert resp.json()["parties"] == []


def test_devices_refresh(api_client):
    client, _, platform = api_client
    platform.responses["/account/~/extension/~/device"] = {"records": [{"id": 7, "name": "Softphone"}]}

    before = client.get("/api/telephony/devices")
    refreshed = client.post("/api/telephony/devices/refresh")

    assert before.json() == []
    assert [d["id"] for d in refreshed.json()] == ["7"]


def test_unconfigured_registry_returns_503(app):
    with TestClient(app) as client:
        resp = client.get("/api/telephony/status")

    assert resp.status_code == 503

from __future__ import annotations

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select

from homely.config import settings
from homely.db import SessionLocal
from homely.main import create_app
from homely.models import AuditEvent


def _h(email: str) -> dict[str, str]:
    return {"X-User-Email": email}


TENANT = _h("tom@t.local")
LANDLORD = _h("lena@t.local")
LANDLORD2 = _h("larry@t.local")
WORKMAN = _h("pat@t.local")
WORKMAN2 = _h("eli@t.local")


@pytest.fixture
def client(world):
    return TestClient(create_app())


def _create(client, world, **over):
    body = {
        "unit_id": world.unit_id,
        "title": "Broken heater",
        "description": "No heat in the bedroom since last night.",
        "priority": "high",
        "category": "hvac",
    }
    body.update(over)
    r = client.post("/api/maintenance-requests", json=body, headers=TENANT)
    assert r.status_code == 201, r.text
    return r.json()


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
    assert r.headers.get("X-Request-ID")


def test_unauthenticated_is_401(client):
    r = client.get("/api/maintenance-requests")
    assert r.status_code == 401
    assert r.json()["error"] == "unauthorized"

    r = client.get("/api/maintenance-requests", headers=_h("nobody@t.local"))
    assert r.status_code == 401

    r = client.get("/api/maintenance-requests", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


def test_bearer_token_resolves_user(client, world):
    token = jwt.encode({"sub": str(world.tenant.user_id)}, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    created = _create(client, world)
    r = client.get("/api/maintenance-requests", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert [x["id"] for x in r.json()] == [created["id"]]


def test_end_to_end_over_http(client, world):
    req = _create(client, world)
    rid = req["id"]
    assert req["status"] == "pending"

    r = client.put(f"/api/maintenance-requests/{rid}/approve", json={"status": "approved"}, headers=LANDLORD2)
    assert r.status_code == 403
    assert r.json()["error"] == "forbidden"

    r = client.put(
        f"/api/maintenance-requests/{rid}/approve",
        json={"status": "approved", "comments": "ok"},
        headers=LANDLORD,
    )
    assert r.status_code == 200
    assert r.json()["status"] == "approved"

    r = client.get("/api/workmen", headers=LANDLORD)
    assert r.status_code == 200
    workman_id = next(u["id"] for u in r.json() if u["email"] == "pat@t.local")

    r = client.put(
        f"/api/maintenance-requests/{rid}/assign",
        json={
            "workman_id": workman_id,
            "work_description": "Replace igniter",
            "estimated_hours": 2,
            "materials_required": "igniter, screws",
        },
        headers=LANDLORD,
    )
    assert r.status_code == 200, r.text
    wo = r.json()
    assert wo["materials_required"] == ["igniter", "screws"]

    r = client.get("/api/work-orders", headers=WORKMAN)
    assert [w["id"] for w in r.json()] == [wo["id"]]

    r = client.put(f"/api/work-orders/{wo['id']}/status", json={"status": "in_progress"}, headers=WORKMAN2)
    assert r.status_code == 403

    r = client.put(f"/api/work-orders/{wo['id']}/status", json={"status": "in_progress"}, headers=WORKMAN)
    assert r.status_code == 200
    r = client.put(
        f"/api/work-orders/{wo['id']}/status",
        json={"status": "completed", "actual_hours": 2.5},
        headers=WORKMAN,
    )
    assert r.status_code == 200
    assert r.json()["actual_hours"] == 2.5

    r = client.put(f"/api/work-orders/{wo['id']}/status", json={"status": "completed"}, headers=WORKMAN)
    assert r.status_code == 400
    assert r.json()["error"] == "invalid_transition"

    r = client.get(f"/api/maintenance-requests/{rid}", headers=TENANT)
    assert r.status_code == 200
    detail = r.json()
    assert detail["status"] == "completed"
    assert detail["resolved_at"] is not None
    assert detail["work_order"]["status"] == "completed"
    assert [a["decision"] for a in detail["approvals"]] == ["approved"]

    r = client.post(f"/api/maintenance-requests/{rid}/rate", json={"rating": 5, "feedback": "great job"}, headers=TENANT)
    assert r.status_code == 200
    assert r.json()["tenant_rating"] == 5

    r = client.post(f"/api/maintenance-requests/{rid}/rate", json={"rating": 5}, headers=TENANT)
    assert r.status_code == 400
    assert r.json()["error"] == "invalid_state"


def test_error_mapping(client, world):
    r = client.get("/api/maintenance-requests/999", headers=TENANT)
    assert r.status_code == 404
    body = r.json()
    assert body["detail"] == "maintenance request not found"
    assert body["error"] == "not_found"
    assert body["request_id"] == r.headers["X-Request-ID"]

    r = client.post(
        "/api/maintenance-requests",
        json={"unit_id": world.unit_id, "title": "x", "description": "short"},
        headers=TENANT,
    )
    assert r.status_code == 400
    assert r.json()["error"] == "invalid_argument"

    r = client.post("/api/maintenance-requests", json={"title": "missing unit"}, headers=TENANT)
    assert r.status_code == 400
    assert r.json()["error"] == "invalid_argument"

    req = _create(client, world)
    r = client.put(
        f"/api/maintenance-requests/{req['id']}/status", json={"status": "completed"}, headers=LANDLORD
    )
    assert r.status_code == 400
    assert r.json()["error"] == "invalid_transition"

    r = client.put(
        f"/api/maintenance-requests/{req['id']}/assign",
        json={"workman_id": world.workman.user_id, "work_description": "x", "estimated_hours": 1},
        headers=LANDLORD,
    )
    assert r.status_code == 400
    assert r.json()["error"] == "invalid_state"


def test_stats_endpoint_matches_list(client, world):
    _create(client, world)
    _create(client, world, priority="low")
    stats = client.get("/api/maintenance-requests/stats", headers=LANDLORD).json()
    listed = client.get("/api/maintenance-requests", headers=LANDLORD).json()
    assert stats["total"] == len(listed) == 2
    assert stats["pending"] == 2
    assert stats["by_priority"]["low"] == 1

    assert client.get("/api/maintenance-requests/stats", headers=LANDLORD2).json()["total"] == 0


def test_malformed_input_is_invalid_argument(client, world):
    r = client.get("/api/maintenance-requests/abc", headers=TENANT)
    assert r.status_code == 400
    assert r.json()["error"] == "invalid_argument"
    assert r.json()["detail"].startswith("request_id:")

    r = client.put("/api/work-orders/abc/status", json={"status": "in_progress"}, headers=WORKMAN)
    assert r.status_code == 400
    assert r.json()["error"] == "invalid_argument"

    req = _create(client, world)
    client.put(f"/api/maintenance-requests/{req['id']}/approve", json={"status": "approved"}, headers=LANDLORD)

    r = client.put(
        f"/api/maintenance-requests/{req['id']}/assign",
        json={"workman_id": "x", "work_description": "fix", "estimated_hours": 1},
        headers=LANDLORD,
    )
    assert r.status_code == 400
    assert r.json()["error"] == "invalid_argument"
    assert r.json()["detail"].startswith("workman_id:")

    # Python's json module reads the bare NaN literal.
    r = client.put(
        f"/api/maintenance-requests/{req['id']}/assign",
        content=f'{{"workman_id": {world.workman.user_id}, "work_description": "fix", "estimated_hours": NaN}}',
        headers={**LANDLORD, "Content-Type": "application/json"},
    )
    assert r.status_code == 400
    assert r.json()["error"] == "invalid_argument"

    r = client.get(f"/api/maintenance-requests/{req['id']}", headers=TENANT)
    assert r.json()["status"] == "approved"


def test_request_id_reaches_error_body_and_audit(client, world):
    r = client.get("/api/maintenance-requests/999", headers={**TENANT, "X-Request-ID": "req-abc-123"})
    assert r.headers["X-Request-ID"] == "req-abc-123"
    assert r.json()["request_id"] == "req-abc-123"

    r = client.post(
        "/api/maintenance-requests",
        json={
            "unit_id": world.unit_id,
            "title": "Broken heater",
            "description": "No heat in the bedroom since last night.",
        },
        headers={**TENANT, "X-Request-ID": "create-42"},
    )
    assert r.status_code == 201
    rid = r.json()["id"]

    with SessionLocal() as s:
        events = s.scalars(select(AuditEvent).where(AuditEvent.entity_id == str(rid))).all()
    assert [(e.action, e.request_id) for e in events] == [("maintenance_request.create", "create-42")]

    r = client.get("/api/health", headers={"X-Request-ID": "bad id with spaces"})
    minted = r.headers["X-Request-ID"]
    assert minted != "bad id with spaces"
    assert len(minted) == 32

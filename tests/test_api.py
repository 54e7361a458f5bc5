import asyncio

import pytest
from fastapi.testclient import TestClient

from hospidesk.api.main import create_app
from hospidesk.scripts.bootstrap_admin import ensure_admin


@pytest.fixture
def client(backend):
    asyncio.run(ensure_admin(backend, email="ti@hospital.cl", password="admin123", name="Soporte TI", sector="Informática"))
    return TestClient(create_app(backend=backend))


def _register(client, email, name="Ana Pérez", sector="Urgencias", **extra):
    res = client.post("/api/auth/register", json={
        "email": email,
        "password": "secreto1",
        "name": name,
        "sector": sector,
        **extra,
    })
    assert res.status_code == 201, res.text
    return res.json()


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


def _login(client, email, password):
    res = client.post("/api/auth/login", json={"email": email, "password": password})
    assert res.status_code == 200, res.text
    return _auth(res.json()["access_token"])


def _ticket(client, headers, **overrides):
    body = {"title": "PC no enciende", "description": "Sin imagen", "category": "hardware", "location": "Box 5"}
    body.update(overrides)
    res = client.post("/api/tickets", json=body, headers=headers)
    assert res.status_code == 201, res.text
    return res.json()


def test_health(client):
    res = client.get("/api/health")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"
    assert "X-Request-ID" in res.headers


def test_register_always_yields_patient(client):
    body = _register(client, "ana@hospital.cl", role="admin")
    assert body["token_type"] == "bearer"
    assert body["user"]["role"] == "patient"

    me = client.get("/api/auth/me", headers=_auth(body["access_token"]))
    assert me.status_code == 200
    assert me.json()["name"] == "Ana Pérez"


def test_auth_failures(client):
    _register(client, "ana@hospital.cl")
    res = client.post("/api/auth/login", json={"email": "ana@hospital.cl", "password": "mala"})
    assert res.status_code == 401
    assert res.json()["code"] == "invalid-credential"

    res = client.post("/api/auth/register", json={
        "email": "ana@hospital.cl", "password": "secreto1", "name": "Ana", "sector": "X",
    })
    assert res.status_code == 409

    assert client.get("/api/tickets").status_code == 401
    assert client.get("/api/tickets", headers=_auth("garbage")).status_code == 401


def test_ticket_rules_hold_over_http(client):
    ana = _auth(_register(client, "ana@hospital.cl")["access_token"])
    luis = _auth(_register(client, "luis@hospital.cl", name="Luis Soto")["access_token"])
    admin = _login(client, "ti@hospital.cl", "admin123")

    ticket = _ticket(client, ana, status="resolved", priority="high")
    assert (ticket["status"], ticket["priority"]) == ("open", "medium")
    tid = ticket["id"]

    # patient status change
    res = client.patch(f"/api/tickets/{tid}", json={"status": "resolved"}, headers=ana)
    assert res.status_code == 403
    assert client.get(f"/api/tickets/{tid}", headers=ana).json()["status"] == "open"

    # foreign ticket
    assert client.get(f"/api/tickets/{tid}", headers=luis).status_code == 403
    assert client.get("/api/tickets", headers=luis).json() == []
    assert client.get("/api/tickets/missing", headers=ana).status_code == 404

    res = client.patch(f"/api/tickets/{tid}", json={"status": "in_progress", "priority": "high"}, headers=admin)
    assert res.status_code == 200
    assert (res.json()["status"], res.json()["priority"]) == ("in_progress", "high")

    res = client.get("/api/tickets", params={"status": "in_progress"}, headers=ana)
    assert [t["id"] for t in res.json()] == [tid]
    assert client.get("/api/tickets", params={"status": "open"}, headers=ana).json() == []

    res = client.patch(f"/api/tickets/{tid}", json={"status": "resolved"}, headers=admin)
    assert res.json()["resolved_at"] is not None
    res = client.patch(f"/api/tickets/{tid}", json={"status": "open"}, headers=admin)
    assert res.status_code == 409


def test_rejected_patch_changes_nothing(client):
    ana = _auth(_register(client, "ana@hospital.cl")["access_token"])
    admin = _login(client, "ti@hospital.cl", "admin123")
    tid = _ticket(client, ana)["id"]

    res = client.patch(f"/api/tickets/{tid}", json={"priority": "high", "status": "closed"}, headers=admin)
    assert res.status_code == 409
    stored = client.get(f"/api/tickets/{tid}", headers=admin).json()
    assert (stored["status"], stored["priority"]) == ("open", "medium")


def test_comments_over_http(client):
    ana = _auth(_register(client, "ana@hospital.cl")["access_token"])
    luis = _auth(_register(client, "luis@hospital.cl", name="Luis Soto")["access_token"])
    admin = _login(client, "ti@hospital.cl", "admin123")
    tid = _ticket(client, ana)["id"]

    res = client.post(f"/api/tickets/{tid}/comments", json={"content": "Revisando"}, headers=admin)
    assert res.status_code == 201
    client.post(f"/api/tickets/{tid}/comments", json={"content": "Gracias"}, headers=ana)

    res = client.get(f"/api/tickets/{tid}/comments", headers=ana)
    assert [c["content"] for c in res.json()] == ["Revisando", "Gracias"]
    assert client.post(f"/api/tickets/{tid}/comments", json={"content": "hola"}, headers=luis).status_code == 403
    assert client.post(f"/api/tickets/{tid}/comments", json={"content": ""}, headers=ana).status_code == 422


def test_admin_only_endpoints(client):
    ana = _auth(_register(client, "ana@hospital.cl")["access_token"])
    admin = _login(client, "ti@hospital.cl", "admin123")
    tid = _ticket(client, ana)["id"]

    assert client.get("/api/admin/report", headers=ana).status_code == 403
    report = client.get("/api/admin/report", headers=admin).json()
    assert report["total"] == 1
    assert report["by_status"]["open"] == 1
    assert report["by_category"]["hardware"] == 1

    assert client.get("/api/users", headers=ana).status_code == 403
    users = client.get("/api/users", headers=admin).json()
    assert users["total"] == 2

    assert client.delete(f"/api/tickets/{tid}", headers=ana).status_code == 403
    assert client.delete(f"/api/tickets/{tid}", headers=admin).status_code == 204
    assert client.get(f"/api/tickets/{tid}", headers=admin).status_code == 404


def test_profile_update_over_http(client):
    ana = _auth(_register(client, "ana@hospital.cl")["access_token"])
    res = client.patch("/api/users/me", json={"name": "Ana P.", "sector": "Farmacia"}, headers=ana)
    assert res.status_code == 200
    assert res.json()["sector"] == "Farmacia"
    assert res.json()["role"] == "patient"
    assert client.patch("/api/users/me", json={"name": "", "sector": "x"}, headers=ana).status_code == 422

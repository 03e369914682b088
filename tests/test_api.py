from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from dispatch.api import batch_routes
from dispatch.auth.dependencies import get_current_admin_user, get_current_user
from dispatch.db import get_db
from dispatch.main import app
from dispatch.models.user import User
from dispatch.utils.timezones import local_now

from conftest import ADMIN_ID, TENANT_ID


PICKUP = "2030-01-15"  # far enough ahead that the cutoff never applies


@pytest.fixture
def api_client(session_factory) -> TestClient:
    admin = User(id=ADMIN_ID, name="Admin", role="super_admin", is_active=True, tenant_id=TENANT_ID)

    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_current_user] = lambda: admin
    app.dependency_overrides[get_current_admin_user] = lambda: admin
    app.dependency_overrides[batch_routes.get_session_factory] = lambda: session_factory

    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def api_zones(api_client: TestClient):
    ids = {}
    for name, direction in (("A", "north"), ("B", "south"), ("C", "east"), ("D", "west")):
        response = api_client.post("/zones/", json={"name": name, "direction": direction, "base_address": "HQ"})
        assert response.status_code == 200
        ids[direction] = response.json()["id"]
    return ids


def _order(client: TestClient, state: str) -> dict:
    response = client.post(
        "/orders/",
        json={
            "delivery_line1": "1 Main St",
            "delivery_city": "Springfield",
            "delivery_state": state,
            "delivery_zip": "62701",
            "pickup_date": PICKUP,
        },
    )
    assert response.status_code == 200, response.text
    return response.json()


def test_create_order_classifies_and_batches(api_client: TestClient, api_zones) -> None:
    order = _order(api_client, "il")

    assert order["zone_id"] == api_zones["north"]
    assert order["batch_id"]

    batch = api_client.get(f"/batches/{order['batch_id']}").json()
    assert batch["batch_date"] == PICKUP
    assert batch["order_count"] == 1


def test_duplicate_zone_name_conflicts(api_client: TestClient, api_zones) -> None:
    response = api_client.post("/zones/", json={"name": "A", "direction": "west", "base_address": "HQ"})
    assert response.status_code == 409


def test_optimize_and_run_routes_to_completion(api_client: TestClient, api_zones) -> None:
    batch_id = _order(api_client, "IL")["batch_id"]
    _order(api_client, "IL")
    _order(api_client, "TX")

    response = api_client.post(f"/batches/{batch_id}/optimize")
    assert response.status_code == 200
    routes = response.json()
    assert sorted(len(r["route_data"]) for r in routes) == [1, 2]

    listed = api_client.get(f"/batches/{batch_id}/routes").json()
    assert {r["id"] for r in listed} == {r["id"] for r in routes}

    driver = api_client.post("/drivers/", json={"name": "Dana"}).json()
    assigned = api_client.post(f"/drivers/{driver['id']}/assign-zone", json={"zone_id": api_zones["north"]})
    assert assigned.json()["assigned_zone_id"] == api_zones["north"]
    zone_drivers = api_client.get(f"/zones/{api_zones['north']}/drivers").json()
    assert [d["id"] for d in zone_drivers] == [driver["id"]]

    for route in routes:
        assert api_client.post(f"/routes/{route['id']}/assign", json={"driver_id": driver["id"]}).status_code == 200
        assert api_client.post(f"/routes/{route['id']}/start").json()["status"] == "in_progress"
        assert api_client.post(f"/routes/{route['id']}/complete").json()["status"] == "completed"

    assert api_client.get(f"/batches/{batch_id}").json()["status"] == "completed"
    assert len(api_client.get(f"/drivers/{driver['id']}/routes").json()) == 2

    # completed batches cannot be re-optimized
    assert api_client.post(f"/batches/{batch_id}/optimize").status_code == 409


def test_optimize_by_date(api_client: TestClient, api_zones) -> None:
    _order(api_client, "NY")

    response = api_client.post(f"/batches/by-date/{PICKUP}/optimize")
    assert response.status_code == 200
    assert len(response.json()) == 1

    assert api_client.post("/batches/by-date/2031-01-01/optimize").status_code == 404


def test_background_optimization_reports_job(api_client: TestClient, api_zones) -> None:
    batch_id = _order(api_client, "CA")["batch_id"]

    response = api_client.post(f"/batches/{batch_id}/optimize/background")
    assert response.status_code == 202
    job_id = response.json()["id"]

    # TestClient runs background tasks before returning
    job = api_client.get(f"/batches/jobs/{job_id}").json()
    assert job["status"] == "succeeded"
    assert len(job["route_ids"]) == 1

    assert api_client.get("/batches/jobs/unknown").status_code == 404


def test_create_batch_is_idempotent(api_client: TestClient) -> None:
    first = api_client.post("/batches/", json={"batch_date": "2030-02-01", "cutoff_time": "12:00:00"})
    second = api_client.post("/batches/", json={"batch_date": "2030-02-01"})

    assert first.status_code == 200
    assert first.json()["id"] == second.json()["id"]
    assert second.json()["cutoff_time"] == "12:00:00"
    assert len(api_client.get("/batches/").json()) == 1


def test_void_order_twice_conflicts(api_client: TestClient, api_zones) -> None:
    order = _order(api_client, "IL")

    voided = api_client.post(f"/orders/{order['id']}/void", json={"void_reason": "duplicate"})
    assert voided.status_code == 200
    assert voided.json()["batch_id"] is None

    again = api_client.post(f"/orders/{order['id']}/void", json={"void_reason": "duplicate"})
    assert again.status_code == 409


def test_unknown_ids_are_not_found(api_client: TestClient) -> None:
    assert api_client.get("/batches/missing").status_code == 404
    assert api_client.post("/batches/missing/optimize").status_code == 404
    assert api_client.post("/routes/missing/start").status_code == 404
    assert api_client.get("/orders/missing").status_code == 404


def test_deactivated_zone_rejects_driver_assignment(api_client: TestClient, api_zones) -> None:
    patched = api_client.patch(f"/zones/{api_zones['east']}", json={"is_active": False})
    assert patched.json()["is_active"] is False

    driver = api_client.post("/drivers/", json={"name": "Dana"}).json()
    response = api_client.post(f"/drivers/{driver['id']}/assign-zone", json={"zone_id": api_zones["east"]})
    assert response.status_code == 400


def test_admin_routes_require_login() -> None:
    client = TestClient(app)
    assert client.get("/batches/").status_code == 401


def test_current_batch_respects_todays_cutoff(api_client: TestClient) -> None:
    today = local_now().date()
    tomorrow = today + timedelta(days=1)

    # a midnight cutoff has always passed, so same-day orders go to tomorrow
    api_client.post("/batches/", json={"batch_date": today.isoformat(), "cutoff_time": "00:00:00"})
    assert api_client.get("/batches/current").status_code == 404

    created = api_client.post("/batches/", json={"batch_date": tomorrow.isoformat()}).json()
    current = api_client.get("/batches/current")
    assert current.status_code == 200
    assert current.json()["id"] == created["id"]


def test_driver_status_and_availability(api_client: TestClient, api_zones) -> None:
    dana = api_client.post("/drivers/", json={"name": "Dana"}).json()
    eli = api_client.post("/drivers/", json={"name": "Eli"}).json()
    assert api_client.get("/drivers/available").json() == []

    updated = api_client.patch(f"/drivers/{dana['id']}/status", json={"status": "online"})
    assert updated.status_code == 200
    assert updated.json()["status"] == "online"
    api_client.patch(f"/drivers/{eli['id']}/status", json={"status": "online", "is_available": False})

    available = api_client.get("/drivers/available").json()
    assert [d["id"] for d in available] == [dana["id"]]

    api_client.post(f"/drivers/{dana['id']}/assign-zone", json={"zone_id": api_zones["north"]})
    assert len(api_client.get("/drivers/available", params={"zone_id": api_zones["north"]}).json()) == 1
    assert api_client.get("/drivers/available", params={"zone_id": api_zones["south"]}).json() == []


def test_driver_status_validation(api_client: TestClient) -> None:
    dana = api_client.post("/drivers/", json={"name": "Dana"}).json()

    assert api_client.patch(f"/drivers/{dana['id']}/status", json={"status": "asleep"}).status_code == 422
    assert api_client.patch("/drivers/missing/status", json={"status": "online"}).status_code == 404


def test_activity_feed(api_client: TestClient, api_zones) -> None:
    order = _order(api_client, "IL")
    dana = api_client.post("/drivers/", json={"name": "Dana"}).json()
    api_client.patch(f"/drivers/{dana['id']}/status", json={"status": "online"})
    api_client.post(f"/orders/{order['id']}/void", json={"void_reason": "duplicate"})

    activity = api_client.get("/activity/").json()
    actions = {entry["action"] for entry in activity}
    assert {"BATCH_CREATED", "ORDER_CREATED", "DRIVER_STATUS_UPDATED", "ORDER_VOIDED"} <= actions
    assert all(entry["actor_id"] == ADMIN_ID for entry in activity)

    assert len(api_client.get("/activity/", params={"limit": 2}).json()) == 2
    assert api_client.get("/activity/", params={"limit": 0}).status_code == 422


def test_clients_cannot_drive_routes(api_client: TestClient, api_zones) -> None:
    batch_id = _order(api_client, "IL")["batch_id"]
    route = api_client.post(f"/batches/{batch_id}/optimize").json()[0]
    driver = api_client.post("/drivers/", json={"name": "Dana"}).json()
    api_client.post(f"/routes/{route['id']}/assign", json={"driver_id": driver["id"]})

    client_user = User(id="client-1", name="Client", role="client", is_active=True, tenant_id=TENANT_ID)
    app.dependency_overrides[get_current_user] = lambda: client_user

    assert api_client.post(f"/routes/{route['id']}/start").status_code == 403
    assert api_client.post(f"/routes/{route['id']}/complete").status_code == 403
    assert api_client.patch(f"/drivers/{driver['id']}/status", json={"status": "online"}).status_code == 403

    driver_user = User(id="driver-1", name="Dana", role="driver", is_active=True, tenant_id=TENANT_ID)
    app.dependency_overrides[get_current_user] = lambda: driver_user

    assert api_client.post(f"/routes/{route['id']}/start").json()["status"] == "in_progress"
    assert api_client.post(f"/routes/{route['id']}/complete").json()["status"] == "completed"

"""
HTTP tests for the v1 API.

Tests cover:
- Worker, employment and shift flows end to end
- Domain failures rendered as {"error": {...}} with the matching status
- Event tree, hours and punch endpoints
- Location hierarchy endpoints
"""

import pytest
from httpx import ASGITransport, AsyncClient

from app.core.database import get_session
from app.main import app


@pytest.fixture
async def client(session_factory):
    async def override_get_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def _worker(client, name="Dana Okafor", email="dana@example.com"):
    response = await client.post("/api/v1/workers/", json={"name": name, "email": email})
    assert response.status_code == 201
    return response.json()


async def _employment(client, worker_id):
    response = await client.post(
        "/api/v1/employments/",
        json={
            "worker_id": worker_id,
            "start_time": "2024-01-01T00:00:00Z",
            "end_time": "2024-12-31T00:00:00Z",
            "status": "active",
            "role": "Loader",
        },
    )
    assert response.status_code == 201
    return response.json()


class TestWorkersApi:
    @pytest.mark.asyncio
    async def test_create_and_fetch(self, client):
        worker = await _worker(client)
        assert worker["entity_type"] == "person"

        response = await client.get(f"/api/v1/workers/{worker['id']}")
        assert response.status_code == 200
        assert response.json()["properties"]["email"] == "dana@example.com"

    @pytest.mark.asyncio
    async def test_invalid_email(self, client):
        response = await client.post("/api/v1/workers/", json={"name": "X", "email": "nope"})
        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_FAILED"
        assert "email" in error["details"]

    @pytest.mark.asyncio
    async def test_unknown_worker(self, client):
        response = await client.get("/api/v1/workers/6f1c2a4e-8d2b-4b51-9a0e-1f2d3c4b5a69")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"


class TestEmploymentAndShiftApi:
    @pytest.mark.asyncio
    async def test_overlapping_employment_is_409(self, client):
        worker = await _worker(client)
        await _employment(client, worker["id"])

        response = await client.post(
            "/api/v1/employments/",
            json={"worker_id": worker["id"], "start_time": "2024-06-01T00:00:00Z", "status": "active"},
        )
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "OVERLAP"

        listed = await client.get(f"/api/v1/workers/{worker['id']}/employments")
        assert len(listed.json()) == 1

    @pytest.mark.asyncio
    async def test_shift_with_generated_periods(self, client):
        worker = await _worker(client)
        employment = await _employment(client, worker["id"])

        response = await client.post(
            "/api/v1/shifts/",
            json={
                "employment_id": employment["id"],
                "worker_id": worker["id"],
                "start_time": "2024-03-04T09:00:00Z",
                "end_time": "2024-03-04T17:00:00Z",
                "location": "Warehouse A",
                "status": "active",
                "auto_generate_periods": True,
            },
        )
        assert response.status_code == 201
        tree = response.json()
        assert tree["event"]["event_type"] == "shift"
        assert tree["event"]["parent_id"] == employment["id"]
        assert [c["event"]["event_type"] for c in tree["children"]] == ["work_period", "break", "work_period"]

        hours = await client.get(f"/api/v1/shifts/{tree['event']['id']}/hours")
        assert hours.json()["net_hours"] == 7.5
        assert hours.json()["unpaid_break_hours"] == 0.5

    @pytest.mark.asyncio
    async def test_shift_outside_employment_is_422(self, client):
        worker = await _worker(client)
        employment = await _employment(client, worker["id"])

        response = await client.post(
            "/api/v1/shifts/",
            json={
                "employment_id": employment["id"],
                "worker_id": worker["id"],
                "start_time": "2025-02-01T09:00:00Z",
                "end_time": "2025-02-01T17:00:00Z",
                "location": "Warehouse A",
            },
        )
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "CONTAINMENT"

        shifts = await client.get(f"/api/v1/workers/{worker['id']}/shifts")
        assert shifts.json() == []


class TestTimekeepingApi:
    @pytest.mark.asyncio
    async def test_punches_to_payroll(self, client):
        worker = await _worker(client)
        punch_in = await client.post(
            f"/api/v1/workers/{worker['id']}/clock-in", json={"timestamp": "2024-03-04T09:00:00Z"}
        )
        punch_out = await client.post(
            f"/api/v1/workers/{worker['id']}/clock-out", json={"timestamp": "2024-03-04T18:00:00Z"}
        )
        assert punch_in.status_code == 201
        assert punch_in.json()["properties"]["clock_type"] == "in"

        period = await client.post(
            "/api/v1/timekeeping/clock-periods",
            json={
                "worker_id": worker["id"],
                "clock_in_event_id": punch_in.json()["id"],
                "clock_out_event_id": punch_out.json()["id"],
            },
        )
        assert period.status_code == 201
        period_id = period.json()["id"]

        piece = await client.post(
            f"/api/v1/timekeeping/clock-periods/{period_id}/payroll-pieces",
            json={"start_time": "2024-03-04T17:00:00Z", "end_time": "2024-03-04T18:00:00Z", "rate_type": "overtime"},
        )
        assert piece.status_code == 201

        totals = await client.get(f"/api/v1/timekeeping/clock-periods/{period_id}/hours")
        assert totals.json()["hours"] == {"overtime": 1.0}


class TestEventsApi:
    @pytest.mark.asyncio
    async def test_event_types(self, client):
        response = await client.get("/api/v1/events/types")
        names = {t["name"] for t in response.json()}
        assert {"employment", "shift", "clock_period", "payroll_piece"} <= names

    @pytest.mark.asyncio
    async def test_event_detail_with_children(self, client):
        worker = await _worker(client)
        employment = await _employment(client, worker["id"])
        await client.post(
            "/api/v1/shifts/",
            json={
                "employment_id": employment["id"],
                "worker_id": worker["id"],
                "start_time": "2024-03-04T09:00:00Z",
                "end_time": "2024-03-04T12:00:00Z",
                "location": "Warehouse A",
            },
        )

        response = await client.get(
            f"/api/v1/events/{employment['id']}", params={"include_children": "true"}
        )
        body = response.json()
        assert body["event"]["id"] == employment["id"]
        assert [c["event_type"] for c in body["children"]] == ["shift"]

        filtered = await client.get("/api/v1/events/", params={"type": "shift"})
        assert len(filtered.json()) == 1


class TestLocationsApi:
    @pytest.mark.asyncio
    async def test_parent_link(self, client):
        region = (await client.post("/api/v1/locations/", json={"name": "Region", "address": "Ring 1"})).json()
        depot = (await client.post("/api/v1/locations/", json={"name": "Depot", "address": "Kade 4"})).json()

        response = await client.put(
            f"/api/v1/locations/{depot['id']}/parent",
            json={"parent_id": region["id"], "start_time": "2024-01-01T00:00:00Z"},
        )
        assert response.status_code == 200

        parent = await client.get(f"/api/v1/locations/{depot['id']}/parent")
        assert parent.json() == {"parent_id": region["id"]}

        cycle = await client.put(f"/api/v1/locations/{region['id']}/parent", json={"parent_id": depot["id"]})
        assert cycle.status_code == 422

"""
Tests for API route endpoints.

Tests: health, intake, listing/search, the two-phase status change over HTTP,
cancellation, notes, audit trail, archive views, queue counts, storage
outages, error envelopes.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import pytest
import pytest_asyncio

from datetime import timedelta

from tests.conftest import FIXED_NOW, drop_order_tables, make_order

ADMIN = {"X-User-Role": "Admin"}


@pytest_asyncio.fixture
async def finished(session_factory):
    """Two completed orders and one cancelled order."""
    async with session_factory() as session:
        session.add(make_order(transaction_id="19102026-ORD-2001", current_status="Complete",
                               status_started_at=FIXED_NOW))
        session.add(make_order(transaction_id="19102026-ORD-2002", current_status="Complete",
                               status_started_at=FIXED_NOW + timedelta(hours=2)))
        session.add(make_order(transaction_id="19102026-ORD-2003", current_status="Cancelled",
                               note="Customer changed their mind"))
        await session.commit()


@pytest_asyncio.fixture
async def seeded(session_factory):
    """One employee and a few orders at different stages."""
    from db_models import Employee
    async with session_factory() as session:
        session.add(Employee(code="1234", employee_name="Anita Sharma"))
        session.add(make_order(transaction_id="19102026-ORD-1001", category="New Mix",
                               current_status="Spraying", colour_code="Pending"))
        session.add(make_order(transaction_id="19102026-ORD-1002", category="Detailing",
                               current_status="Mixing", assigned_employee="Suresh"))
        session.add(make_order(transaction_id="19102026-PO-1003", category="Mix More",
                               current_status="Ready", colour_code="NH-731P",
                               customer_name="Priya Das", client_contact="9988776655"))
        session.add(make_order(transaction_id="19102026-ORD-1004", current_status="Waiting"))
        await session.commit()


def intake_body(**overrides):
    body = {
        "orderType": "Paid",
        "poType": "Nexa",
        "transSuffix": "4821",
        "customerName": "Meera Nair",
        "clientContact": "9123456780",
        "orders": [
            {"category": "Mix More", "paintType": "Creta rear bumper",
             "colourCode": "NH-731P", "paintQuantity": "1L"},
        ],
    }
    body.update(overrides)
    return body


class TestHealthEndpoint:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_health_returns_200(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database_connected"] is True
        assert "queue_monitor" in data


class TestIntakeEndpoints:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_create_paid_order(self, client):
        response = await client.post("/api/orders", json=intake_body())
        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        created = body["data"][0]
        assert created["transaction_id"].endswith("-PO-4821")
        assert created["current_status"] == "Waiting"
        assert created["eta_minutes"] == 15
        assert created["eta"] == "15min"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_invalid_contact_envelope(self, client):
        response = await client.post("/api/orders", json=intake_body(clientContact="123"))
        assert response.status_code == 400
        error = response.json()["error"]
        assert response.json()["success"] is False
        assert error["code"] == "validation"
        assert "10-digit" in error["message"]

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_duplicate_paid_id(self, client):
        await client.post("/api/orders", json=intake_body())
        response = await client.post("/api/orders", json=intake_body())
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "conflict"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_missing_fields_rejected(self, client):
        response = await client.post("/api/orders", json={"orderType": "Order"})
        assert response.status_code == 422
        assert response.json()["success"] is False

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_check_id(self, client, seeded):
        taken = await client.get("/api/orders/check-id/19102026-ORD-1001")
        free = await client.get("/api/orders/check-id/19102026-ORD-9999")
        assert taken.json()["data"]["exists"] is True
        assert free.json()["data"]["exists"] is False


class TestListingEndpoints:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_user_does_not_see_ready(self, client, seeded):
        response = await client.get("/api/orders")
        ids = [o["transaction_id"] for o in response.json()["data"]]
        assert "19102026-PO-1003" not in ids
        assert len(ids) == 3

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_admin_sees_ready(self, client, seeded):
        response = await client.get("/api/orders", headers=ADMIN)
        body = response.json()
        assert body["meta"]["total"] == 4
        assert "19102026-PO-1003" in [o["transaction_id"] for o in body["data"]]

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_unknown_role_rejected(self, client, seeded):
        response = await client.get("/api/orders", headers={"X-User-Role": "Owner"})
        assert response.status_code == 400

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_search(self, client, seeded):
        response = await client.get("/api/orders/search", params={"q": "priya"})
        data = response.json()["data"]
        assert [o["transaction_id"] for o in data] == ["19102026-PO-1003"]

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_get_missing_order(self, client):
        response = await client.get("/api/orders/19102026-ORD-0000")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "notfound"


class TestStatusChangeEndpoint:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_needs_input_then_commit(self, client, seeded):
        url = "/api/orders/19102026-ORD-1001/status"

        first = await client.put(url, json={"status": "Ready"})
        assert first.status_code == 202
        data = first.json()["data"]
        assert data["outcome"] == "needs_input"
        assert data["missing"] == ["colour_code", "employee_code"]

        second = await client.put(
            url, json={"status": "Ready", "colourCode": "5W", "employeeCode": "1234"}
        )
        assert second.status_code == 200
        data = second.json()["data"]
        assert data["outcome"] == "committed"
        assert data["order"]["current_status"] == "Ready"
        assert data["order"]["colour_code"] == "5W"
        assert data["order"]["assigned_employee"] == "Anita Sharma"
        assert data["event"]["from_status"] == "Spraying"

        events = await client.get("/api/orders/19102026-ORD-1001/events")
        trail = events.json()["data"]
        assert len(trail) == 1
        assert (trail[0]["from_status"], trail[0]["to_status"]) == ("Spraying", "Ready")

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_detailing_commits_immediately(self, client, seeded):
        response = await client.put(
            "/api/orders/19102026-ORD-1002/status", json={"status": "Spraying"}
        )
        assert response.status_code == 200
        order = response.json()["data"]["order"]
        assert order["current_status"] == "Spraying"
        assert order["assigned_employee"] == "Suresh"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_illegal_transition(self, client, seeded):
        response = await client.put(
            "/api/orders/19102026-ORD-1004/status", json={"status": "Ready"}
        )
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "illegaltransition"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_invalid_employee_code(self, client, seeded):
        response = await client.put(
            "/api/orders/19102026-ORD-1004/status",
            json={"status": "Mixing", "employeeCode": "0000"},
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalidemployeecode"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_revert_requires_admin(self, client, seeded):
        body = {"status": "Spraying", "employeeCode": "1234", "reason": "Orange peel"}
        as_user = await client.put("/api/orders/19102026-PO-1003/status", json=body)
        assert as_user.status_code == 403

        as_admin = await client.put("/api/orders/19102026-PO-1003/status", json=body, headers=ADMIN)
        assert as_admin.status_code == 200
        order = as_admin.json()["data"]["order"]
        assert order["current_status"] == "Spraying"
        assert order["note"] == "Spraying: Orange peel"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_revert_without_reason(self, client, seeded):
        response = await client.put(
            "/api/orders/19102026-PO-1003/status",
            json={"status": "Spraying", "employeeCode": "1234"},
            headers=ADMIN,
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "missingreason"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_rate_limited(self, client, seeded, monkeypatch):
        from config import settings
        monkeypatch.setattr(settings, "status_change_rate_limit", 2)
        url = "/api/orders/19102026-ORD-1004/status"
        for _ in range(2):
            await client.put(url, json={"status": "Ready"})
        response = await client.put(url, json={"status": "Ready"})
        assert response.status_code == 429
        assert response.headers["Retry-After"] == "60"


class TestCancelAndNotes:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_cancel(self, client, seeded):
        response = await client.post(
            "/api/orders/19102026-ORD-1004/cancel",
            json={"reason": "Customer withdrew"},
            headers=ADMIN,
        )
        assert response.status_code == 200
        assert response.json()["data"]["order"]["current_status"] == "Cancelled"

        listing = await client.get("/api/orders", headers=ADMIN)
        assert "19102026-ORD-1004" not in [o["transaction_id"] for o in listing.json()["data"]]

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_cancel_without_reason(self, client, seeded):
        response = await client.post(
            "/api/orders/19102026-ORD-1004/cancel", json={}, headers=ADMIN
        )
        assert response.status_code == 400

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_append_note(self, client, seeded):
        url = "/api/orders/19102026-ORD-1002/note"
        await client.put(url, json={"note": "Two coats"})
        response = await client.put(url, json={"note": "Customer waiting"})
        assert response.status_code == 200
        assert response.json()["data"]["note"] == "Two coats\nCustomer waiting"

        events = await client.get("/api/orders/19102026-ORD-1002/events")
        assert events.json()["data"] == []


class TestQueueEndpoints:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_queue_counts(self, client, seeded):
        response = await client.get("/api/queue", params={"fresh": "true"})
        data = response.json()["data"]
        assert data["waiting"] == 1
        assert data["active"] == 2
        assert data["ready"] == 1
        assert data["queueDepth"] == 4

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_eta_for_category(self, client, seeded):
        response = await client.get("/api/queue/eta", params={"category": "Mix More"})
        data = response.json()["data"]
        assert data["minutes"] == 60
        assert data["display"] == "1hr"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_eta_unknown_category(self, client):
        response = await client.get("/api/queue/eta", params={"category": "Polish"})
        assert response.status_code == 400


class TestArchiveViews:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_archived_newest_first(self, client, seeded, finished):
        response = await client.get("/api/orders/archived", headers=ADMIN)
        assert response.status_code == 200
        body = response.json()
        assert [o["transaction_id"] for o in body["data"]] == [
            "19102026-ORD-2002",
            "19102026-ORD-2001",
        ]
        assert body["meta"]["total"] == 2

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_deleted_lists_cancelled_only(self, client, seeded, finished):
        response = await client.get("/api/orders/deleted", headers=ADMIN)
        assert response.status_code == 200
        data = response.json()["data"]
        assert [o["transaction_id"] for o in data] == ["19102026-ORD-2003"]
        assert data[0]["current_status"] == "Cancelled"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_archived_paginated(self, client, finished):
        response = await client.get(
            "/api/orders/archived", headers=ADMIN, params={"limit": 1, "offset": 1}
        )
        body = response.json()
        assert [o["transaction_id"] for o in body["data"]] == ["19102026-ORD-2001"]
        assert body["meta"]["total"] == 2
        assert body["meta"]["hasMore"] is False

    @pytest.mark.api
    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/api/orders/archived", "/api/orders/deleted"])
    async def test_user_role_forbidden(self, client, finished, path):
        response = await client.get(path, headers={"X-User-Role": "User"})
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "forbidden"


class TestStorageOutage:

    @pytest.mark.api
    @pytest.mark.asyncio
    @pytest.mark.parametrize("path,params,headers", [
        ("/api/queue/eta", {"category": "Mix More"}, {}),
        ("/api/queue", {"fresh": "true"}, {}),
        ("/api/orders", {}, {}),
        ("/api/orders/search", {"q": "priya"}, {}),
        ("/api/orders/archived", {}, ADMIN),
        ("/api/orders/deleted", {}, ADMIN),
        ("/api/orders/check-id/19102026-ORD-1001", {}, {}),
        ("/api/orders/19102026-ORD-1001", {}, {}),
        ("/api/orders/19102026-ORD-1001/events", {}, {}),
    ])
    async def test_reads_return_503(self, client, seeded, session_factory, path, params, headers):
        await drop_order_tables(session_factory)
        response = await client.get(path, params=params, headers=headers)
        assert response.status_code == 503
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "unavailable"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_intake_returns_503(self, client, session_factory):
        await drop_order_tables(session_factory)
        response = await client.post("/api/orders", json=intake_body())
        assert response.status_code == 503
        assert response.json()["error"]["code"] == "unavailable"

import pytest
from fastapi.testclient import TestClient
from eventify.main import app
from eventify.core.config import settings
from eventify.core.exceptions import StoreError
from eventify.services.reminder_service import local_today
from unittest.mock import AsyncMock, patch

PASSWORD = "secret"


@pytest.fixture
def client(seeded_store):
    with TestClient(app) as c:
        yield c


def login(client, username, password=PASSWORD):
    response = client.post("/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def booking_payload(slot, date="2025-03-14", **overrides):
    payload = {"text": "Wedding", "place": "Goa", "amount": 25000, "timeSlot": slot, "date": date}
    payload.update(overrides)
    return payload


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_default_admin_seeded_on_startup(store):
    with patch.object(settings, "DEFAULT_ADMIN_PASSWORD", "first-run"):
        with TestClient(app) as c:
            headers = login(c, "admin", "first-run")
            me = c.get("/auth/me", headers=headers).json()
    assert me["role"] == "admin"
    assert "passwordHash" not in me and "password_hash" not in me


def test_login_errors(client):
    response = client.post("/auth/login", json={"username": "alice", "password": "nope"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid username or password."

    response = client.post("/auth/login", json={"username": "", "password": ""})
    assert response.status_code == 401
    assert "both username and password" in response.json()["detail"]


def test_requires_token(client):
    assert client.get("/bookings").status_code == 401
    assert client.get("/bookings", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_booking_flow(client):
    headers = login(client, "alice")

    morning = client.post("/bookings", json=booking_payload("Morning"), headers=headers)
    assert morning.status_code == 201
    booking = morning.json()
    assert booking["ownerId"] == "user-alice"
    assert booking["ownerName"] == "Alice"

    assert client.post("/bookings", json=booking_payload("Evening"), headers=headers).status_code == 201

    full_day = client.post("/bookings", json=booking_payload("FullDay"), headers=headers)
    assert full_day.status_code == 409
    assert "other events exist" in full_day.json()["detail"]

    second_morning = client.post("/bookings", json=booking_payload("Morning"), headers=headers)
    assert second_morning.status_code == 409
    assert second_morning.json()["detail"] == "morning slot taken"

    # Resubmitting the same booking unchanged is not a conflict
    edited = client.put(f"/bookings/{booking['id']}", json=booking_payload("Morning", place="Mumbai"), headers=headers)
    assert edited.status_code == 200
    assert edited.json()["place"] == "Mumbai"

    day = client.get("/bookings/day/2025-03-14", headers=headers).json()
    assert len(day["bookings"]) == 2
    assert day["owners"][0]["available"] == []

    settled = client.post(f"/bookings/{booking['id']}/settle", headers=headers)
    assert settled.json()["status"] == "completed"
    toggled = client.post(f"/bookings/{booking['id']}/toggle-status", headers=headers)
    assert toggled.json()["status"] == "pending"

    assert client.delete(f"/bookings/{booking['id']}", headers=headers).status_code == 204
    assert len(client.get("/bookings", headers=headers).json()) == 1


def test_check_slot(client):
    headers = login(client, "alice")
    client.post("/bookings", json=booking_payload("FullDay"), headers=headers)

    response = client.post("/bookings/check", json={"date": "2025-03-14", "timeSlot": "Evening"}, headers=headers)
    assert response.json() == {"accepted": False, "reason": "full day already booked"}

    response = client.post("/bookings/check", json={"date": "2025-03-15", "timeSlot": "Full Day"}, headers=headers)
    assert response.json()["accepted"] is True


def test_booking_validation(client):
    headers = login(client, "alice")

    response = client.post("/bookings", json=booking_payload("Morning", text="", amount=None), headers=headers)
    assert response.status_code == 422
    assert response.json()["detail"] == "Please fill in: title, amount."

    response = client.post("/bookings", json=booking_payload("Afternoon"), headers=headers)
    assert response.status_code == 422


def test_photographer_cannot_touch_other_bookings(client):
    bob = login(client, "bob")
    created = client.post("/bookings", json=booking_payload("Morning"), headers=bob).json()

    alice = login(client, "alice")
    assert client.delete(f"/bookings/{created['id']}", headers=alice).status_code == 403
    assert client.post("/bookings", json=booking_payload("Morning", ownerId="user-bob"), headers=alice).status_code == 403
    assert client.get("/bookings", headers=alice).json() == []

    admin = login(client, "admin")
    assert len(client.get("/bookings", headers=admin).json()) == 1


def test_dashboard(client):
    headers = login(client, "alice")
    first = client.post("/bookings", json=booking_payload("Morning", amount=150000), headers=headers).json()
    client.post("/bookings", json=booking_payload("Evening", amount=500), headers=headers)
    client.post(f"/bookings/{first['id']}/settle", headers=headers)

    stats = client.get("/dashboard/stats", headers=headers).json()
    assert stats == {
        "totalOrders": 2, "completedOrders": 1, "pendingOrders": 1,
        "amountReceived": 150000.0, "amountPending": 500.0,
    }

    pending = client.get("/dashboard/stats?status=pending", headers=headers).json()
    assert pending["totalOrders"] == 1

    details = client.get("/dashboard/details/received", headers=headers).json()
    assert details["title"] == "Amount Received"
    assert [e["id"] for e in details["events"]] == [first["id"]]
    assert client.get("/dashboard/details/unknown", headers=headers).status_code == 422

    payments = client.get("/dashboard/pending-payments", headers=headers).json()
    assert payments["totalAmount"] == 500

    calendar = client.get("/dashboard/calendar?year=2025&month=3", headers=headers).json()
    assert calendar["title"] == "March 2025"
    days = {d["date"]: d for week in calendar["weeks"] for d in week}
    assert days["2025-03-14"]["slots"] == ["Morning", "Evening"]


def test_reminders_and_summary(client):
    headers = login(client, "alice")
    today = local_today().isoformat()
    client.post("/bookings", json=booking_payload("Morning", date=today), headers=headers)

    reminders = client.get("/dashboard/reminders", headers=headers).json()["reminders"]
    assert [r["type"] for r in reminders] == ["Today"]

    with patch("eventify.services.llm_service.get_genai_client", return_value=None):
        summary = client.post("/dashboard/summary", headers=headers).json()
    assert "Offline Mode" in summary["summary"]
    assert summary["error"]


def test_user_management(client):
    alice = login(client, "alice")
    users = client.get("/users", headers=alice).json()
    assert {u["username"] for u in users} == {"admin", "alice", "bob"}
    assert all("passwordHash" not in u and "password_hash" not in u for u in users)

    assert client.post("/users", json={"username": "carol", "name": "Carol"}, headers=alice).status_code == 403

    admin = login(client, "admin")
    created = client.post("/users", json={"username": "carol", "name": "Carol", "password": "carol-pass"}, headers=admin)
    assert created.status_code == 201
    login(client, "carol", "carol-pass")

    assert client.put("/users/user-alice", json={"name": "Alice K"}, headers=alice).json()["name"] == "Alice K"
    assert client.put("/users/user-bob", json={"name": "Nope"}, headers=alice).status_code == 403

    assert client.delete("/users/user-admin", headers=admin).status_code == 403
    assert client.delete("/users/user-bob", headers=admin).status_code == 204
    assert client.delete("/users/user-bob", headers=admin).status_code == 404


def test_backup_endpoints(client):
    alice = login(client, "alice")
    client.post("/bookings", json=booking_payload("Morning"), headers=alice)
    assert client.get("/backup", headers=alice).status_code == 403

    admin = login(client, "admin")
    response = client.get("/backup", headers=admin)
    assert response.status_code == 200
    assert "eventify_backup_" in response.headers["content-disposition"]
    backup = response.json()
    assert backup["version"] == 1
    assert len(backup["events"]) == 1

    status = client.get("/backup/status", headers=admin).json()
    assert status["due"] is False
    assert status["lastBackupDate"] == local_today().isoformat()

    backup["events"][0]["id"] = "restored-1"
    backup["events"][0]["date"] = "2025-03-15"
    report = client.post("/backup/restore", json=backup, headers=admin).json()
    assert report["events"] == 1
    assert report["users"] == 3
    assert len(client.get("/bookings", headers=admin).json()) == 2

    with patch("eventify.services.backup_service.send_email", return_value=False):
        assert client.post("/backup/email", json={}, headers=admin).json() == {"success": False}


def test_store_failure_is_reported(client):
    headers = login(client, "alice")
    with patch("eventify.services.booking_service.BookingService.list_bookings", new_callable=AsyncMock) as mock_list:
        mock_list.side_effect = StoreError("Could not read local data store.")
        response = client.get("/bookings", headers=headers)
    assert response.status_code == 503
    assert response.json()["detail"] == "Could not read local data store."

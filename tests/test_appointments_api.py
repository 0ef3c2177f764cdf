from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from app.core.config import get_settings
from app.main import app
from app.services.appointment_store import (
    InMemoryAppointmentStore,
    clear_appointment_store_cache,
)
from app.services.civil_clock import CivilClock

IST = timezone(timedelta(hours=5, minutes=30))
FIXED_NOW = datetime(2024, 1, 3, 8, 0, tzinfo=IST)


@pytest.fixture(autouse=True)
def reset_appointments(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APPOINTMENTS_STORE", "memory")

    def fixed_clock(cls, settings=None, now_provider=None):  # type: ignore[no-untyped-def]
        return cls(IST, now_provider=lambda: FIXED_NOW)

    monkeypatch.setattr(CivilClock, "from_settings", classmethod(fixed_clock))
    clear_appointment_store_cache()
    get_settings.cache_clear()
    yield
    clear_appointment_store_cache()
    get_settings.cache_clear()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def _book(client: TestClient, date_value: str, time_value: str, **extra: str):  # type: ignore[no-untyped-def]
    payload = {
        "date": date_value,
        "time": time_value,
        "name": "Priya",
        "email": "priya@example.com",
        **extra,
    }
    return client.post("/api/appointments", json=payload)


def test_booking_flow_lists_sorted_and_deletes(client: TestClient) -> None:
    later = _book(client, "2024-01-05", "14:00", phone="555-0101", reason="Follow-up")
    earlier = _book(client, "2024-01-04", "09:30")

    assert later.status_code == 201
    created = later.json()
    assert created["dateTime"] == "2024-01-05T14:00"
    assert created["phone"] == "555-0101"
    assert created["reason"] == "Follow-up"
    assert created["id"]
    assert created["createdAt"]
    assert earlier.status_code == 201

    list_response = client.get("/api/appointments")
    assert list_response.status_code == 200
    assert [item["dateTime"] for item in list_response.json()] == [
        "2024-01-04T09:30",
        "2024-01-05T14:00",
    ]

    delete_response = client.delete(f"/api/appointments/{earlier.json()['id']}")
    assert delete_response.status_code == 200
    assert delete_response.json() == {"message": "Appointment canceled"}

    remaining_ids = [item["id"] for item in client.get("/api/appointments").json()]
    assert remaining_ids == [created["id"]]


def test_double_booking_is_rejected(client: TestClient) -> None:
    assert _book(client, "2024-01-04", "10:00").status_code == 201

    response = _book(client, "2024-01-04", "10:00")

    assert response.status_code == 400
    assert response.json() == {"error": "Slot already booked"}


def test_past_booking_is_rejected(client: TestClient) -> None:
    response = _book(client, "2024-01-01", "09:00")

    assert response.status_code == 400
    assert response.json() == {"error": "Cannot book past times"}


def test_missing_fields_are_rejected(client: TestClient) -> None:
    response = client.post("/api/appointments", json={"date": "2024-01-04", "time": "10:00"})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields"}


def test_malformed_time_is_rejected(client: TestClient) -> None:
    response = _book(client, "2024-01-04", "ten")

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid date or time format"}


def test_available_slots_cover_five_business_days(client: TestClient) -> None:
    assert _book(client, "2024-01-04", "10:00").status_code == 201

    response = client.get("/api/appointments/available")

    assert response.status_code == 200
    days = response.json()
    assert [entry["day"] for entry in days] == [
        "2024-01-03",
        "2024-01-04",
        "2024-01-05",
        "2024-01-08",
        "2024-01-09",
    ]
    assert all(len(entry["slots"]) == 16 for entry in days)
    thursday_slots = {slot["time"]: slot for slot in days[1]["slots"]}
    assert thursday_slots["10:00"] == {"date": "2024-01-04", "time": "10:00", "available": False}
    assert thursday_slots["10:30"]["available"] is True


def test_store_failure_is_reported_as_server_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_list_all(self):  # type: ignore[no-untyped-def]
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(InMemoryAppointmentStore, "list_all", failing_list_all)
    client = TestClient(app, raise_server_exceptions=False)

    response = client.get("/api/appointments")

    assert response.status_code == 500
    assert response.json() == {"error": "store unavailable"}


def test_wrongly_typed_field_is_reported_with_error_body(client: TestClient) -> None:
    response = client.post(
        "/api/appointments",
        json={"date": "2024-01-04", "time": "10:00", "name": 5, "email": "priya@example.com"},
    )

    assert response.status_code == 422
    body = response.json()
    assert set(body) == {"error"}
    assert "name" in body["error"]


def test_unpadded_slot_cannot_double_book(client: TestClient) -> None:
    assert _book(client, "2024-01-04", "09:00").status_code == 201

    response = _book(client, "2024-1-4", "9:00")

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid date or time format"}
    assert [item["dateTime"] for item in client.get("/api/appointments").json()] == ["2024-01-04T09:00"]

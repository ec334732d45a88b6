"""API tests for the department directory and day slot calendar."""

from app.models import Department
from app.services.booking_ledger import BookingLedger


def test_list_departments(client, seed):
    response = client.get("/api/departments/")

    assert response.status_code == 200
    names = {d["name"]: d for d in response.json()}
    assert set(names) == {"Registration of Persons", "Motor Traffic"}
    assert names["Motor Traffic"]["openingTime"] == "08:00"
    assert names["Motor Traffic"]["closingTime"] == "16:00"
    assert names["Motor Traffic"]["hasLunchBreak"] is True


def test_get_department(client, seed):
    response = client.get(f"/api/departments/{seed.dept_a.id}")

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == seed.dept_a.id
    assert body["operatingHours"] == "8:00-16:00"
    assert body["appointmentReasons"] == []


def test_get_missing_department(client):
    response = client.get("/api/departments/9999")

    assert response.status_code == 404
    assert response.json()["reason"] == "department-not-found"


def test_day_slots(client, booking_payload, seed):
    client.post("/api/tickets/", json=booking_payload(appointmentTime="09:30"))

    response = client.get(f"/api/departments/{seed.dept_a.id}/slots", params={"date": "2025-03-10"})

    assert response.status_code == 200
    body = response.json()
    assert body["departmentID"] == seed.dept_a.id
    assert body["date"] == "2025-03-10"
    assert body["granularityMinutes"] == 15

    slots = {s["time"]: s for s in body["slots"]}
    assert len(slots) == 32
    assert min(slots) == "08:00"
    assert max(slots) == "15:45"
    assert slots["09:30"] == {"time": "09:30", "available": False, "reason": "slot-taken"}
    assert slots["09:45"]["available"] is True


def test_day_slots_skip_lunch(client, seed):
    response = client.get(f"/api/departments/{seed.dept_lunch.id}/slots", params={"date": "2025-03-10"})

    times = [s["time"] for s in response.json()["slots"]]
    assert "11:45" in times
    assert "12:00" not in times
    assert "12:45" not in times
    assert "13:00" in times


def test_day_slots_on_weekend_are_unavailable(client, seed):
    response = client.get(f"/api/departments/{seed.dept_a.id}/slots", params={"date": "2025-03-08"})

    assert response.status_code == 200
    assert {s["reason"] for s in response.json()["slots"]} == {"weekend"}


def test_day_slots_bad_date(client, seed):
    response = client.get(f"/api/departments/{seed.dept_a.id}/slots", params={"date": "tomorrow"})

    assert response.status_code == 400
    assert response.json()["reason"] == "invalid-format"


def test_half_hour_department_times(client, db):
    department = Department(name="Passports", operating_hours="8:30-16:30")
    db.add(department)
    db.commit()

    body = client.get(f"/api/departments/{department.id}").json()
    assert body["openingTime"] == "08:30"
    assert body["closingTime"] == "16:30"

    slots = client.get(f"/api/departments/{department.id}/slots", params={"date": "2025-03-10"}).json()["slots"]
    times = [s["time"] for s in slots]
    assert times[0] == "08:30"
    assert times[-1] == "16:15"


def test_day_slots_read_bookings_once(client, booking_payload, seed, monkeypatch):
    client.post("/api/tickets/", json=booking_payload(appointmentTime="10:00"))

    def per_slot_lookup(*args, **kwargs):
        raise AssertionError("day slots must not query conflicts slot by slot")

    monkeypatch.setattr(BookingLedger, "find_conflict", per_slot_lookup)

    response = client.get(f"/api/departments/{seed.dept_a.id}/slots", params={"date": "2025-03-10"})

    assert response.status_code == 200
    slots = {s["time"]: s for s in response.json()["slots"]}
    assert slots["10:00"]["reason"] == "slot-taken"
    assert slots["10:15"]["available"] is True

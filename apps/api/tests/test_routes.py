"""End-to-end checks of the HTTP surface against the test database."""

from uuid import uuid4

import pytest

from hms_scheduling.core.config import settings

# 2030-01-07 is a Monday; future dates keep availability out of the past
MONDAY = "2030-01-07"


@pytest.fixture
def provider_id(client):
    res = client.post("/providers", json={"name": "Dr. Tomas Lindqvist", "specialization": "Radiology"})
    assert res.status_code == 201
    return res.json()["provider_id"]


@pytest.fixture
def slot(client, provider_id):
    res = client.post(
        "/slots",
        json={
            "provider_id": provider_id,
            "start_time": f"{MONDAY}T09:00:00Z",
            "end_time": f"{MONDAY}T09:30:00Z",
        },
    )
    assert res.status_code == 201
    return res.json()


def book(client, slot_id):
    return client.post(
        "/appointments",
        json={"patient_id": str(uuid4()), "slot_id": slot_id, "appointment_type": "GENERAL_CONSULTATION"},
    )


class TestProviders:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_create_and_fetch(self, client, provider_id):
        res = client.get(f"/providers/{provider_id}")
        assert res.status_code == 200
        assert res.json()["specialization"] == "Radiology"

    def test_unknown_provider(self, client):
        assert client.get(f"/providers/{uuid4()}").status_code == 404

    def test_resources(self, client):
        res = client.post("/resources", json={"name": "MRI 1", "type": "IMAGING_ROOM", "location": "B2"})
        assert res.status_code == 201
        assert len(client.get("/resources").json()) == 1


class TestSchedules:
    def test_duplicate_day(self, client, provider_id):
        body = {"provider_id": provider_id, "day_of_week": 0, "work_start": "09:00", "work_end": "12:00"}
        assert client.post("/provider-schedules", json=body).status_code == 201
        assert client.post("/provider-schedules", json=body).status_code == 409

    def test_break_outside_window(self, client, provider_id):
        res = client.post(
            "/provider-schedules",
            json={
                "provider_id": provider_id,
                "day_of_week": 1,
                "work_start": "09:00",
                "work_end": "12:00",
                "break_start": "12:30",
                "break_end": "13:00",
            },
        )
        assert res.status_code == 422

    def test_weekday_numbering_is_documented(self, client):
        schema = client.get("/openapi.json").json()["components"]["schemas"]
        description = schema["ProviderScheduleCreate"]["properties"]["day_of_week"]["description"]
        assert "0=Monday" in description
        assert "getDay" in description

    def test_weekday_out_of_range(self, client, provider_id):
        body = {"provider_id": provider_id, "day_of_week": 7, "work_start": "09:00", "work_end": "12:00"}
        assert client.post("/provider-schedules", json=body).status_code == 422

    def test_patch_validates_merged_window(self, client, provider_id):
        created = client.post(
            "/provider-schedules",
            json={"provider_id": provider_id, "day_of_week": 2, "work_start": "09:00", "work_end": "12:00"},
        ).json()
        res = client.patch(f"/provider-schedules/{created['schedule_id']}", json={"work_end": "08:00"})
        assert res.status_code == 400


class TestTimeOff:
    def test_approval_is_final(self, client, provider_id):
        created = client.post(
            "/provider-time-off",
            json={
                "provider_id": provider_id,
                "start_date": MONDAY,
                "end_date": MONDAY,
                "type": "TRAINING",
                "reason": "ACLS recertification",
            },
        ).json()
        assert created["status"] == "PENDING"

        approved = client.patch(f"/provider-time-off/{created['time_off_id']}", json={"status": "APPROVED"})
        assert approved.status_code == 200
        assert approved.json()["approved_at"] is not None

        res = client.patch(f"/provider-time-off/{created['time_off_id']}", json={"status": "REJECTED"})
        assert res.status_code == 409


class TestSlots:
    def test_derived_duration(self, slot):
        assert slot["duration"] == 30
        assert slot["current_bookings"] == 0

    def test_overlap_returns_conflicts(self, client, provider_id, slot):
        res = client.post(
            "/slots",
            json={
                "provider_id": provider_id,
                "start_time": f"{MONDAY}T09:15:00Z",
                "end_time": f"{MONDAY}T09:45:00Z",
            },
        )
        assert res.status_code == 409
        body = res.json()
        assert body["conflicts"][0]["type"] == "TIME_CONFLICT"
        assert body["conflicts"][0]["slot_ids"] == [slot["slot_id"]]

    def test_search(self, client, provider_id, slot):
        res = client.get("/slots", params={"provider_id": provider_id})
        assert res.status_code == 200
        assert res.json()["total"] == 1

    def test_reserve_and_release(self, client, slot):
        first = client.post(f"/slots/{slot['slot_id']}/reserve").json()
        second = client.post(f"/slots/{slot['slot_id']}/reserve").json()
        assert first["reserved"] is True
        assert second["reserved"] is False
        assert second["current_bookings"] == 1

        released = client.post(f"/slots/{slot['slot_id']}/release").json()
        assert released["current_bookings"] == 0

    def test_null_patch_rejected(self, client, slot):
        res = client.patch(f"/slots/{slot['slot_id']}", json={"start_time": None})
        assert res.status_code == 400

    def test_delete(self, client, slot):
        assert client.delete(f"/slots/{slot['slot_id']}").status_code == 204
        assert client.get(f"/slots/{slot['slot_id']}").status_code == 404

    def test_bulk(self, client, provider_id):
        res = client.post(
            "/slots/bulk",
            json={
                "provider_id": provider_id,
                "start_date": MONDAY,
                "end_date": "2030-01-11",
                "days_of_week": [0, 1, 2, 3, 4],
                "start_time": "09:00",
                "end_time": "11:00",
                "slot_duration": 30,
            },
        )
        assert res.status_code == 201
        report = res.json()
        assert report["created_count"] == 20
        assert report["skipped_count"] == 0

    def test_bulk_abort_reports_committed_progress(self, client, provider_id, monkeypatch):
        monkeypatch.setattr(settings, "bulk_commit_batch_size", 1)
        client.post(
            "/slots",
            json={"provider_id": provider_id, "start_time": f"{MONDAY}T09:30:00Z", "end_time": f"{MONDAY}T10:00:00Z"},
        )

        res = client.post(
            "/slots/bulk",
            json={
                "provider_id": provider_id,
                "start_date": MONDAY,
                "end_date": MONDAY,
                "days_of_week": [0],
                "start_time": "09:00",
                "end_time": "11:00",
                "slot_duration": 30,
                "conflict_policy": "abort",
            },
        )
        assert res.status_code == 409
        body = res.json()
        assert len(body["created_slot_ids"]) == 1
        assert body["checkpoint"] == f"{MONDAY}T09:00:00"
        assert client.get(f"/slots/{body['created_slot_ids'][0]}").status_code == 200

    def test_recurring_reports_skipped_base(self, client, slot):
        res = client.post(
            "/slots/recurring",
            json={
                "slot_id": slot["slot_id"],
                "pattern_type": "WEEKLY",
                "days_of_week": [0],
                "start_date": MONDAY,
                "max_occurrences": 3,
            },
        )
        assert res.status_code == 201
        report = res.json()
        assert report["created_count"] == 2
        assert report["skipped_count"] == 1
        assert report["skipped"][0]["conflicts"][0]["type"] == "TIME_CONFLICT"

    def test_recurring_requires_days(self, client, slot):
        res = client.post(
            "/slots/recurring",
            json={"slot_id": slot["slot_id"], "pattern_type": "DAILY", "days_of_week": [], "start_date": MONDAY},
        )
        assert res.status_code == 422


class TestAvailability:
    def test_default_schedule(self, client, provider_id, slot):
        res = client.get(f"/providers/{provider_id}/availability", params={"date": MONDAY})
        assert res.status_code == 200
        day = res.json()
        assert day["uses_default_schedule"] is True
        assert day["available_slots_count"] == 1
        assert day["time_slots"][0]["is_available"] is True

    def test_configured_schedule(self, client, provider_id, slot):
        client.post(
            "/provider-schedules",
            json={
                "provider_id": provider_id,
                "day_of_week": 0,
                "work_start": "09:00",
                "work_end": "11:00",
                "slot_duration": 30,
                "buffer_time": 0,
            },
        )
        day = client.get(f"/providers/{provider_id}/availability", params={"date": MONDAY}).json()
        assert day["uses_default_schedule"] is False
        assert day["total_slots"] == 4
        assert day["availability_percentage"] == 25

    def test_range(self, client, provider_id):
        res = client.get(
            f"/providers/{provider_id}/availability/range",
            params={"start_date": MONDAY, "end_date": "2030-01-13"},
        )
        assert res.status_code == 200
        assert len(res.json()["days"]) == 7

    def test_inverted_range(self, client, provider_id):
        res = client.get(
            f"/providers/{provider_id}/availability/range",
            params={"start_date": "2030-01-13", "end_date": MONDAY},
        )
        assert res.status_code == 400


class TestAppointments:
    def test_booking_flow(self, client, slot):
        res = book(client, slot["slot_id"])
        assert res.status_code == 201
        appt = res.json()
        assert appt["status"] == "SCHEDULED"
        assert client.get(f"/slots/{slot['slot_id']}").json()["current_bookings"] == 1

        for status in ("CONFIRMED", "CHECKED_IN"):
            res = client.patch(f"/appointments/{appt['appointment_id']}/status", json={"status": status})
            assert res.status_code == 200
        assert res.json()["check_in_time"] is not None

    def test_full_slot(self, client, slot):
        book(client, slot["slot_id"])
        res = book(client, slot["slot_id"])
        assert res.status_code == 409

    def test_cancel_then_cancel_again(self, client, slot):
        appt = book(client, slot["slot_id"]).json()
        url = f"/appointments/{appt['appointment_id']}/cancel"

        res = client.post(url, json={"cancellation_reason": "feeling better"})
        assert res.status_code == 200
        assert res.json()["status"] == "CANCELLED"
        assert client.get(f"/slots/{slot['slot_id']}").json()["current_bookings"] == 0

        assert client.post(url, json={"cancellation_reason": "again"}).status_code == 409

    def test_reschedule(self, client, slot):
        appt = book(client, slot["slot_id"]).json()
        res = client.post(
            f"/appointments/{appt['appointment_id']}/reschedule",
            json={
                "new_start_time": f"{MONDAY}T09:10:00Z",
                "new_end_time": f"{MONDAY}T09:30:00Z",
                "reason": "transport delay",
            },
        )
        assert res.status_code == 200
        assert res.json()["status"] == "RESCHEDULED"

    def test_invalid_transition(self, client, slot):
        appt = book(client, slot["slot_id"]).json()
        res = client.patch(f"/appointments/{appt['appointment_id']}/status", json={"status": "COMPLETED"})
        assert res.status_code == 400

    def test_list_by_slot(self, client, slot):
        book(client, slot["slot_id"])
        res = client.get("/appointments", params={"slot_id": slot["slot_id"]})
        assert res.json()["total"] == 1

    def test_unknown_appointment(self, client):
        assert client.get(f"/appointments/{uuid4()}").status_code == 404

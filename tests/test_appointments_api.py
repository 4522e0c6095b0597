import pytest
from httpx import AsyncClient

from app.domain.appointments.repository import AppointmentRepository
from tests.conftest import DOCTOR_EMAIL, login, register


@pytest.mark.integration
class TestBooking:
    """Patient booking endpoint."""

    async def test_book_appointment_success(self, client: AsyncClient, booking_data: dict, email_service) -> None:
        response = await client.post("/api/appointments", json=booking_data)

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["priority"] == "Low"
        assert data["appointment_id"]
        assert data["scheduling_url"] == "https://calendly.com/doctor-consultation/15min"
        assert data["redirect_to_scheduler"] is True

        assert email_service.subjects_for("jane.doe@example.com") == [
            "Your Consultation Request Has Been Received"
        ]
        assert len(email_service.subjects_for(DOCTOR_EMAIL)) == 1

    async def test_book_urgent_issue_is_high_priority(self, client: AsyncClient, booking_data: dict) -> None:
        booking_data["issues"] = "Severe chest pain since this morning"

        response = await client.post("/api/appointments", json=booking_data)

        assert response.status_code == 201
        assert response.json()["priority"] == "High"

    async def test_book_without_preferred_time(self, client: AsyncClient, booking_data: dict) -> None:
        booking_data["preferred_time"] = ""

        response = await client.post("/api/appointments", json=booking_data)

        assert response.status_code == 201

    @pytest.mark.parametrize("field", ["patient_name", "patient_email", "issues"])
    async def test_book_missing_required_field(
        self, client: AsyncClient, booking_data: dict, field: str, db_session
    ) -> None:
        del booking_data[field]

        response = await client.post("/api/appointments", json=booking_data)

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert field in data["message"]
        assert await AppointmentRepository(db_session).list_all() == []

    async def test_book_invalid_email(
        self, client: AsyncClient, booking_data: dict, email_service, db_session
    ) -> None:
        booking_data["patient_email"] = "not-an-email"

        response = await client.post("/api/appointments", json=booking_data)

        assert response.status_code == 400
        assert email_service.sent == []
        assert await AppointmentRepository(db_session).list_all() == []

    async def test_book_blank_issues(self, client: AsyncClient, booking_data: dict) -> None:
        booking_data["issues"] = "   "

        response = await client.post("/api/appointments", json=booking_data)

        assert response.status_code == 400


@pytest.mark.integration
class TestDoctorDashboard:
    """Listing and decisions, which require a doctor session."""

    async def test_list_requires_session(self, client: AsyncClient) -> None:
        response = await client.get("/api/appointments")

        assert response.status_code == 401
        assert response.json()["success"] is False

    async def test_list_rejects_patient_session(self, client: AsyncClient) -> None:
        await register(client, "patient@example.com")
        await login(client, "patient@example.com")

        response = await client.get("/api/appointments")

        assert response.status_code == 403

    async def test_list_orders_by_priority(self, doctor_client: AsyncClient, booking_data: dict) -> None:
        for issues in ("Routine check-up", "Fever and a sore throat", "Heavy bleeding from a cut"):
            booking_data["issues"] = issues
            response = await doctor_client.post("/api/appointments", json=booking_data)
            assert response.status_code == 201

        response = await doctor_client.get("/api/appointments")

        assert response.status_code == 200
        priorities = [a["priority"] for a in response.json()["appointments"]]
        assert priorities == ["High", "Medium", "Low"]

    async def test_get_unknown_appointment(self, doctor_client: AsyncClient) -> None:
        response = await doctor_client.get("/api/appointments/does-not-exist")

        assert response.status_code == 404

    async def test_approve_sends_meeting_link(
        self, doctor_client: AsyncClient, booking_data: dict, email_service
    ) -> None:
        booked = await doctor_client.post("/api/appointments", json=booking_data)
        appointment_id = booked.json()["appointment_id"]

        response = await doctor_client.post(f"/api/appointments/{appointment_id}/approve")

        assert response.status_code == 200
        appointment = response.json()["appointment"]
        assert appointment["status"] == "approved"
        assert appointment["doctor_approved"] is True
        assert appointment["meeting_link"] == f"https://meet.google.com/{appointment_id[:10]}"
        assert "Appointment Confirmed" in email_service.subjects_for("jane.doe@example.com")

    async def test_approve_twice_is_a_no_op(
        self, doctor_client: AsyncClient, booking_data: dict, email_service
    ) -> None:
        booked = await doctor_client.post("/api/appointments", json=booking_data)
        appointment_id = booked.json()["appointment_id"]
        await doctor_client.post(f"/api/appointments/{appointment_id}/approve")
        sent_before = len(email_service.sent)

        response = await doctor_client.post(f"/api/appointments/{appointment_id}/approve")

        assert response.status_code == 200
        assert response.json()["appointment"]["status"] == "approved"
        assert len(email_service.sent) == sent_before

    async def test_reject_then_approve_conflicts(self, doctor_client: AsyncClient, booking_data: dict) -> None:
        booked = await doctor_client.post("/api/appointments", json=booking_data)
        appointment_id = booked.json()["appointment_id"]

        rejected = await doctor_client.post(f"/api/appointments/{appointment_id}/reject")
        assert rejected.status_code == 200
        assert rejected.json()["appointment"]["status"] == "rejected"

        response = await doctor_client.post(f"/api/appointments/{appointment_id}/approve")

        assert response.status_code == 409
        assert response.json()["error_code"] == "INVALID_STATUS_TRANSITION"

    async def test_approve_unknown_appointment(self, doctor_client: AsyncClient) -> None:
        response = await doctor_client.post("/api/appointments/missing/approve")

        assert response.status_code == 404


@pytest.mark.integration
class TestAvailability:

    async def test_availability_without_calendly_key(self, client: AsyncClient) -> None:
        response = await client.get("/api/availability")

        assert response.status_code == 500
        data = response.json()
        assert data["success"] is False
        assert data["error_code"] == "CALENDLY_NOT_CONFIGURED"


@pytest.mark.integration
async def test_booking_to_confirmed_consultation(
    doctor_client: AsyncClient, booking_data: dict, email_service, signed_webhook
) -> None:
    """Book, pick a slot on Calendly, then approve."""
    booked = await doctor_client.post("/api/appointments", json=booking_data)
    appointment_id = booked.json()["appointment_id"]

    body, headers = signed_webhook("invitee.created", {
        "uri": "https://api.calendly.com/scheduled_events/EV1/invitees/INV1",
        "email": "jane.doe@example.com",
        "name": "Jane Doe",
        "scheduled_event": {
            "uri": "https://api.calendly.com/scheduled_events/EV1",
            "start_time": "2030-05-01T10:00:00.000000Z",
            "location": {"join_url": "https://zoom.us/j/123"},
        },
    })
    webhook = await doctor_client.post("/api/webhooks/calendly", content=body, headers=headers)
    assert webhook.status_code == 200
    assert webhook.json()["appointment_id"] == appointment_id

    scheduled = await doctor_client.get(f"/api/appointments/{appointment_id}")
    appointment = scheduled.json()["appointment"]
    assert appointment["status"] == "scheduled"
    assert appointment["meeting_link"] == "https://zoom.us/j/123"
    assert appointment["confirmed_time"].startswith("2030-05-01T10:00:00")

    approved = await doctor_client.post(f"/api/appointments/{appointment_id}/approve")
    appointment = approved.json()["appointment"]
    assert appointment["status"] == "approved"
    assert appointment["meeting_link"] == "https://zoom.us/j/123"

    assert email_service.subjects_for("jane.doe@example.com") == [
        "Your Consultation Request Has Been Received",
        "Your Medical Consultation is Confirmed",
        "Appointment Confirmed",
    ]


async def test_health(client: AsyncClient) -> None:
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}

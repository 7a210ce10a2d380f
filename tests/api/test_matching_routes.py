"""
Tests for the doctor matching HTTP endpoints
"""

import pytest
from fastapi.testclient import TestClient

from sociodent.api.matching_routes import get_notification_service, get_store
from sociodent.exceptions import AppointmentNotFoundError, StorageError
from sociodent.main import app
from sociodent.services.notifications import NotificationService

from tests.fixtures import create_test_appointment, create_test_doctor


@pytest.fixture
def client(store, notification_backend):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_notification_service] = lambda: NotificationService(notification_backend)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def seeded(store):
    store.put_doctor(create_test_doctor(id="d1", name="Dr. One", area="Koramangala"))
    store.put_doctor(create_test_doctor(id="d2", name="Dr. Two", area="Indiranagar"))
    store.put_doctor(create_test_doctor(id="d3", status="pending"))
    store.put_appointment(create_test_appointment(
        id="a1", consultation_type="home", area="Indiranagar", time="10:00"
    ))
    store.put_appointment(create_test_appointment(id="late", time="20:00"))
    return store


class TestCandidates:
    """GET /api/matching/appointments/{id}/candidates"""

    def test_ranked_candidates(self, client, seeded):
        response = client.get("/api/matching/appointments/a1/candidates")

        assert response.status_code == 200
        body = response.json()
        assert [c["doctor_id"] for c in body] == ["d2", "d1"]
        assert body[0]["score"]["area_bonus"] == 10.0
        assert body[0]["score"]["total"] == 10.0

    def test_unknown_appointment(self, client, seeded):
        response = client.get("/api/matching/appointments/ghost/candidates")
        assert response.status_code == 404


class TestAssign:
    """POST /api/matching/appointments/{id}/assign"""

    def test_auto_assign(self, client, seeded, notification_backend):
        response = client.post("/api/matching/appointments/a1/assign")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["outcome"] == "assigned"
        assert body["status"] == "confirmed"
        assert body["doctor_id"] == "d2"
        assert body["assignment_type"] == "auto"
        assert body["score"] == 10.0
        assert len(notification_backend.records) == 2

    def test_no_candidates_is_not_an_error(self, client, seeded):
        response = client.post("/api/matching/appointments/late/assign")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is False
        assert body["outcome"] == "no_candidates"
        assert body["status"] == "pending"

    def test_already_assigned(self, client, seeded):
        client.post("/api/matching/appointments/a1/assign")
        response = client.post("/api/matching/appointments/a1/assign")

        assert response.status_code == 200
        assert response.json()["outcome"] == "already_assigned"

    def test_storage_error(self, client, store, seeded):
        async def broken_pool():
            raise StorageError("Invalid doctor row d9")

        store.load_doctor_pool = broken_pool
        response = client.post("/api/matching/appointments/a1/assign")

        assert response.status_code == 500

    @pytest.mark.parametrize("path,body", [
        ("assign", None),
        ("assign-manual", {"doctor_id": "d2", "assigned_by": "admin"}),
    ])
    def test_appointment_deleted_before_save(self, client, store, seeded, path, body):
        async def deleted(request, condition):
            raise AppointmentNotFoundError(request.id)

        store.save = deleted
        response = client.post(f"/api/matching/appointments/a1/{path}", json=body)

        assert response.status_code == 404
        assert response.json()["detail"] == "Appointment a1 not found"


class TestAssignManual:
    """POST /api/matching/appointments/{id}/assign-manual"""

    def test_manual_assign(self, client, seeded):
        response = client.post(
            "/api/matching/appointments/a1/assign-manual",
            json={"doctor_id": "d1", "assigned_by": "admin-7"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["doctor_id"] == "d1"
        assert body["assignment_type"] == "manual"

    @pytest.mark.parametrize("appointment_id,doctor_id,status_code,outcome", [
        ("a1", "ghost", 404, "doctor_not_found"),
        ("a1", "d3", 422, "doctor_not_approved"),
        ("late", "d1", 409, "schedule_conflict"),
    ])
    def test_rejections(self, client, seeded, appointment_id, doctor_id, status_code, outcome):
        response = client.post(
            f"/api/matching/appointments/{appointment_id}/assign-manual",
            json={"doctor_id": doctor_id, "assigned_by": "admin"},
        )

        assert response.status_code == status_code
        assert response.json()["detail"]["outcome"] == outcome

    def test_missing_body_fields(self, client, seeded):
        response = client.post(
            "/api/matching/appointments/a1/assign-manual",
            json={"doctor_id": "d1"},
        )
        assert response.status_code == 422


class TestReassign:
    """POST /api/matching/appointments/{id}/reassign"""

    def test_reassign_records_audit(self, client, seeded):
        client.post(
            "/api/matching/appointments/a1/assign-manual",
            json={"doctor_id": "d1", "assigned_by": "admin"},
        )

        response = client.post(
            "/api/matching/appointments/a1/reassign",
            json={"doctor_id": "d2", "reassigned_by": "admin", "reason": "Closer to patient"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["doctor_id"] == "d2"
        assert len(body["audit_trail"]) == 1
        assert body["audit_trail"][0]["previous_doctor_id"] == "d1"
        assert body["audit_trail"][0]["new_doctor_id"] == "d2"
        assert body["audit_trail"][0]["reason"] == "Closer to patient"

    def test_reassign_pending_conflicts(self, client, seeded):
        response = client.post(
            "/api/matching/appointments/a1/reassign",
            json={"doctor_id": "d2", "reassigned_by": "admin"},
        )

        assert response.status_code == 409
        assert response.json()["detail"]["outcome"] == "invalid_status"

    def test_reassign_rolled_back_when_audit_fails(self, client, store, seeded):
        client.post(
            "/api/matching/appointments/a1/assign-manual",
            json={"doctor_id": "d1", "assigned_by": "admin"},
        )

        async def audit_unavailable(appointment_id, entry):
            raise StorageError("Failed to record audit entry", record_id=appointment_id)

        store.append_audit_entry = audit_unavailable
        response = client.post(
            "/api/matching/appointments/a1/reassign",
            json={"doctor_id": "d2", "reassigned_by": "admin"},
        )

        assert response.status_code == 503
        assert response.json()["detail"]["outcome"] == "audit_failed"
        assert store._appointments["a1"].doctor_id == "d1"

    def test_reassign_appointment_deleted_before_save(self, client, store, seeded):
        client.post(
            "/api/matching/appointments/a1/assign-manual",
            json={"doctor_id": "d1", "assigned_by": "admin"},
        )

        async def deleted(request, condition):
            raise AppointmentNotFoundError(request.id)

        store.save = deleted
        response = client.post(
            "/api/matching/appointments/a1/reassign",
            json={"doctor_id": "d2", "reassigned_by": "admin"},
        )

        assert response.status_code == 404


class TestAssignPending:
    """POST /api/matching/assign-pending"""

    def test_batch(self, client, seeded):
        response = client.post("/api/matching/assign-pending")

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 2
        assert body["successful"] == 1
        assert body["failed"] == 1


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["store_backend"] == "memory"

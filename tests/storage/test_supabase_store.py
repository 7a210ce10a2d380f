"""
Tests for the Supabase-backed appointment store (mocked client)
"""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from sociodent.exceptions import AppointmentNotFoundError, StorageError
from sociodent.models import AppointmentStatus, AuditEntry, DoctorStatus
from sociodent.storage import SaveResult, SupabaseAppointmentStore, WriteCondition

from tests.fixtures import MONDAY, create_test_appointment


def make_table(*responses):
    """Mock query builder: chained calls return the builder, execute() yields responses in order"""
    table = Mock()
    for method in ("select", "eq", "is_", "order", "limit", "update", "insert"):
        getattr(table, method).return_value = table
    table.execute.side_effect = [Mock(data=data) for data in responses]
    return table


@pytest.fixture
def mock_supabase_client():
    """Create mock Supabase client with per-table builders"""
    client = Mock()
    client.tables = {}
    client.table.side_effect = lambda name: client.tables[name]
    return client


@pytest.fixture
def store(mock_supabase_client):
    return SupabaseAppointmentStore(mock_supabase_client)


DOCTOR_ROW = {
    "id": "d1",
    "full_name": "Dr. Kavya Iyer",
    "role": "doctor",
    "status": "approved",
    "specialization": "Orthodontist",
    "area": "Koramangala",
    "email": "kavya@example.com",
}

SCHEDULE_ROW = {
    "doctor_id": "d1",
    "days": {"monday": True, "tuesday": True},
    "start_time": "9:00 AM",
    "end_time": "5:00 PM",
    "slot_duration": 30,
    "break_start_time": "13:00",
    "break_end_time": "14:00",
}

APPOINTMENT_ROW = {
    "id": "a1",
    "patient_id": "p1",
    "patient_name": "Asha Rao",
    "consultation_type": "home",
    "date": "2024-06-17",
    "time": "10:00",
    "area": "Koramangala",
    "symptoms": None,
    "status": "pending",
    "doctor_id": None,
}


class TestReads:
    """Test row mapping on reads"""

    async def test_load_doctor_pool_joins_schedules(self, store, mock_supabase_client):
        mock_supabase_client.tables["doctors"] = make_table(
            [DOCTOR_ROW, dict(DOCTOR_ROW, id="d2", full_name=None, specialization="")]
        )
        mock_supabase_client.tables["doctor_schedules"] = make_table([SCHEDULE_ROW])

        pool = await store.load_doctor_pool()

        d1, d2 = pool
        assert d1.name == "Dr. Kavya Iyer"
        assert d1.status == DoctorStatus.APPROVED
        assert d1.schedule.works_on("monday") is True
        assert d1.schedule.works_on("sunday") is False
        assert d1.schedule.end_time.hour == 17
        assert d1.schedule.has_break is True
        assert d2.name == "Dr. Unknown"
        assert d2.specialization == "General"
        assert d2.schedule is None
        mock_supabase_client.tables["doctors"].eq.assert_called_with("role", "doctor")

    async def test_invalid_doctor_row_raises_storage_error(self, store, mock_supabase_client):
        bad_schedule = dict(SCHEDULE_ROW, start_time="later")
        mock_supabase_client.tables["doctors"] = make_table([DOCTOR_ROW])
        mock_supabase_client.tables["doctor_schedules"] = make_table([bad_schedule])

        with pytest.raises(StorageError) as exc_info:
            await store.load_doctor_pool()
        assert exc_info.value.record_id == "d1"

    async def test_load_pending_appointments(self, store, mock_supabase_client):
        table = make_table([APPOINTMENT_ROW])
        mock_supabase_client.tables["appointments"] = table

        pending = await store.load_pending_appointments()

        assert [a.id for a in pending] == ["a1"]
        assert pending[0].date == MONDAY
        assert pending[0].symptoms == ""
        table.eq.assert_called_with("status", "pending")

    async def test_doctor_location_fields(self, store, mock_supabase_client):
        mock_supabase_client.tables["doctors"] = make_table(
            [dict(DOCTOR_ROW, city=" Bengaluru ", pincode=560034)]
        )
        mock_supabase_client.tables["doctor_schedules"] = make_table([])

        (doctor,) = await store.load_doctor_pool()

        assert doctor.city == "Bengaluru"
        assert doctor.pincode == "560034"

    async def test_non_string_date_raises_storage_error(self, store, mock_supabase_client):
        table = make_table([dict(APPOINTMENT_ROW, date=20240617)])
        mock_supabase_client.tables["appointments"] = table

        with pytest.raises(StorageError) as exc_info:
            await store.load_pending_appointments()
        assert exc_info.value.record_id == "a1"
        table.is_.assert_called_with("doctor_id", "null")

    async def test_load_appointment_with_audit_trail(self, store, mock_supabase_client):
        mock_supabase_client.tables["appointments"] = make_table(
            [dict(APPOINTMENT_ROW, status="confirmed", doctor_id="d2")]
        )
        mock_supabase_client.tables["appointment_audit_log"] = make_table([{
            "appointment_id": "a1",
            "previous_doctor_id": "d1",
            "new_doctor_id": "d2",
            "actor": "admin",
            "reason": None,
            "created_at": "2024-06-10T09:30:00+00:00",
        }])

        appointment = await store.load_appointment("a1")

        assert appointment.status == AppointmentStatus.CONFIRMED
        assert len(appointment.audit_trail) == 1
        assert appointment.audit_trail[0].previous_doctor_id == "d1"

    async def test_load_missing_appointment(self, store, mock_supabase_client):
        mock_supabase_client.tables["appointments"] = make_table([])

        with pytest.raises(AppointmentNotFoundError):
            await store.load_appointment("ghost")

    async def test_load_appointments_on_date(self, store, mock_supabase_client):
        table = make_table([APPOINTMENT_ROW])
        mock_supabase_client.tables["appointments"] = table

        await store.load_appointments_on(MONDAY)

        table.eq.assert_called_with("date", "2024-06-17")


class TestWrites:
    """Test conditional writes"""

    async def test_save_success_filters_on_pending(self, store, mock_supabase_client):
        table = make_table([{"id": "a1"}])
        mock_supabase_client.tables["appointments"] = table
        confirmed = create_test_appointment(id="a1", status="confirmed", doctor_id="d1")

        result = await store.save(confirmed, WriteCondition.still_pending())

        assert result == SaveResult.SUCCESS
        payload = table.update.call_args[0][0]
        assert payload["status"] == "confirmed"
        assert payload["doctor_id"] == "d1"
        assert "patient_id" not in payload
        assert "audit_trail" not in payload
        table.eq.assert_any_call("id", "a1")
        table.eq.assert_any_call("status", "pending")
        table.is_.assert_called_with("doctor_id", "null")

    async def test_save_filters_on_previous_doctor(self, store, mock_supabase_client):
        table = make_table([{"id": "a1"}])
        mock_supabase_client.tables["appointments"] = table
        moved = create_test_appointment(id="a1", status="confirmed", doctor_id="d2")

        await store.save(moved, WriteCondition.still_assigned_to("d1"))

        table.eq.assert_any_call("status", "confirmed")
        table.eq.assert_any_call("doctor_id", "d1")
        table.is_.assert_not_called()

    async def test_save_conflict(self, store, mock_supabase_client):
        mock_supabase_client.tables["appointments"] = make_table([], [{"id": "a1"}])

        result = await store.save(create_test_appointment(id="a1"), WriteCondition.still_pending())

        assert result == SaveResult.CONFLICT

    async def test_save_missing_row(self, store, mock_supabase_client):
        mock_supabase_client.tables["appointments"] = make_table([], [])

        with pytest.raises(AppointmentNotFoundError):
            await store.save(create_test_appointment(id="a1"), WriteCondition.still_pending())

    async def test_append_audit_entry(self, store, mock_supabase_client):
        table = make_table([{"id": 1}])
        mock_supabase_client.tables["appointment_audit_log"] = table
        entry = AuditEntry(
            previous_doctor_id="d1",
            new_doctor_id="d2",
            actor="admin",
            reason="Patient request",
            timestamp=datetime(2024, 6, 10, 9, 30, tzinfo=timezone.utc),
        )

        await store.append_audit_entry("a1", entry)

        row = table.insert.call_args[0][0]
        assert row["appointment_id"] == "a1"
        assert row["new_doctor_id"] == "d2"
        assert row["created_at"] == "2024-06-10T09:30:00+00:00"
        assert "timestamp" not in row

    async def test_append_audit_entry_failure(self, store, mock_supabase_client):
        mock_supabase_client.tables["appointment_audit_log"] = make_table([])
        entry = AuditEntry(
            new_doctor_id="d2",
            actor="admin",
            timestamp=datetime(2024, 6, 10, tzinfo=timezone.utc),
        )

        with pytest.raises(StorageError):
            await store.append_audit_entry("a1", entry)

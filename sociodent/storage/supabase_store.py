"""
Supabase-backed appointment store.

Tables:
- doctors:                 id, full_name, role, status, specialization, area, email
- doctor_schedules:        doctor_id, days (jsonb), start_time, end_time,
                           slot_duration, break_start_time, break_end_time
- appointments:            one row per AppointmentRequest (snake_case columns)
- appointment_audit_log:   append-only reassignment history

The conditional write is a single filtered UPDATE; PostgREST returns the
updated rows, so an empty result means the record no longer matched.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from supabase import Client

from ..exceptions import AppointmentNotFoundError, StorageError
from ..models import AppointmentRequest, AppointmentStatus, AuditEntry, Doctor, WeeklySchedule
from .base import AppointmentStore, SaveResult, WriteCondition

logger = logging.getLogger(__name__)

APPOINTMENT_WRITE_FIELDS = {
    "status",
    "doctor_id",
    "doctor_name",
    "specialization",
    "assignment_type",
    "assigned_by",
    "assigned_at",
    "updated_at",
    "assignment_warning",
}


class SupabaseAppointmentStore(AppointmentStore):
    """Appointment store over a Supabase (PostgREST) client"""

    def __init__(self, client: Client):
        self.client = client
        self.doctors_table = "doctors"
        self.schedules_table = "doctor_schedules"
        self.appointments_table = "appointments"
        self.audit_table = "appointment_audit_log"

    # ------------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------------

    def _doctor_from_row(self, row: Dict[str, Any], schedule_row: Optional[Dict[str, Any]]) -> Doctor:
        try:
            schedule = None
            if schedule_row:
                schedule = WeeklySchedule(
                    days=schedule_row.get("days"),
                    start_time=schedule_row["start_time"],
                    end_time=schedule_row["end_time"],
                    slot_duration=schedule_row.get("slot_duration") or 30,
                    break_start_time=schedule_row.get("break_start_time"),
                    break_end_time=schedule_row.get("break_end_time"),
                )
            return Doctor(
                id=str(row["id"]),
                name=row.get("full_name") or row.get("name") or "Dr. Unknown",
                role=row.get("role", "doctor"),
                status=row.get("status", "pending"),
                specialization=row.get("specialization"),
                area=row.get("area"),
                city=row.get("city"),
                pincode=row.get("pincode"),
                email=row.get("email"),
                schedule=schedule,
            )
        except (KeyError, ValidationError) as e:
            raise StorageError(f"Invalid doctor row {row.get('id')}: {e}", record_id=row.get("id"))

    def _appointment_from_row(
        self,
        row: Dict[str, Any],
        audit_rows: Optional[List[Dict[str, Any]]] = None
    ) -> AppointmentRequest:
        try:
            data = dict(row)
            data["id"] = str(data["id"])
            data["audit_trail"] = [self._audit_from_row(r) for r in audit_rows or []]
            return AppointmentRequest.model_validate(data)
        except (KeyError, ValidationError) as e:
            raise StorageError(f"Invalid appointment row {row.get('id')}: {e}", record_id=row.get("id"))

    @staticmethod
    def _audit_from_row(row: Dict[str, Any]) -> AuditEntry:
        return AuditEntry(
            previous_doctor_id=row.get("previous_doctor_id"),
            previous_doctor_name=row.get("previous_doctor_name"),
            new_doctor_id=row["new_doctor_id"],
            new_doctor_name=row.get("new_doctor_name"),
            actor=row["actor"],
            reason=row.get("reason"),
            timestamp=row["created_at"],
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def load_doctor_pool(self) -> List[Doctor]:
        doctors = self.client.table(self.doctors_table)\
            .select("*")\
            .eq("role", "doctor")\
            .execute()
        schedules = self.client.table(self.schedules_table)\
            .select("*")\
            .execute()

        schedule_by_doctor = {
            str(row["doctor_id"]): row for row in (schedules.data or [])
        }

        pool = [
            self._doctor_from_row(row, schedule_by_doctor.get(str(row["id"])))
            for row in (doctors.data or [])
        ]
        logger.debug(f"Loaded {len(pool)} doctors ({len(schedule_by_doctor)} with schedules)")
        return pool

    async def load_pending_appointments(self) -> List[AppointmentRequest]:
        result = self.client.table(self.appointments_table)\
            .select("*")\
            .eq("status", AppointmentStatus.PENDING.value)\
            .is_("doctor_id", "null")\
            .order("date")\
            .execute()
        return [self._appointment_from_row(row) for row in (result.data or [])]

    async def load_appointment(self, appointment_id: str) -> AppointmentRequest:
        result = self.client.table(self.appointments_table)\
            .select("*")\
            .eq("id", appointment_id)\
            .limit(1)\
            .execute()

        if not result.data:
            raise AppointmentNotFoundError(appointment_id)

        audit = self.client.table(self.audit_table)\
            .select("*")\
            .eq("appointment_id", appointment_id)\
            .order("created_at")\
            .execute()

        return self._appointment_from_row(result.data[0], audit.data or [])

    async def load_appointments_on(self, day: date) -> List[AppointmentRequest]:
        result = self.client.table(self.appointments_table)\
            .select("*")\
            .eq("date", day.isoformat())\
            .execute()
        return [self._appointment_from_row(row) for row in (result.data or [])]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def save(self, request: AppointmentRequest, condition: WriteCondition) -> SaveResult:
        payload = request.model_dump(mode="json", include=APPOINTMENT_WRITE_FIELDS)

        query = self.client.table(self.appointments_table)\
            .update(payload)\
            .eq("id", request.id)\
            .eq("status", condition.expected_status.value)

        if condition.expected_doctor_id is None:
            query = query.is_("doctor_id", "null")
        else:
            query = query.eq("doctor_id", condition.expected_doctor_id)

        result = query.execute()

        if result.data:
            return SaveResult.SUCCESS

        # Distinguish a vanished record from a concurrent modification
        existing = self.client.table(self.appointments_table)\
            .select("id")\
            .eq("id", request.id)\
            .limit(1)\
            .execute()
        if not existing.data:
            raise AppointmentNotFoundError(request.id)

        logger.info("appointment.conditional_write_conflict", extra={
            "appointment_id": request.id,
            "expected_status": condition.expected_status.value,
            "expected_doctor_id": condition.expected_doctor_id,
        })
        return SaveResult.CONFLICT

    async def append_audit_entry(self, appointment_id: str, entry: AuditEntry) -> None:
        row = entry.model_dump(mode="json", exclude={"timestamp"})
        row["appointment_id"] = appointment_id
        row["created_at"] = entry.timestamp.isoformat()

        result = self.client.table(self.audit_table).insert(row).execute()
        if not result.data:
            raise StorageError(
                f"Failed to append audit entry for appointment {appointment_id}",
                record_id=appointment_id
            )

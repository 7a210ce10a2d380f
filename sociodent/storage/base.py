"""
Storage boundary for the doctor matcher.

The matcher never talks to a database directly. It reads snapshots and writes
the updated appointment through an ``AppointmentStore``, whose ``save`` is a
conditional write: it succeeds only when the stored record still matches the
state the caller read.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import List, Optional

from ..models import AppointmentRequest, AppointmentStatus, AuditEntry, Doctor


class SaveResult(str, Enum):
    """Result of a conditional write."""
    SUCCESS = "success"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class WriteCondition:
    """State the stored record must still be in for a write to apply."""
    expected_status: AppointmentStatus
    expected_doctor_id: Optional[str] = None

    @classmethod
    def still_pending(cls) -> "WriteCondition":
        return cls(expected_status=AppointmentStatus.PENDING, expected_doctor_id=None)

    @classmethod
    def still_assigned_to(cls, doctor_id: str) -> "WriteCondition":
        return cls(expected_status=AppointmentStatus.CONFIRMED, expected_doctor_id=doctor_id)

    def matches(self, record: AppointmentRequest) -> bool:
        return (
            record.status == self.expected_status
            and (record.doctor_id or None) == self.expected_doctor_id
        )


class AppointmentStore:
    """Abstract store for doctors, appointments and reassignment history"""

    async def load_doctor_pool(self) -> List[Doctor]:
        """Read all doctor records, any status"""
        raise NotImplementedError

    async def load_pending_appointments(self) -> List[AppointmentRequest]:
        """Read appointments that are pending and have no doctor"""
        raise NotImplementedError

    async def load_appointment(self, appointment_id: str) -> AppointmentRequest:
        """Read one appointment; raises AppointmentNotFoundError"""
        raise NotImplementedError

    async def load_appointments_on(self, day: date) -> List[AppointmentRequest]:
        """Read every appointment booked for a calendar date"""
        raise NotImplementedError

    async def save(self, request: AppointmentRequest, condition: WriteCondition) -> SaveResult:
        """Write the appointment if the stored record still matches condition"""
        raise NotImplementedError

    async def append_audit_entry(self, appointment_id: str, entry: AuditEntry) -> None:
        """Append a reassignment record to the appointment's history"""
        raise NotImplementedError

"""
In-process appointment store.

Used by the test suite and for local runs without Supabase credentials.
"""

import logging
import threading
from datetime import date
from typing import Dict, Iterable, List, Optional

from ..exceptions import AppointmentNotFoundError
from ..models import AppointmentRequest, AppointmentStatus, AuditEntry, Doctor
from .base import AppointmentStore, SaveResult, WriteCondition

logger = logging.getLogger(__name__)


class InMemoryAppointmentStore(AppointmentStore):
    """Dict-backed store whose conditional write is atomic within one process."""

    def __init__(
        self,
        doctors: Optional[Iterable[Doctor]] = None,
        appointments: Optional[Iterable[AppointmentRequest]] = None
    ):
        self._lock = threading.Lock()
        self._doctors: Dict[str, Doctor] = {}
        self._appointments: Dict[str, AppointmentRequest] = {}

        for doctor in doctors or []:
            self.put_doctor(doctor)
        for appointment in appointments or []:
            self.put_appointment(appointment)

    def put_doctor(self, doctor: Doctor) -> None:
        with self._lock:
            self._doctors[doctor.id] = doctor.model_copy(deep=True)

    def put_appointment(self, appointment: AppointmentRequest) -> None:
        with self._lock:
            self._appointments[appointment.id] = appointment.model_copy(deep=True)

    async def load_doctor_pool(self) -> List[Doctor]:
        with self._lock:
            return [doctor.model_copy(deep=True) for doctor in self._doctors.values()]

    async def load_pending_appointments(self) -> List[AppointmentRequest]:
        with self._lock:
            return [
                appointment.model_copy(deep=True)
                for appointment in self._appointments.values()
                if appointment.status == AppointmentStatus.PENDING and not appointment.doctor_id
            ]

    async def load_appointment(self, appointment_id: str) -> AppointmentRequest:
        with self._lock:
            appointment = self._appointments.get(appointment_id)
            if appointment is None:
                raise AppointmentNotFoundError(appointment_id)
            return appointment.model_copy(deep=True)

    async def load_appointments_on(self, day: date) -> List[AppointmentRequest]:
        with self._lock:
            return [
                appointment.model_copy(deep=True)
                for appointment in self._appointments.values()
                if appointment.date == day
            ]

    async def save(self, request: AppointmentRequest, condition: WriteCondition) -> SaveResult:
        with self._lock:
            current = self._appointments.get(request.id)
            if current is None:
                raise AppointmentNotFoundError(request.id)

            if not condition.matches(current):
                logger.debug(
                    f"Conditional write rejected for {request.id}: "
                    f"stored status={current.status.value}, doctor={current.doctor_id}"
                )
                return SaveResult.CONFLICT

            # History is owned by append_audit_entry, never overwritten by save
            stored = request.model_copy(deep=True)
            stored.audit_trail = list(current.audit_trail)
            self._appointments[request.id] = stored
            return SaveResult.SUCCESS

    async def append_audit_entry(self, appointment_id: str, entry: AuditEntry) -> None:
        with self._lock:
            current = self._appointments.get(appointment_id)
            if current is None:
                raise AppointmentNotFoundError(appointment_id)
            current.audit_trail.append(entry.model_copy())

"""
In-app notifications for assignment events.

Creates notification records for the assigned doctor and the patient when an
appointment is confirmed. Delivery channels (email, WhatsApp) read from the
same table and live outside this service.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from supabase import Client

from ..models import AppointmentRequest, Doctor
from ..utils.time_parsing import format_time

logger = logging.getLogger(__name__)


class NotificationBackend:
    """Abstract storage backend for notification records"""

    async def write(self, record: Dict[str, Any]) -> Optional[str]:
        """Persist a notification; returns its id or None on failure"""
        raise NotImplementedError


class InMemoryNotificationBackend(NotificationBackend):
    """Keeps notifications in a list (tests, local runs)"""

    def __init__(self):
        self.records: List[Dict[str, Any]] = []

    async def write(self, record: Dict[str, Any]) -> Optional[str]:
        record = dict(record, id=str(uuid.uuid4()))
        self.records.append(record)
        return record["id"]


class SupabaseNotificationBackend(NotificationBackend):
    """Writes notifications to the Supabase notifications table"""

    def __init__(self, client: Client):
        self.client = client
        self.table_name = "notifications"

    async def write(self, record: Dict[str, Any]) -> Optional[str]:
        try:
            response = self.client.table(self.table_name).insert(record).execute()
            if response.data:
                return response.data[0].get("id")
            return None
        except Exception as e:
            logger.error(f"Failed to write notification: {e}")
            return None


class NotificationService:
    """Builds assignment notifications for doctors and patients"""

    def __init__(self, backend: NotificationBackend):
        self.backend = backend

    @staticmethod
    def _record(
        recipient_id: str,
        recipient_type: str,
        title: str,
        message: str,
        notification_type: str,
        appointment_id: str
    ) -> Dict[str, Any]:
        return {
            "recipient_id": recipient_id,
            "recipient_type": recipient_type,
            "title": title,
            "message": message,
            "type": notification_type,
            "related_to": {"type": "appointment", "id": appointment_id},
            "is_read": False,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }

    async def notify_doctor_of_assignment(
        self,
        doctor: Doctor,
        appointment: AppointmentRequest
    ) -> Optional[str]:
        """Tell a doctor they have a new appointment."""
        patient = appointment.patient_name or "a patient"
        return await self.backend.write(self._record(
            recipient_id=doctor.id,
            recipient_type="doctor",
            title="New Appointment Assigned",
            message=(
                f"You have been assigned to a new appointment with {patient} "
                f"on {appointment.date.isoformat()} at {format_time(appointment.time)}."
            ),
            notification_type="appointment_assigned",
            appointment_id=appointment.id,
        ))

    async def notify_patient_of_confirmation(
        self,
        doctor: Doctor,
        appointment: AppointmentRequest
    ) -> Optional[str]:
        """Tell a patient which doctor will see them."""
        return await self.backend.write(self._record(
            recipient_id=appointment.patient_id,
            recipient_type="patient",
            title="Appointment Confirmed",
            message=(
                f"Your appointment with {doctor.name} on {appointment.date.isoformat()} "
                f"at {format_time(appointment.time)} has been confirmed."
            ),
            notification_type="appointment_confirmed",
            appointment_id=appointment.id,
        ))

    async def notify_assignment(self, doctor: Doctor, appointment: AppointmentRequest) -> None:
        """Send both assignment notifications. Failures are logged, never raised."""
        try:
            await self.notify_doctor_of_assignment(doctor, appointment)
            await self.notify_patient_of_confirmation(doctor, appointment)
        except Exception as e:
            logger.error("notification.assignment_failed", extra={
                "appointment_id": appointment.id,
                "doctor_id": doctor.id,
                "error": str(e),
            })

"""
Pydantic models for appointment requests and their reassignment history.
"""

from datetime import date as date_type, datetime, time as time_type
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ..utils.time_parsing import parse_calendar_date, parse_time_of_day


class ConsultationType(str, Enum):
    """How the consultation takes place."""
    VIRTUAL = "virtual"
    HOME = "home"
    CLINIC = "clinic"


class AppointmentStatus(str, Enum):
    """Lifecycle state of an appointment."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AssignmentType(str, Enum):
    """Whether the doctor was picked by the matcher or by an admin."""
    AUTO = "auto"
    MANUAL = "manual"


class AuditEntry(BaseModel):
    """One reassignment record. Entries are only ever appended."""
    previous_doctor_id: Optional[str] = Field(None, description="Doctor before the change")
    previous_doctor_name: Optional[str] = Field(None, description="Name of previous doctor")
    new_doctor_id: str = Field(..., description="Doctor after the change")
    new_doctor_name: Optional[str] = Field(None, description="Name of new doctor")
    actor: str = Field(..., description="Who made the change")
    reason: Optional[str] = Field(None, description="Free-text justification")
    timestamp: datetime = Field(..., description="When the change happened")


class AppointmentRequest(BaseModel):
    """A patient's booking, pending until a doctor is attached."""
    id: str = Field(..., description="Appointment identifier")
    patient_id: str = Field(..., description="Patient user id")
    patient_name: str = Field("", description="Patient display name")
    patient_email: Optional[str] = Field(None, description="Patient email")
    consultation_type: ConsultationType = Field(..., description="virtual, home or clinic")
    date: date_type = Field(..., description="Requested calendar date")
    time: time_type = Field(..., description="Requested time of day")
    area: Optional[str] = Field(None, description="Patient area, used for home visits")
    city: Optional[str] = Field(None, description="Patient city, used for home visits")
    pincode: Optional[str] = Field(None, description="Patient postal code, used for home visits")
    symptoms: str = Field("", description="Free-text symptom description")
    status: AppointmentStatus = Field(AppointmentStatus.PENDING)

    doctor_id: Optional[str] = None
    doctor_name: Optional[str] = None
    specialization: Optional[str] = None
    assignment_type: Optional[AssignmentType] = None
    assigned_by: Optional[str] = None
    assigned_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    assignment_warning: Optional[str] = None

    audit_trail: List[AuditEntry] = Field(default_factory=list)

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v):
        return parse_calendar_date(v)

    @field_validator("time", mode="before")
    @classmethod
    def parse_time(cls, v):
        return parse_time_of_day(v)

    @field_validator("symptoms", mode="before")
    @classmethod
    def default_symptoms(cls, v):
        return v or ""

    @field_validator("city", "pincode", mode="before")
    @classmethod
    def blank_location_to_none(cls, v):
        if v is None:
            return None
        return str(v).strip() or None

    @property
    def is_pending(self) -> bool:
        return self.status == AppointmentStatus.PENDING

    @property
    def has_doctor(self) -> bool:
        return bool(self.doctor_id)

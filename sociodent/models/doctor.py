"""
Pydantic models for doctors and their weekly availability.
"""

from datetime import time
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..utils.time_parsing import WEEKDAY_KEYS, parse_time_of_day


class DoctorStatus(str, Enum):
    """Admin approval state of a doctor account."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class WeeklySchedule(BaseModel):
    """Recurring weekly availability for a doctor."""
    days: Dict[str, bool] = Field(
        default_factory=lambda: {day: False for day in WEEKDAY_KEYS},
        description="Weekday name -> available"
    )
    start_time: time = Field(..., description="Start of working window")
    end_time: time = Field(..., description="End of working window (exclusive)")
    slot_duration: int = Field(30, gt=0, description="Slot length in minutes")
    break_start_time: Optional[time] = Field(None, description="Start of break (inclusive)")
    break_end_time: Optional[time] = Field(None, description="End of break (exclusive)")

    @field_validator("days", mode="before")
    @classmethod
    def normalize_days(cls, v):
        if v is None:
            return {day: False for day in WEEKDAY_KEYS}
        days = {str(key).strip().lower(): bool(value) for key, value in dict(v).items()}
        unknown = set(days) - set(WEEKDAY_KEYS)
        if unknown:
            raise ValueError(f"Unknown weekday keys: {sorted(unknown)}")
        return {day: days.get(day, False) for day in WEEKDAY_KEYS}

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_window(cls, v):
        return parse_time_of_day(v)

    @field_validator("break_start_time", "break_end_time", mode="before")
    @classmethod
    def parse_break(cls, v):
        if v in (None, ""):
            return None
        return parse_time_of_day(v)

    @model_validator(mode="after")
    def check_window(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self

    @property
    def has_break(self) -> bool:
        return self.break_start_time is not None and self.break_end_time is not None

    def works_on(self, weekday: str) -> bool:
        return self.days.get(weekday, False)


class Doctor(BaseModel):
    """A registered care provider."""
    id: str = Field(..., description="Doctor identifier")
    name: str = Field("Dr. Unknown", description="Display name")
    role: str = Field("doctor", description="Account role")
    status: DoctorStatus = Field(DoctorStatus.PENDING, description="Approval status")
    specialization: str = Field("General", description="Specialty as entered by the doctor")
    area: Optional[str] = Field(None, description="Area/locality the doctor serves")
    city: Optional[str] = Field(None, description="City the doctor practices in")
    pincode: Optional[str] = Field(None, description="Postal code of the practice")
    email: Optional[str] = Field(None, description="Contact email")
    schedule: Optional[WeeklySchedule] = Field(None, description="Weekly availability")

    @field_validator("specialization", mode="before")
    @classmethod
    def default_specialization(cls, v):
        return v or "General"

    @field_validator("city", "pincode", mode="before")
    @classmethod
    def blank_location_to_none(cls, v):
        if v is None:
            return None
        return str(v).strip() or None

    @property
    def is_approved(self) -> bool:
        return self.role == "doctor" and self.status == DoctorStatus.APPROVED

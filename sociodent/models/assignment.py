"""
Result types produced by the doctor matcher.

Every matcher operation returns an ``AssignmentResult``; validation failures
and empty matches are outcomes, not exceptions.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .appointment import AppointmentRequest
from .doctor import Doctor


class AssignmentOutcome(str, Enum):
    """Typed outcome of an assignment attempt."""
    ASSIGNED = "assigned"
    ALREADY_ASSIGNED = "already_assigned"
    NO_CANDIDATES = "no_candidates"
    DOCTOR_NOT_FOUND = "doctor_not_found"
    DOCTOR_NOT_APPROVED = "doctor_not_approved"
    SCHEDULE_CONFLICT = "schedule_conflict"
    STALE_WRITE = "stale_write"
    INVALID_STATUS = "invalid_status"
    AUDIT_FAILED = "audit_failed"


# Outcomes a caller can resolve by retrying or escalating to manual review
RECOVERABLE_OUTCOMES = frozenset({
    AssignmentOutcome.NO_CANDIDATES,
    AssignmentOutcome.STALE_WRITE,
    AssignmentOutcome.AUDIT_FAILED,
})

OUTCOME_MESSAGES = {
    AssignmentOutcome.ASSIGNED: "Doctor assigned",
    AssignmentOutcome.ALREADY_ASSIGNED: "Doctor already assigned",
    AssignmentOutcome.NO_CANDIDATES: "No doctors available at the requested time",
    AssignmentOutcome.DOCTOR_NOT_FOUND: "Doctor not found",
    AssignmentOutcome.DOCTOR_NOT_APPROVED: "Doctor is not available for assignments",
    AssignmentOutcome.SCHEDULE_CONFLICT: "Doctor is not scheduled to work at the requested time",
    AssignmentOutcome.STALE_WRITE: "Appointment was modified concurrently",
    AssignmentOutcome.INVALID_STATUS: "Appointment cannot be assigned in its current status",
    AssignmentOutcome.AUDIT_FAILED: "Reassignment rolled back because the audit entry could not be written",
}


class MatchScore(BaseModel):
    """Score breakdown for one (appointment, doctor) pair. Never persisted."""
    eligible: bool = Field(True, description="Passed approval check")
    time_available: bool = Field(True, description="Schedule covers the requested slot")
    area_bonus: float = Field(0.0, description="Location bonus: area, city or pincode (home visits)")
    specialization_bonus: float = Field(0.0, description="Bonus for symptom/specialty match")
    load_penalty: float = Field(0.0, description="Non-positive adjustment for same-day load")
    confirmed_count: int = Field(0, description="Confirmed appointments on the requested date")
    total: float = Field(0.0, description="Aggregate score")
    reasons: List[str] = Field(default_factory=list, description="Human-readable explanation")


class ScoredCandidate(BaseModel):
    """A doctor annotated with their match score."""
    doctor: Doctor
    score: MatchScore


class AssignmentResult(BaseModel):
    """Outcome of assign_best / assign_manually / reassign."""
    outcome: AssignmentOutcome
    appointment: AppointmentRequest
    doctor: Optional[Doctor] = None
    candidates: List[ScoredCandidate] = Field(default_factory=list)
    message: str = ""

    @property
    def success(self) -> bool:
        return self.outcome in (AssignmentOutcome.ASSIGNED, AssignmentOutcome.ALREADY_ASSIGNED)

    @property
    def recoverable(self) -> bool:
        return self.outcome in RECOVERABLE_OUTCOMES

    @classmethod
    def of(
        cls,
        outcome: AssignmentOutcome,
        appointment: AppointmentRequest,
        doctor: Optional[Doctor] = None,
        candidates: Optional[List[ScoredCandidate]] = None,
        message: Optional[str] = None
    ) -> "AssignmentResult":
        return cls(
            outcome=outcome,
            appointment=appointment,
            doctor=doctor,
            candidates=candidates or [],
            message=message or OUTCOME_MESSAGES[outcome],
        )


class BatchAssignmentSummary(BaseModel):
    """Totals for a sweep over pending appointments."""
    total: int = 0
    successful: int = 0
    failed: int = 0
    details: List[Dict[str, Any]] = Field(default_factory=list)

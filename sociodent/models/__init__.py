"""Domain models for doctor matching."""

from .doctor import Doctor, DoctorStatus, WeeklySchedule
from .appointment import (
    AppointmentRequest,
    AppointmentStatus,
    AssignmentType,
    AuditEntry,
    ConsultationType,
)
from .assignment import (
    AssignmentOutcome,
    AssignmentResult,
    BatchAssignmentSummary,
    MatchScore,
    ScoredCandidate,
)

__all__ = [
    "Doctor",
    "DoctorStatus",
    "WeeklySchedule",
    "AppointmentRequest",
    "AppointmentStatus",
    "AssignmentType",
    "AuditEntry",
    "ConsultationType",
    "AssignmentOutcome",
    "AssignmentResult",
    "BatchAssignmentSummary",
    "MatchScore",
    "ScoredCandidate",
]

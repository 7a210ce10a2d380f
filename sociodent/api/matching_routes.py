"""
Doctor Matching API

Admin endpoints for listing candidate doctors, running automatic assignment,
choosing a doctor manually and reassigning confirmed appointments.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..config import get_settings
from ..database import get_supabase_client
from ..exceptions import AppointmentNotFoundError, StorageError
from ..models import AssignmentOutcome, AssignmentResult, MatchScore
from ..services.matching import DoctorMatcher
from ..services.notifications import (
    InMemoryNotificationBackend,
    NotificationService,
    SupabaseNotificationBackend,
)
from ..storage import AppointmentStore, InMemoryAppointmentStore, SupabaseAppointmentStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/matching", tags=["Doctor Matching"])

# HTTP status for outcomes that are not a plain success
OUTCOME_STATUS_CODES = {
    AssignmentOutcome.DOCTOR_NOT_FOUND: 404,
    AssignmentOutcome.DOCTOR_NOT_APPROVED: 422,
    AssignmentOutcome.SCHEDULE_CONFLICT: 409,
    AssignmentOutcome.STALE_WRITE: 409,
    AssignmentOutcome.INVALID_STATUS: 409,
    AssignmentOutcome.AUDIT_FAILED: 503,
}

# Process-wide instances for the in-memory backend
_memory_store: Optional[InMemoryAppointmentStore] = None
_memory_notifications: Optional[InMemoryNotificationBackend] = None


# Request/response models

class ManualAssignmentRequest(BaseModel):
    doctor_id: str = Field(..., min_length=1)
    assigned_by: str = Field(..., min_length=1, description="Admin performing the assignment")


class ReassignmentRequest(BaseModel):
    doctor_id: str = Field(..., min_length=1, description="New doctor")
    reassigned_by: str = Field(..., min_length=1)
    reason: Optional[str] = None


class CandidateResponse(BaseModel):
    doctor_id: str
    doctor_name: str
    specialization: str
    area: Optional[str] = None
    score: MatchScore


class AssignmentResponse(BaseModel):
    success: bool
    outcome: AssignmentOutcome
    message: str
    appointment_id: str
    status: str
    doctor_id: Optional[str] = None
    doctor_name: Optional[str] = None
    assignment_type: Optional[str] = None
    score: Optional[float] = None
    audit_trail: List[Dict[str, Any]] = Field(default_factory=list)


# Dependencies

def get_store() -> AppointmentStore:
    """Resolve the configured appointment store."""
    global _memory_store
    settings = get_settings()
    if settings.store_backend == "supabase":
        return SupabaseAppointmentStore(get_supabase_client(settings.supabase_schema))

    if _memory_store is None:
        _memory_store = InMemoryAppointmentStore()
        logger.info("Using in-memory appointment store")
    return _memory_store


def get_notification_service() -> NotificationService:
    """Resolve the notification backend matching the store backend."""
    global _memory_notifications
    settings = get_settings()
    if settings.store_backend == "supabase":
        return NotificationService(
            SupabaseNotificationBackend(get_supabase_client(settings.supabase_schema))
        )

    if _memory_notifications is None:
        _memory_notifications = InMemoryNotificationBackend()
    return NotificationService(_memory_notifications)


def get_matcher(
    store: AppointmentStore = Depends(get_store),
    notifications: NotificationService = Depends(get_notification_service)
) -> DoctorMatcher:
    return DoctorMatcher(store, notifications=notifications, settings=get_settings())


# Helpers

def _to_response(result: AssignmentResult) -> AssignmentResponse:
    """Map a matcher result to a response body, raising for error outcomes."""
    status_code = OUTCOME_STATUS_CODES.get(result.outcome)
    if status_code is not None:
        raise HTTPException(
            status_code=status_code,
            detail={"outcome": result.outcome.value, "message": result.message},
        )

    appointment = result.appointment
    return AssignmentResponse(
        success=result.success,
        outcome=result.outcome,
        message=result.message,
        appointment_id=appointment.id,
        status=appointment.status.value,
        doctor_id=appointment.doctor_id,
        doctor_name=appointment.doctor_name,
        assignment_type=appointment.assignment_type.value if appointment.assignment_type else None,
        score=result.candidates[0].score.total if result.candidates else None,
        audit_trail=[entry.model_dump(mode="json") for entry in appointment.audit_trail],
    )


async def _load_appointment(store: AppointmentStore, appointment_id: str):
    try:
        return await store.load_appointment(appointment_id)
    except AppointmentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


def _appointment_gone(e: AppointmentNotFoundError) -> HTTPException:
    logger.warning(f"Appointment removed during matching: {e}")
    return HTTPException(status_code=404, detail=str(e))


def _storage_failure(action: str, e: StorageError) -> HTTPException:
    logger.error(f"Storage error while {action}: {e.message}")
    return HTTPException(status_code=500, detail=f"Storage error while {action}")


# Endpoints

@router.get("/appointments/{appointment_id}/candidates", response_model=List[CandidateResponse])
async def list_candidates(
    appointment_id: str,
    store: AppointmentStore = Depends(get_store),
    matcher: DoctorMatcher = Depends(get_matcher)
):
    """
    Ranked doctors who could take this appointment

    Used by the admin panel to pick a doctor manually.
    """
    appointment = await _load_appointment(store, appointment_id)
    try:
        doctor_pool = await store.load_doctor_pool()
        ranked = await matcher.list_candidates(appointment, doctor_pool)
    except AppointmentNotFoundError as e:
        raise _appointment_gone(e)
    except StorageError as e:
        raise _storage_failure("listing candidates", e)

    return [
        CandidateResponse(
            doctor_id=candidate.doctor.id,
            doctor_name=candidate.doctor.name,
            specialization=candidate.doctor.specialization,
            area=candidate.doctor.area,
            score=candidate.score,
        )
        for candidate in ranked
    ]


@router.post("/appointments/{appointment_id}/assign", response_model=AssignmentResponse)
async def assign_best_doctor(
    appointment_id: str,
    store: AppointmentStore = Depends(get_store),
    matcher: DoctorMatcher = Depends(get_matcher)
):
    """Assign the best available doctor automatically"""
    appointment = await _load_appointment(store, appointment_id)
    try:
        doctor_pool = await store.load_doctor_pool()
        result = await matcher.assign_best(appointment, doctor_pool)
    except AppointmentNotFoundError as e:
        raise _appointment_gone(e)
    except StorageError as e:
        raise _storage_failure("assigning doctor", e)

    return _to_response(result)


@router.post("/appointments/{appointment_id}/assign-manual", response_model=AssignmentResponse)
async def assign_doctor_manually(
    appointment_id: str,
    request: ManualAssignmentRequest,
    store: AppointmentStore = Depends(get_store),
    matcher: DoctorMatcher = Depends(get_matcher)
):
    """Assign an admin-chosen doctor (must be approved and scheduled)"""
    appointment = await _load_appointment(store, appointment_id)
    try:
        doctor_pool = await store.load_doctor_pool()
        result = await matcher.assign_manually(
            appointment, request.doctor_id, doctor_pool, actor=request.assigned_by
        )
    except AppointmentNotFoundError as e:
        raise _appointment_gone(e)
    except StorageError as e:
        raise _storage_failure("assigning doctor", e)

    return _to_response(result)


@router.post("/appointments/{appointment_id}/reassign", response_model=AssignmentResponse)
async def reassign_doctor(
    appointment_id: str,
    request: ReassignmentRequest,
    store: AppointmentStore = Depends(get_store),
    matcher: DoctorMatcher = Depends(get_matcher)
):
    """Move a confirmed appointment to a different doctor, recording the change"""
    appointment = await _load_appointment(store, appointment_id)
    try:
        doctor_pool = await store.load_doctor_pool()
        result = await matcher.reassign(
            appointment,
            request.doctor_id,
            doctor_pool,
            actor=request.reassigned_by,
            reason=request.reason,
        )
    except AppointmentNotFoundError as e:
        raise _appointment_gone(e)
    except StorageError as e:
        raise _storage_failure("reassigning doctor", e)

    return _to_response(result)


@router.post("/assign-pending")
async def assign_pending_appointments(matcher: DoctorMatcher = Depends(get_matcher)):
    """Run automatic assignment over every pending appointment"""
    try:
        summary = await matcher.assign_all_pending()
    except StorageError as e:
        raise _storage_failure("assigning pending appointments", e)

    return summary.model_dump()

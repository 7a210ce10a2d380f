"""
Doctor Matcher

Selects a doctor for a pending appointment request, either automatically
(best-scoring eligible doctor) or on behalf of an admin (manual assignment
and reassignment).

Integration points:
- Called by the matching API routes for single appointments
- Called by PendingAssignmentSweep for the periodic batch
- Persists through an AppointmentStore (conditional writes only)

Every operation returns an AssignmentResult. Validation failures, empty
matches and lost races are outcomes for the caller to act on; nothing here
retries.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from ...config import MatchingSettings
from ...exceptions import StorageError
from ...models import (
    AppointmentRequest,
    AppointmentStatus,
    AssignmentOutcome,
    AssignmentResult,
    AssignmentType,
    AuditEntry,
    BatchAssignmentSummary,
    Doctor,
    ScoredCandidate,
)
from ...storage.base import AppointmentStore, SaveResult, WriteCondition
from ..notifications import NotificationService
from .constraint_engine import ConstraintEngine
from .preference_scorer import PreferenceScorer

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DoctorMatcher:
    """
    Matches appointment requests to doctors.

    The ranking itself (find_eligible_doctors, score_candidates) is pure.
    The assign operations read same-day bookings if not supplied, write the
    confirmed appointment through the store, and send notifications.
    """

    def __init__(
        self,
        store: AppointmentStore,
        constraint_engine: Optional[ConstraintEngine] = None,
        scorer: Optional[PreferenceScorer] = None,
        notifications: Optional[NotificationService] = None,
        settings: Optional[MatchingSettings] = None,
        clock: Callable[[], datetime] = _utcnow
    ):
        """
        Initialize doctor matcher.

        Args:
            store: Storage collaborator for reads and conditional writes
            constraint_engine: Hard eligibility checks
            scorer: Soft preference scoring (built from settings if omitted)
            notifications: Optional notification service for assignment events
            settings: Matching weights
            clock: Source of timestamps (injectable for tests)
        """
        self.store = store
        self.constraints = constraint_engine or ConstraintEngine()
        self.scorer = scorer or PreferenceScorer(settings)
        self.notifications = notifications
        self.clock = clock

    # ------------------------------------------------------------------
    # Ranking
    # ------------------------------------------------------------------

    def find_eligible_doctors(
        self,
        request: AppointmentRequest,
        doctor_pool: Sequence[Doctor],
        booked: Sequence[AppointmentRequest] = ()
    ) -> List[Doctor]:
        """
        Filter the pool down to doctors who can take this appointment.

        Pipeline, in order: approved only; schedule covers the weekday and
        time outside any break; no other booking at the same slot. There is
        no area filter.

        Args:
            request: Appointment request
            doctor_pool: All registered doctors, any status
            booked: Snapshot of existing appointments

        Returns:
            Eligible doctors in pool order; empty when nobody is available
        """
        approved = [d for d in doctor_pool if self.constraints.check_approval(d)]
        scheduled = [
            d for d in approved
            if self.constraints.check_schedule(d, request.date, request.time)
        ]
        eligible = [
            d for d in scheduled
            if self.constraints.check_slot_free(
                d, request.date, request.time, booked, exclude_appointment_id=request.id
            )
        ]

        logger.debug(
            f"Appointment {request.id}: {len(doctor_pool)} doctors, {len(approved)} approved, "
            f"{len(scheduled)} scheduled, {len(eligible)} eligible"
        )
        return eligible

    def score_candidates(
        self,
        request: AppointmentRequest,
        candidates: Sequence[Doctor],
        booked: Sequence[AppointmentRequest] = ()
    ) -> List[ScoredCandidate]:
        """Score candidates and sort best first (deterministic)."""
        return self.scorer.rank(request, candidates, booked)

    async def list_candidates(
        self,
        request: AppointmentRequest,
        doctor_pool: Sequence[Doctor],
        booked: Optional[Sequence[AppointmentRequest]] = None
    ) -> List[ScoredCandidate]:
        """Ranked eligible doctors for the admin's manual selection view."""
        booked = await self._booked_for(request, booked)
        eligible = self.find_eligible_doctors(request, doctor_pool, booked)
        return self.score_candidates(request, eligible, booked)

    # ------------------------------------------------------------------
    # Assignment
    # ------------------------------------------------------------------

    async def assign_best(
        self,
        request: AppointmentRequest,
        doctor_pool: Sequence[Doctor],
        booked: Optional[Sequence[AppointmentRequest]] = None
    ) -> AssignmentResult:
        """
        Confirm the appointment with the top-ranked eligible doctor.

        Returns:
            ASSIGNED with the persisted appointment, NO_CANDIDATES with the
            request unchanged, STALE_WRITE if another writer got there first,
            ALREADY_ASSIGNED / INVALID_STATUS for non-pending requests
        """
        if not request.is_pending:
            return self._not_pending(request)

        booked = await self._booked_for(request, booked)
        eligible = self.find_eligible_doctors(request, doctor_pool, booked)
        ranked = self.score_candidates(request, eligible, booked)

        if not ranked:
            logger.info("matching.no_candidates", extra={
                "appointment_id": request.id,
                "date": request.date.isoformat(),
                "time": request.time.isoformat(),
                "pool_size": len(doctor_pool),
            })
            return AssignmentResult.of(AssignmentOutcome.NO_CANDIDATES, request)

        best = ranked[0]
        return await self._confirm(
            request,
            best.doctor,
            assignment_type=AssignmentType.AUTO,
            actor=None,
            condition=WriteCondition.still_pending(),
            candidates=ranked,
        )

    async def assign_manually(
        self,
        request: AppointmentRequest,
        doctor_id: str,
        doctor_pool: Sequence[Doctor],
        actor: str,
        booked: Optional[Sequence[AppointmentRequest]] = None
    ) -> AssignmentResult:
        """
        Confirm the appointment with an admin-chosen doctor.

        The chosen doctor must exist, be approved and pass the same schedule
        checks as automatic assignment; the score ranking is not consulted.
        """
        if not request.is_pending:
            return self._not_pending(request)

        booked = await self._booked_for(request, booked)
        doctor, failure = self._validate_choice(request, doctor_id, doctor_pool, booked)
        if failure is not None:
            return failure

        return await self._confirm(
            request,
            doctor,
            assignment_type=AssignmentType.MANUAL,
            actor=actor,
            condition=WriteCondition.still_pending(),
        )

    async def reassign(
        self,
        request: AppointmentRequest,
        new_doctor_id: str,
        doctor_pool: Sequence[Doctor],
        actor: str,
        reason: Optional[str] = None,
        booked: Optional[Sequence[AppointmentRequest]] = None
    ) -> AssignmentResult:
        """
        Move a confirmed appointment to a different doctor.

        Applies the manual-assignment checks, writes only if the appointment
        still belongs to the previous doctor, then appends one audit entry.
        If the audit entry cannot be written the previous doctor is restored
        and the outcome is AUDIT_FAILED.
        """
        if request.status != AppointmentStatus.CONFIRMED or not request.has_doctor:
            return AssignmentResult.of(
                AssignmentOutcome.INVALID_STATUS,
                request,
                message="Only confirmed appointments with a doctor can be reassigned",
            )

        if request.doctor_id == new_doctor_id:
            return AssignmentResult.of(AssignmentOutcome.ALREADY_ASSIGNED, request)

        booked = await self._booked_for(request, booked)
        doctor, failure = self._validate_choice(request, new_doctor_id, doctor_pool, booked)
        if failure is not None:
            return failure

        previous_id = request.doctor_id
        previous_name = request.doctor_name

        result = await self._confirm(
            request,
            doctor,
            assignment_type=AssignmentType.MANUAL,
            actor=actor,
            condition=WriteCondition.still_assigned_to(previous_id),
            notify=False,
        )
        if result.outcome != AssignmentOutcome.ASSIGNED:
            return result

        entry = AuditEntry(
            previous_doctor_id=previous_id,
            previous_doctor_name=previous_name,
            new_doctor_id=doctor.id,
            new_doctor_name=doctor.name,
            actor=actor,
            reason=reason,
            timestamp=result.appointment.updated_at,
        )
        try:
            await self.store.append_audit_entry(request.id, entry)
        except StorageError as e:
            return await self._roll_back_reassignment(request, doctor, e)
        result.appointment.audit_trail.append(entry)

        logger.info("matching.reassigned", extra={
            "appointment_id": request.id,
            "previous_doctor_id": previous_id,
            "new_doctor_id": doctor.id,
            "actor": actor,
        })
        if self.notifications is not None:
            await self.notifications.notify_assignment(doctor, result.appointment)
        result.message = "Doctor reassigned"
        return result

    async def _roll_back_reassignment(
        self,
        request: AppointmentRequest,
        doctor: Doctor,
        error: StorageError
    ) -> AssignmentResult:
        """Restore the previous doctor when the audit entry could not be written."""
        restored = await self.store.save(request, WriteCondition.still_assigned_to(doctor.id))
        if restored == SaveResult.CONFLICT:
            logger.error("matching.reassign_rollback_conflict", extra={
                "appointment_id": request.id,
                "doctor_id": doctor.id,
                "error": str(error),
            })
        else:
            logger.warning("matching.reassign_rolled_back", extra={
                "appointment_id": request.id,
                "previous_doctor_id": request.doctor_id,
                "new_doctor_id": doctor.id,
                "error": str(error),
            })
        return AssignmentResult.of(AssignmentOutcome.AUDIT_FAILED, request, doctor=doctor)

    async def assign_all_pending(self) -> BatchAssignmentSummary:
        """
        Run automatic assignment over every pending appointment.

        A failure on one appointment is recorded in the summary and the batch
        continues.
        """
        doctor_pool = await self.store.load_doctor_pool()
        pending = await self.store.load_pending_appointments()
        summary = BatchAssignmentSummary(total=len(pending))

        # Same-day snapshots, refreshed per date as assignments land
        booked_by_date = {}

        for appointment in pending:
            detail = {"appointment_id": appointment.id}
            try:
                if appointment.date not in booked_by_date:
                    booked_by_date[appointment.date] = await self.store.load_appointments_on(
                        appointment.date
                    )
                booked = booked_by_date[appointment.date]

                result = await self.assign_best(appointment, doctor_pool, booked)
                detail.update({
                    "outcome": result.outcome.value,
                    "message": result.message,
                    "doctor_id": result.doctor.id if result.doctor else None,
                    "score": result.candidates[0].score.total if result.candidates else None,
                })

                if result.outcome == AssignmentOutcome.ASSIGNED:
                    summary.successful += 1
                    booked_by_date[appointment.date] = [
                        a for a in booked if a.id != appointment.id
                    ] + [result.appointment]
                else:
                    summary.failed += 1

            except Exception as e:
                logger.error(f"Error assigning appointment {appointment.id}: {e}")
                detail.update({"outcome": "error", "message": str(e), "doctor_id": None, "score": None})
                summary.failed += 1

            summary.details.append(detail)

        logger.info(
            f"Pending assignment batch complete: {summary.successful}/{summary.total} assigned, "
            f"{summary.failed} not assigned"
        )
        return summary

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _booked_for(
        self,
        request: AppointmentRequest,
        booked: Optional[Sequence[AppointmentRequest]]
    ) -> List[AppointmentRequest]:
        if booked is not None:
            return list(booked)
        return await self.store.load_appointments_on(request.date)

    def _not_pending(self, request: AppointmentRequest) -> AssignmentResult:
        if request.status == AppointmentStatus.CONFIRMED and request.has_doctor:
            return AssignmentResult.of(AssignmentOutcome.ALREADY_ASSIGNED, request)
        return AssignmentResult.of(
            AssignmentOutcome.INVALID_STATUS,
            request,
            message=f"Appointment is {request.status.value}, not pending",
        )

    def _validate_choice(
        self,
        request: AppointmentRequest,
        doctor_id: str,
        doctor_pool: Sequence[Doctor],
        booked: Sequence[AppointmentRequest]
    ):
        """Returns (doctor, None) when valid, else (None, failure result)."""
        doctor = next((d for d in doctor_pool if d.id == doctor_id), None)
        if doctor is None:
            return None, AssignmentResult.of(
                AssignmentOutcome.DOCTOR_NOT_FOUND,
                request,
                message=f"Doctor {doctor_id} not found",
            )

        failure = self.constraints.evaluate(doctor, request, booked)
        if failure is not None:
            logger.info("matching.manual_rejected", extra={
                "appointment_id": request.id,
                "doctor_id": doctor_id,
                "outcome": failure.value,
            })
            return None, AssignmentResult.of(failure, request, doctor=doctor)

        return doctor, None

    async def _confirm(
        self,
        request: AppointmentRequest,
        doctor: Doctor,
        assignment_type: AssignmentType,
        actor: Optional[str],
        condition: WriteCondition,
        candidates: Optional[List[ScoredCandidate]] = None,
        notify: bool = True
    ) -> AssignmentResult:
        now = self.clock()
        updated = request.model_copy(deep=True, update={
            "status": AppointmentStatus.CONFIRMED,
            "doctor_id": doctor.id,
            "doctor_name": doctor.name,
            "specialization": doctor.specialization,
            "assignment_type": assignment_type,
            "assigned_by": actor,
            "assigned_at": now,
            "updated_at": now,
            "assignment_warning": None,
        })

        if await self.store.save(updated, condition) == SaveResult.CONFLICT:
            logger.warning("matching.stale_write", extra={
                "appointment_id": request.id,
                "doctor_id": doctor.id,
            })
            return AssignmentResult.of(
                AssignmentOutcome.STALE_WRITE, request, doctor=doctor, candidates=candidates
            )

        logger.info("matching.assigned", extra={
            "appointment_id": request.id,
            "doctor_id": doctor.id,
            "assignment_type": assignment_type.value,
            "assigned_by": actor,
        })

        if notify and self.notifications is not None:
            await self.notifications.notify_assignment(doctor, updated)

        return AssignmentResult.of(
            AssignmentOutcome.ASSIGNED,
            updated,
            doctor=doctor,
            candidates=candidates,
            message=f"Assigned to {doctor.name}",
        )

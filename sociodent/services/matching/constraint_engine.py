"""
Constraint Engine for Doctor Matching.

Checks hard constraints that decide whether a doctor may take an appointment.
"""

import logging
from datetime import date, time
from typing import Dict, Iterable, Optional

from ...models import AppointmentRequest, AppointmentStatus, AssignmentOutcome, Doctor
from ...utils.time_parsing import weekday_key

logger = logging.getLogger(__name__)

# Appointments in these states hold the doctor's slot
SLOT_HOLDING_STATUSES = (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED)


class ConstraintEngine:
    """
    Validates hard constraints for assigning a doctor.

    Hard constraints are binary checks (pass/fail) that must all be satisfied
    for a doctor to be eligible. This includes:
    - Approval status (approved doctors only)
    - Weekly schedule (weekday, working window, break window)
    - Slot occupancy (no double booking at the same date and time)

    Area is deliberately not a constraint; it only affects ranking.
    """

    def check_approval(self, doctor: Doctor) -> bool:
        """
        Verify the doctor account is an approved doctor.

        Args:
            doctor: Doctor to check

        Returns:
            True if role is doctor and status is approved
        """
        if not doctor.is_approved:
            logger.debug(
                f"Doctor {doctor.id} not eligible: role={doctor.role}, status={doctor.status.value}"
            )
            return False
        return True

    def check_schedule(self, doctor: Doctor, day: date, at: time) -> bool:
        """
        Verify the doctor is working at this date and time.

        The working window is half-open, ``[start_time, end_time)``, and so is
        the break, ``[break_start_time, break_end_time)``.

        Args:
            doctor: Doctor to check
            day: Requested calendar date
            at: Requested time of day

        Returns:
            True if the schedule covers the slot, False otherwise
        """
        schedule = doctor.schedule
        if schedule is None:
            logger.debug(f"No schedule found for doctor {doctor.id}")
            return False

        day_name = weekday_key(day)
        if not schedule.works_on(day_name):
            logger.debug(f"Doctor {doctor.id} does not work on {day_name}")
            return False

        if not (schedule.start_time <= at < schedule.end_time):
            logger.debug(
                f"Slot {at} outside working hours {schedule.start_time}-{schedule.end_time} "
                f"for doctor {doctor.id}"
            )
            return False

        if schedule.has_break and schedule.break_start_time <= at < schedule.break_end_time:
            logger.debug(f"Slot {at} falls in break for doctor {doctor.id}")
            return False

        return True

    def check_slot_free(
        self,
        doctor: Doctor,
        day: date,
        at: time,
        booked: Iterable[AppointmentRequest],
        exclude_appointment_id: Optional[str] = None
    ) -> bool:
        """
        Verify the doctor has no other appointment at this exact slot.

        Args:
            doctor: Doctor to check
            day: Requested calendar date
            at: Requested time of day
            booked: Snapshot of appointments (any doctor, any date)
            exclude_appointment_id: Appointment being (re)assigned

        Returns:
            True if the slot is free, False if already held
        """
        for appointment in booked:
            if appointment.id == exclude_appointment_id:
                continue
            if (
                appointment.doctor_id == doctor.id
                and appointment.date == day
                and appointment.time == at
                and appointment.status in SLOT_HOLDING_STATUSES
            ):
                logger.debug(
                    f"Doctor {doctor.id} already has appointment {appointment.id} at {day} {at}"
                )
                return False
        return True

    def check_all_constraints(
        self,
        doctor: Doctor,
        request: AppointmentRequest,
        booked: Iterable[AppointmentRequest] = ()
    ) -> Dict[str, bool]:
        """
        Check all constraints for a doctor against a request.

        Returns:
            Dict with constraint check results (all must be True for eligibility)
        """
        return {
            "doctor_approved": self.check_approval(doctor),
            "doctor_schedule": self.check_schedule(doctor, request.date, request.time),
            "slot_free": self.check_slot_free(
                doctor, request.date, request.time, booked, exclude_appointment_id=request.id
            ),
        }

    def is_eligible(self, checks: Dict[str, bool]) -> bool:
        """Determine if all constraint checks passed."""
        return all(checks.values())

    def evaluate(
        self,
        doctor: Doctor,
        request: AppointmentRequest,
        booked: Iterable[AppointmentRequest] = ()
    ) -> Optional[AssignmentOutcome]:
        """
        Return the first failing constraint as a typed outcome.

        Returns:
            None if the doctor is eligible, DOCTOR_NOT_APPROVED if the approval
            check fails, SCHEDULE_CONFLICT for schedule or occupancy failures
        """
        if not self.check_approval(doctor):
            return AssignmentOutcome.DOCTOR_NOT_APPROVED
        if not self.check_schedule(doctor, request.date, request.time):
            return AssignmentOutcome.SCHEDULE_CONFLICT
        if not self.check_slot_free(
            doctor, request.date, request.time, booked, exclude_appointment_id=request.id
        ):
            return AssignmentOutcome.SCHEDULE_CONFLICT
        return None

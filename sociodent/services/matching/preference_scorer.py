"""
Preference Scorer for Doctor Matching.

Scores eligible doctors on soft preferences: location for home visits (area,
then city, then pincode proximity), specialization relevance to the symptoms
and same-day workload.
"""

import logging
from typing import Iterable, List, Optional, Tuple

from ...config import MatchingSettings
from ...domain.specialization import (
    DEFAULT_SPECIALTY_WEIGHTS,
    display_name,
    match_specialization,
    normalize_specialty,
)
from ...models import (
    AppointmentRequest,
    AppointmentStatus,
    ConsultationType,
    Doctor,
    MatchScore,
    ScoredCandidate,
)

logger = logging.getLogger(__name__)


def _normalize_area(area: Optional[str]) -> str:
    return " ".join((area or "").split()).casefold()


def _shared_pincode_prefix(patient: Optional[str], doctor: Optional[str]) -> str:
    """
    "exact" for identical codes, else the shared leading digit count ("3", "2",
    "1") capped at 3, or "" when nothing is shared.
    """
    if not patient or not doctor:
        return ""
    if patient == doctor:
        return "exact"
    shared = 0
    for a, b in zip(patient[:3], doctor[:3]):
        if a != b:
            break
        shared += 1
    return str(shared) if shared else ""


class PreferenceScorer:
    """
    Scores doctors for an appointment based on soft preferences.

    Soft preferences are additive bonuses and penalties that affect ranking
    but never eliminate a doctor. Higher totals indicate better matches.
    """

    def __init__(self, settings: Optional[MatchingSettings] = None):
        """
        Initialize preference scorer with matching settings.

        Args:
            settings: Weights; defaults are used when omitted
        """
        settings = settings or MatchingSettings()
        self.area_match_bonus = settings.area_match_bonus
        self.city_match_bonus = settings.city_match_bonus
        self.pincode_bonuses = {
            "exact": settings.pincode_exact_bonus,
            "3": settings.pincode_prefix3_bonus,
            "2": settings.pincode_prefix2_bonus,
            "1": settings.pincode_prefix1_bonus,
        }
        self.load_penalty_per_appointment = settings.load_penalty_per_appointment
        self.specialization_weights = dict(DEFAULT_SPECIALTY_WEIGHTS)
        self.specialization_weights.update(settings.specialization_weights)

    def score_area(self, request: AppointmentRequest, doctor: Doctor) -> float:
        """
        Location bonus for a home visit.

        Returns:
            area_match_bonus for the same area, a smaller city or pincode
            fallback otherwise, 0.0 for non-home consultations
        """
        return self.score_location(request, doctor)[0]

    def score_location(
        self,
        request: AppointmentRequest,
        doctor: Doctor
    ) -> Tuple[float, Optional[str]]:
        """
        Best location tier for a home visit, with the reason shown to admins.

        Tiers are tried in order: same area, same city, then the longest
        shared pincode prefix (full code, 3, 2 or 1 digits). Only the first
        tier that applies counts.
        """
        if request.consultation_type != ConsultationType.HOME:
            return 0.0, None

        patient_area = _normalize_area(request.area)
        if patient_area and patient_area == _normalize_area(doctor.area):
            return self.area_match_bonus, f"Serves the patient's area ({doctor.area})"

        patient_city = _normalize_area(request.city)
        if patient_city and patient_city == _normalize_area(doctor.city) and self.city_match_bonus:
            return self.city_match_bonus, f"Practices in the patient's city ({doctor.city})"

        shared = _shared_pincode_prefix(request.pincode, doctor.pincode)
        bonus = self.pincode_bonuses.get(shared, 0.0)
        if bonus:
            return bonus, f"Pincode {doctor.pincode} is near the patient's pincode {request.pincode}"

        return 0.0, None

    def score_specialization(self, request: AppointmentRequest, doctor: Doctor) -> float:
        """
        Bonus when the doctor's specialty is suggested by the symptom text.

        Returns:
            The specialty's weight (once, however many keywords match), else 0.0
        """
        specialty, keywords = match_specialization(doctor.specialization, request.symptoms)
        if not keywords:
            return 0.0
        return self.specialization_weights.get(specialty, 0.0)

    @staticmethod
    def count_confirmed(
        doctor: Doctor,
        request: AppointmentRequest,
        booked: Iterable[AppointmentRequest]
    ) -> int:
        """Confirmed appointments the doctor already has on the requested date."""
        return sum(
            1 for appointment in booked
            if appointment.doctor_id == doctor.id
            and appointment.date == request.date
            and appointment.status == AppointmentStatus.CONFIRMED
            and appointment.id != request.id
        )

    def score_load(self, confirmed_count: int) -> float:
        """Penalty proportional to same-day workload (0.0 or negative)."""
        return -self.load_penalty_per_appointment * confirmed_count

    def score(
        self,
        request: AppointmentRequest,
        doctor: Doctor,
        booked: Iterable[AppointmentRequest] = ()
    ) -> MatchScore:
        """
        Calculate the aggregate score for one doctor.

        Args:
            request: Appointment being matched
            doctor: Eligible doctor
            booked: Snapshot of appointments used for the load adjustment

        Returns:
            MatchScore with component breakdown and explanations
        """
        area_bonus, location_reason = self.score_location(request, doctor)
        specialization_bonus = self.score_specialization(request, doctor)
        confirmed_count = self.count_confirmed(doctor, request, booked)
        load_penalty = self.score_load(confirmed_count)

        total = area_bonus + specialization_bonus + load_penalty

        logger.debug(
            f"Doctor {doctor.id} scored {total:.2f} "
            f"(area={area_bonus}, specialization={specialization_bonus}, load={load_penalty})"
        )

        return MatchScore(
            area_bonus=area_bonus,
            specialization_bonus=specialization_bonus,
            load_penalty=load_penalty,
            confirmed_count=confirmed_count,
            total=total,
            reasons=self.generate_explanations(
                doctor, area_bonus, specialization_bonus, confirmed_count, location_reason
            ),
        )

    def rank(
        self,
        request: AppointmentRequest,
        candidates: Iterable[Doctor],
        booked: Iterable[AppointmentRequest] = ()
    ) -> List[ScoredCandidate]:
        """
        Score and order candidates.

        Order: total score descending, then fewer confirmed appointments on
        the date, then doctor id ascending.
        """
        booked = list(booked)
        scored = [
            ScoredCandidate(doctor=doctor, score=self.score(request, doctor, booked))
            for doctor in candidates
        ]
        scored.sort(key=lambda c: (-c.score.total, c.score.confirmed_count, c.doctor.id))
        return scored

    @staticmethod
    def generate_explanations(
        doctor: Doctor,
        area_bonus: float,
        specialization_bonus: float,
        confirmed_count: int,
        location_reason: Optional[str] = None
    ) -> List[str]:
        """Human-readable reasons shown in the admin candidate list."""
        explanations = []
        if area_bonus > 0:
            explanations.append(location_reason or f"Serves the patient's area ({doctor.area})")
        if specialization_bonus > 0:
            explanations.append(
                f"{display_name(normalize_specialty(doctor.specialization))} "
                f"matches the described symptoms"
            )
        if confirmed_count == 0:
            explanations.append("No other confirmed appointments that day")
        else:
            explanations.append(f"{confirmed_count} confirmed appointment(s) that day")
        return explanations

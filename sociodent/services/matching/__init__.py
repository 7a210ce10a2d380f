"""
Doctor matching services.

ConstraintEngine decides who may take an appointment, PreferenceScorer ranks
them, DoctorMatcher persists the choice.
"""

from .constraint_engine import ConstraintEngine
from .doctor_matcher import DoctorMatcher
from .pending_sweep import PendingAssignmentSweep
from .preference_scorer import PreferenceScorer

__all__ = [
    "ConstraintEngine",
    "DoctorMatcher",
    "PendingAssignmentSweep",
    "PreferenceScorer",
]

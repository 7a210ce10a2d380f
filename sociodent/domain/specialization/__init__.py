"""
Specialization domain module.

Provides centralized specialty normalization and symptom keyword matching.
"""
from .mapping import (
    normalize_specialty,
    display_name,
    infer_specialties,
    match_specialization,
    CANONICAL_SPECIALTIES,
    DEFAULT_SPECIALTY_WEIGHTS,
    SPECIALTY_ALIASES,
    SYMPTOM_KEYWORDS,
)

__all__ = [
    "normalize_specialty",
    "display_name",
    "infer_specialties",
    "match_specialization",
    "CANONICAL_SPECIALTIES",
    "DEFAULT_SPECIALTY_WEIGHTS",
    "SPECIALTY_ALIASES",
    "SYMPTOM_KEYWORDS",
]

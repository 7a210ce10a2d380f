"""
Centralized specialization mapping logic.

This module provides the canonical specialty keys and the symptom keyword
table used by:
- The preference scorer (specialization bonus)
- The admin candidate view (score explanations)

IMPORTANT: This is a keyword heuristic. It ranks doctors for a booking,
it does not triage patients. Do not treat as clinically authoritative.
"""

import logging
import re
from typing import Dict, List, Tuple

logger = logging.getLogger(__name__)

# Unknown specialty strings already reported, so a sweep logs each one once
_reported_unknown_specialties = set()

# =============================================================================
# CANONICAL SPECIALTIES
# =============================================================================
# These are the ONLY valid specialty keys. Free text is normalized to one.
CANONICAL_SPECIALTIES = {
    "general",
    "orthodontics",
    "pediatric",
    "oral_surgery",
    "periodontics",
    "endodontics",
    "prosthodontics",
    "cosmetic",
}

# Display names as they appear on doctor profiles
SPECIALTY_DISPLAY_NAMES = {
    "general": "General",
    "orthodontics": "Orthodontist",
    "pediatric": "Pediatric Dentist",
    "oral_surgery": "Oral Surgeon",
    "periodontics": "Periodontist",
    "endodontics": "Endodontist",
    "prosthodontics": "Prosthodontist",
    "cosmetic": "Cosmetic Dentist",
}

# =============================================================================
# SPECIALTY NORMALIZATION
# =============================================================================
# Maps free-text specialty strings (profile form, admin edits) to canonical keys
SPECIALTY_ALIASES = {
    # General Dentistry
    "general": "general",
    "general dentist": "general",
    "general dentistry": "general",
    "dentist": "general",
    "bds": "general",

    # Orthodontics
    "orthodontist": "orthodontics",
    "orthodontics": "orthodontics",
    "ortho": "orthodontics",

    # Pediatric
    "pediatric dentist": "pediatric",
    "pediatric dentistry": "pediatric",
    "paediatric dentist": "pediatric",
    "pedodontist": "pediatric",

    # Oral Surgery
    "oral surgeon": "oral_surgery",
    "oral surgery": "oral_surgery",
    "oral and maxillofacial surgeon": "oral_surgery",
    "oral and maxillofacial surgery": "oral_surgery",
    "maxillofacial surgeon": "oral_surgery",

    # Periodontics
    "periodontist": "periodontics",
    "periodontics": "periodontics",
    "perio": "periodontics",

    # Endodontics
    "endodontist": "endodontics",
    "endodontics": "endodontics",
    "endo": "endodontics",

    # Prosthodontics
    "prosthodontist": "prosthodontics",
    "prosthodontics": "prosthodontics",

    # Cosmetic
    "cosmetic dentist": "cosmetic",
    "cosmetic dentistry": "cosmetic",
    "aesthetic dentist": "cosmetic",
}

# =============================================================================
# SYMPTOM KEYWORDS -> SPECIALTY
# =============================================================================
SYMPTOM_KEYWORDS = {
    "orthodontics": [
        "braces", "alignment", "crooked", "bite", "jaw", "overbite", "underbite",
        "malocclusion", "teeth straightening", "misaligned",
    ],
    "pediatric": [
        "child", "baby", "kid", "children", "infant", "toddler", "pediatric",
        "young", "minor",
    ],
    "oral_surgery": [
        "surgery", "extraction", "wisdom", "implant", "trauma", "oral surgery",
        "surgical", "remove", "cut", "wisdom tooth",
    ],
    "periodontics": [
        "gum", "bleeding", "gingivitis", "periodontitis", "gum disease",
        "swollen gums", "receding", "gum infection",
    ],
    "endodontics": [
        "root canal", "nerve", "pulp", "abscess", "tooth pain", "severe pain",
        "infection", "tooth infection",
    ],
    "prosthodontics": [
        "denture", "crown", "bridge", "prosthetic", "artificial teeth",
        "replacement", "missing teeth", "partial denture",
    ],
    "cosmetic": [
        "whitening", "bleaching", "veneers", "cosmetic", "smile makeover",
        "aesthetic", "teeth whitening",
    ],
    "general": [
        "cleaning", "checkup", "routine", "cavity", "filling", "general",
        "maintenance", "polish",
    ],
}

# Default bonus per specialty when the doctor's specialty matches the symptoms
DEFAULT_SPECIALTY_WEIGHTS = {
    "orthodontics": 5.0,
    "pediatric": 5.0,
    "oral_surgery": 5.0,
    "periodontics": 4.0,
    "endodontics": 4.0,
    "prosthodontics": 4.0,
    "cosmetic": 3.0,
    "general": 2.0,
}

_KEYWORD_PATTERNS = {
    specialty: [
        (keyword, re.compile(r"\b" + re.escape(keyword) + r"(?:s|es)?\b"))
        for keyword in keywords
    ]
    for specialty, keywords in SYMPTOM_KEYWORDS.items()
}


def normalize_specialty(raw: str) -> str:
    """
    Normalize a free-text specialty string to a canonical key.

    Args:
        raw: Free-text specialty string (e.g., "Oral Surgeon", "Pediatric Dentist")

    Returns:
        Canonical specialty key (e.g., "oral_surgery", "pediatric").
        Falls back to "general" if not recognized.
    """
    if not raw:
        return "general"

    normalized = " ".join(raw.strip().lower().split())

    if normalized in SPECIALTY_ALIASES:
        return SPECIALTY_ALIASES[normalized]
    if normalized in CANONICAL_SPECIALTIES:
        return normalized

    if normalized not in _reported_unknown_specialties:
        _reported_unknown_specialties.add(normalized)
        logger.warning(f"Unknown specialty '{raw}' - defaulting to 'general'")
    return "general"


def display_name(specialty_key: str) -> str:
    """Profile-facing name for a canonical specialty key."""
    return SPECIALTY_DISPLAY_NAMES.get(specialty_key, SPECIALTY_DISPLAY_NAMES["general"])


def infer_specialties(symptoms: str) -> Dict[str, List[str]]:
    """
    Find the specialties whose keywords appear in a symptom description.

    Args:
        symptoms: Free-text description entered by the patient

    Returns:
        Canonical specialty key -> matched keywords, in table order.
        Empty dict when nothing matches.
    """
    if not symptoms:
        return {}

    text = symptoms.lower()
    matches: Dict[str, List[str]] = {}

    for specialty, patterns in _KEYWORD_PATTERNS.items():
        found = [keyword for keyword, pattern in patterns if pattern.search(text)]
        if found:
            matches[specialty] = found

    return matches


def match_specialization(specialization: str, symptoms: str) -> Tuple[str, List[str]]:
    """
    Check a doctor's specialization against a symptom description.

    Args:
        specialization: Doctor's free-text specialization
        symptoms: Patient's symptom text

    Returns:
        Tuple of (canonical specialty key, keywords that matched it)
    """
    key = normalize_specialty(specialization)
    return key, infer_specialties(symptoms).get(key, [])

"""
Application Configuration

Centralized, validated settings for the matching service.
Values come from the environment (prefix ``SOCIODENT_``) or a ``.env`` file.
"""
import logging
from typing import Dict, Literal, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .domain.specialization import DEFAULT_SPECIALTY_WEIGHTS, normalize_specialty

logger = logging.getLogger(__name__)


class MatchingSettings(BaseSettings):
    """Validated matching configuration."""

    # Storage backend for appointments and doctors
    store_backend: Literal["memory", "supabase"] = "memory"
    supabase_schema: str = "public"

    # Scoring weights
    area_match_bonus: float = Field(10.0, ge=0)
    # Home-visit fallbacks when the areas differ, tried in this order
    city_match_bonus: float = Field(6.0, ge=0)
    pincode_exact_bonus: float = Field(9.0, ge=0)
    pincode_prefix3_bonus: float = Field(7.0, ge=0)
    pincode_prefix2_bonus: float = Field(4.0, ge=0)
    pincode_prefix1_bonus: float = Field(2.0, ge=0)
    load_penalty_per_appointment: float = Field(1.0, ge=0)
    specialization_weights: Dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_SPECIALTY_WEIGHTS)
    )

    # Background sweep over pending appointments
    sweep_enabled: bool = False
    sweep_interval_minutes: int = Field(5, gt=0)

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="SOCIODENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("specialization_weights")
    @classmethod
    def normalize_weight_keys(cls, v: Dict[str, float]) -> Dict[str, float]:
        """Accept display names ("Oral Surgeon") or canonical keys; fill gaps with defaults."""
        weights = dict(DEFAULT_SPECIALTY_WEIGHTS)
        for name, weight in v.items():
            if weight < 0:
                raise ValueError(f"Specialization weight for {name} must be non-negative")
            weights[normalize_specialty(name)] = float(weight)
        return weights

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {v}")
        return level

    @model_validator(mode="after")
    def fallbacks_below_area_bonus(self) -> "MatchingSettings":
        """An exact area match must outrank every city or pincode fallback."""
        fallbacks = {
            "city_match_bonus": self.city_match_bonus,
            "pincode_exact_bonus": self.pincode_exact_bonus,
            "pincode_prefix3_bonus": self.pincode_prefix3_bonus,
            "pincode_prefix2_bonus": self.pincode_prefix2_bonus,
            "pincode_prefix1_bonus": self.pincode_prefix1_bonus,
        }
        for name, weight in fallbacks.items():
            if weight and weight >= self.area_match_bonus:
                raise ValueError(
                    f"{name} ({weight}) must be below area_match_bonus ({self.area_match_bonus})"
                )
        return self


_settings: Optional[MatchingSettings] = None


def get_settings() -> MatchingSettings:
    """Get validated settings singleton."""
    global _settings
    if _settings is None:
        _settings = MatchingSettings()
        logger.info(
            f"Matching settings loaded: store={_settings.store_backend}, "
            f"area_bonus={_settings.area_match_bonus}, "
            f"load_penalty={_settings.load_penalty_per_appointment}, "
            f"sweep={_settings.sweep_enabled}"
        )
    return _settings


def reload_settings() -> MatchingSettings:
    """
    Reload settings from environment (for testing/debugging)

    Use sparingly in production - settings are loaded once at startup
    """
    global _settings
    _settings = None
    return get_settings()

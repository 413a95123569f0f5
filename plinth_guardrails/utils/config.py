"""
Configuration Management

Two layers:
- Settings: environment-based configuration via Pydantic Settings (.env aware)
- GuardrailConfig: frozen threshold set passed into each guardrail component

Components never read process-wide state on their own; tests build a
GuardrailConfig with the thresholds they want and hand it in.
"""

from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Application Settings
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Evidence freshness (hours before cached evidence counts as stale)
    EVIDENCE_CACHE_TTL_HOURS: float = 168.0

    # Raise InvariantViolation instead of logging (test authoring only)
    STRICT_INVARIANTS: bool = False

    # Database
    DATABASE_URL: Optional[str] = None
    SQLITE_PATH: str = "plinth_guardrails_dev.db"
    SQL_DEBUG: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields in .env file
        case_sensitive = False  # Allow both UPPERCASE and lowercase


@lru_cache
def get_settings() -> Settings:
    """Get or create cached settings instance."""
    return Settings()


@dataclass(frozen=True)
class GuardrailConfig:
    """
    Fixed thresholds for every guardrail component.

    Confidence-band and score-ceiling thresholds are kept as separate fields
    so the two rule sets can be tuned independently.
    """

    # Evidence gating
    evidence_cache_ttl_hours: float = 168.0
    fresh_window_hours: float = 24.0
    min_distinct_source_types: float = 2.0
    min_evidence_sources: float = 3.0
    missing_timestamp_decay: float = 0.5
    stale_decay_floor: float = 0.5

    # Banned pattern penalty
    vague_verb_weight: float = 0.3
    unsupported_absolute_weight: float = 0.2
    penalty_divisor: float = 10.0

    # Confidence bands
    band_fresh_decay: float = 0.8
    band_max_repairs: int = 1
    band_max_penalty: float = 0.2
    high_band_min_score: float = 70.0
    medium_band_min_score: float = 50.0

    # Score ceilings
    ceiling_fresh_decay: float = 0.8
    ceiling_max_repairs: int = 1
    ceiling_max_penalty: float = 0.2
    high_confidence_ceiling: float = 100.0
    medium_confidence_ceiling: float = 90.0
    low_confidence_ceiling: float = 85.0

    # Score distribution
    flat_std_ratio: float = 0.1
    outlier_std_multiple: float = 3.0

    # Drift
    jtbd_score_drift: float = 10.0
    jtbd_count_drift: int = 2
    opportunities_score_drift: float = 15.0
    opportunities_count_drift: int = 2
    scoring_mean_drift: float = 10.0
    scoring_count_drift: int = 0

    def __post_init__(self):
        if self.evidence_cache_ttl_hours <= 0:
            raise ValueError("evidence_cache_ttl_hours must be positive")
        if self.penalty_divisor <= 0:
            raise ValueError("penalty_divisor must be positive")

    def with_overrides(self, **changes) -> "GuardrailConfig":
        """Return a copy with some thresholds replaced."""
        return replace(self, **changes)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "GuardrailConfig":
        settings = settings or get_settings()
        return cls(evidence_cache_ttl_hours=settings.EVIDENCE_CACHE_TTL_HOURS)


DEFAULT_CONFIG = GuardrailConfig()


@lru_cache
def get_guardrail_config() -> GuardrailConfig:
    """Get cached guardrail thresholds built from settings."""
    return GuardrailConfig.from_settings()

"""
Confidence Bands

Maps evidence and generation signals to a low/medium/high band.

This is a cascading guard, not a weighted sum. One disqualifying signal
(heavy repairs, stale evidence, banned language) keeps a high score out of
the high band.

    high   - quality == high AND decay >= 0.8 AND repairs <= 1
             AND penalty <= 0.2 AND score >= 70
    medium - quality in {medium, high} AND (decay >= 0.8 OR repairs <= 1)
             AND score >= 50
    low    - everything else
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from plinth_guardrails.quality.models import ConfidenceLevel
from plinth_guardrails.utils.config import GuardrailConfig, get_guardrail_config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfidenceSignals:
    """Signals the caller assembles from the evidence gate and generation."""
    evidence_quality: ConfidenceLevel = ConfidenceLevel.LOW
    decay_factor: float = 1.0
    repair_count: int = 0  # output-repair passes the generator needed
    banned_pattern_penalty: float = 0.0

    def __post_init__(self):
        # Accept "high"/"medium"/"low" strings from callers
        object.__setattr__(self, "evidence_quality", ConfidenceLevel.coerce(self.evidence_quality))

    @classmethod
    def from_evidence_check(
        cls,
        check: Any,
        repair_count: int = 0,
        banned_pattern_penalty: float = 0.0,
    ) -> "ConfidenceSignals":
        """Build signals from an EvidenceQualityCheck."""
        return cls(
            evidence_quality=check.confidence,
            decay_factor=check.decay_factor,
            repair_count=repair_count,
            banned_pattern_penalty=banned_pattern_penalty,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "evidence_quality": self.evidence_quality.value,
            "decay_factor": self.decay_factor,
            "repair_count": self.repair_count,
            "banned_pattern_penalty": self.banned_pattern_penalty,
        }


class ConfidenceComputer:
    """Assigns a confidence band to a score given its signals."""

    def __init__(self, config: Optional[GuardrailConfig] = None):
        self.config = config or get_guardrail_config()

    def compute_band(self, signals: ConfidenceSignals, score: float) -> ConfidenceLevel:
        """
        Compute the confidence band for one score.

        Args:
            signals: Evidence and generation signals
            score: Score (0-100) the band describes

        Returns:
            ConfidenceLevel
        """
        cfg = self.config
        quality = signals.evidence_quality

        fresh = signals.decay_factor >= cfg.band_fresh_decay
        few_repairs = signals.repair_count <= cfg.band_max_repairs
        clean_language = signals.banned_pattern_penalty <= cfg.band_max_penalty

        if (
            quality == ConfidenceLevel.HIGH
            and fresh
            and few_repairs
            and clean_language
            and score >= cfg.high_band_min_score
        ):
            return ConfidenceLevel.HIGH

        if (
            quality in (ConfidenceLevel.MEDIUM, ConfidenceLevel.HIGH)
            and (fresh or few_repairs)
            and score >= cfg.medium_band_min_score
        ):
            return ConfidenceLevel.MEDIUM

        return ConfidenceLevel.LOW


def compute_confidence_band(
    signals: ConfidenceSignals,
    score: float,
    config: Optional[GuardrailConfig] = None,
) -> ConfidenceLevel:
    """Confidence band for a score using default (or given) thresholds."""
    return ConfidenceComputer(config).compute_band(signals, score)

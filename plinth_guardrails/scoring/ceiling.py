"""
Score Ceilings

Hard upper clamp on a raw score, chosen from confidence signals.

    100 - quality == high AND (decay >= 0.8 OR repairs <= 1) AND penalty <= 0.2
     90 - quality in {medium, high}
     85 - everything else

The ceiling is a clamp, not a rescale: adjusted = min(score, ceiling).
A model that reports 92/100 on thin evidence is held at 85.
"""

import logging
from typing import Optional

from plinth_guardrails.quality.invariants import InvariantId, invariant
from plinth_guardrails.quality.models import ConfidenceLevel
from plinth_guardrails.utils.config import GuardrailConfig, get_guardrail_config
from .confidence import ConfidenceSignals

logger = logging.getLogger(__name__)


class ScoreCeilingEnforcer:
    """
    Clamps raw scores to the ceiling their signals allow.

    Usage:
        enforcer = ScoreCeilingEnforcer()
        adjusted = enforcer.apply(92, ConfidenceSignals(evidence_quality="low"))
        # adjusted == 85
    """

    def __init__(self, config: Optional[GuardrailConfig] = None):
        self.config = config or get_guardrail_config()

    def ceiling_for(self, signals: ConfidenceSignals) -> float:
        """Highest score the signals allow."""
        cfg = self.config
        quality = signals.evidence_quality

        if (
            quality == ConfidenceLevel.HIGH
            and (
                signals.decay_factor >= cfg.ceiling_fresh_decay
                or signals.repair_count <= cfg.ceiling_max_repairs
            )
            and signals.banned_pattern_penalty <= cfg.ceiling_max_penalty
        ):
            return cfg.high_confidence_ceiling

        if quality in (ConfidenceLevel.MEDIUM, ConfidenceLevel.HIGH):
            return cfg.medium_confidence_ceiling

        return cfg.low_confidence_ceiling

    def apply(self, score: float, signals: ConfidenceSignals) -> float:
        """
        Apply the ceiling to a raw score.

        Args:
            score: Raw model score, expected in 0..100
            signals: Confidence signals for the score

        Returns:
            min(score, ceiling)
        """
        invariant(0 <= score <= 100, {
            "id": InvariantId.SCORE_IN_RANGE,
            "details": {"score": score},
        })

        ceiling = self.ceiling_for(signals)
        adjusted = min(score, ceiling)

        invariant(adjusted <= score, {
            "id": InvariantId.CEILING_NOT_RAISED,
            "details": {"score": score, "adjusted": adjusted, "ceiling": ceiling},
        })

        if adjusted < score:
            logger.debug(
                f"Score capped {score} -> {adjusted} "
                f"(quality={signals.evidence_quality.value}, ceiling={ceiling})"
            )

        return adjusted


def apply_score_ceiling(
    score: float,
    signals: ConfidenceSignals,
    config: Optional[GuardrailConfig] = None,
) -> float:
    """Clamp a score with default (or given) ceilings."""
    return ScoreCeilingEnforcer(config).apply(score, signals)

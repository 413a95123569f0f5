"""
Scoring Guardrails

Components:
- ConfidenceComputer: Cascading low/medium/high band for a score
- ScoreCeilingEnforcer: Hard clamp on raw scores from confidence signals
- ScoreDistributionAuditor: Flat / outlier checks over a batch of scores
"""

from .confidence import ConfidenceSignals, ConfidenceComputer, compute_confidence_band
from .ceiling import ScoreCeilingEnforcer, apply_score_ceiling
from .distribution import (
    ScoreDistributionAuditor,
    ScoreDistributionCheck,
    check_score_distribution,
    FLAG_EMPTY,
    FLAG_FLAT,
    FLAG_OUTLIERS,
)

__all__ = [
    # Bands
    "ConfidenceSignals",
    "ConfidenceComputer",
    "compute_confidence_band",
    # Ceilings
    "ScoreCeilingEnforcer",
    "apply_score_ceiling",
    # Distribution
    "ScoreDistributionAuditor",
    "ScoreDistributionCheck",
    "check_score_distribution",
    "FLAG_EMPTY",
    "FLAG_FLAT",
    "FLAG_OUTLIERS",
]

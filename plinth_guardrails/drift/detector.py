"""
Drift Detection

Compares a run's artifacts against a baseline run and flags large moves.
Each artifact type is compared only when both sides carry it.

    JTBD           - mean opportunity_score delta > 10  OR |job count delta| > 2
    Opportunities  - mean score delta > 15              OR |count delta| > 2
    Scoring matrix - mean total_weighted_score delta > 10 OR any count change

Deltas are current - previous, rounded to 2 decimals. An empty list has a
mean of 0.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from plinth_guardrails.utils.config import GuardrailConfig, get_guardrail_config
from plinth_guardrails.utils.numeric import mean, round_half_up
from .models import JtbdContent, OpportunitiesContent, RunArtifacts, ScoringMatrixContent

logger = logging.getLogger(__name__)

FLAG_JTBD = "jtbd_drift"
FLAG_OPPORTUNITIES = "opportunities_drift"
FLAG_SCORING = "scoring_drift"


@dataclass
class JtbdDrift:
    score_change: float
    job_count_change: int

    def to_dict(self) -> Dict[str, Any]:
        return {"score_change": self.score_change, "job_count_change": self.job_count_change}


@dataclass
class OpportunitiesDrift:
    score_change: float
    opportunity_count_change: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score_change": self.score_change,
            "opportunity_count_change": self.opportunity_count_change,
        }


@dataclass
class ScoringDrift:
    mean_score_change: float
    competitor_count_change: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mean_score_change": self.mean_score_change,
            "competitor_count_change": self.competitor_count_change,
        }


@dataclass
class DriftDetectionResult:
    """Drift verdict for one comparison."""
    has_significant_drift: bool
    jtbd_drift: Optional[JtbdDrift] = None
    opportunities_drift: Optional[OpportunitiesDrift] = None
    scoring_drift: Optional[ScoringDrift] = None
    flags: List[str] = field(default_factory=list)
    baseline_run_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "has_significant_drift": self.has_significant_drift,
            "jtbd_drift": self.jtbd_drift.to_dict() if self.jtbd_drift else None,
            "opportunities_drift": self.opportunities_drift.to_dict() if self.opportunities_drift else None,
            "scoring_drift": self.scoring_drift.to_dict() if self.scoring_drift else None,
            "flags": list(self.flags),
            "baseline_run_id": self.baseline_run_id,
        }


class DriftDetector:
    """
    Compares two runs' artifacts.

    Usage:
        detector = DriftDetector()
        result = detector.detect(current, previous)
        if result.has_significant_drift:
            logger.warning(f"Drift: {result.flags}")
    """

    def __init__(self, config: Optional[GuardrailConfig] = None):
        self.config = config or get_guardrail_config()

    def detect(self, current: RunArtifacts, previous: RunArtifacts) -> DriftDetectionResult:
        """
        Compare current artifacts with the baseline.

        Args:
            current: Artifacts of the run being checked
            previous: Artifacts of the baseline run

        Returns:
            DriftDetectionResult
        """
        cfg = self.config
        flags: List[str] = []

        jtbd = self._jtbd_drift(current.jtbd, previous.jtbd)
        if jtbd and (
            abs(jtbd.score_change) > cfg.jtbd_score_drift
            or abs(jtbd.job_count_change) > cfg.jtbd_count_drift
        ):
            flags.append(FLAG_JTBD)

        opportunities = self._opportunities_drift(current.opportunities, previous.opportunities)
        if opportunities and (
            abs(opportunities.score_change) > cfg.opportunities_score_drift
            or abs(opportunities.opportunity_count_change) > cfg.opportunities_count_drift
        ):
            flags.append(FLAG_OPPORTUNITIES)

        scoring = self._scoring_drift(current.scoring_matrix, previous.scoring_matrix)
        if scoring and (
            abs(scoring.mean_score_change) > cfg.scoring_mean_drift
            or abs(scoring.competitor_count_change) > cfg.scoring_count_drift
        ):
            flags.append(FLAG_SCORING)

        return DriftDetectionResult(
            has_significant_drift=bool(flags),
            jtbd_drift=jtbd,
            opportunities_drift=opportunities,
            scoring_drift=scoring,
            flags=flags,
        )

    @staticmethod
    def _jtbd_drift(
        current: Optional[JtbdContent],
        previous: Optional[JtbdContent],
    ) -> Optional[JtbdDrift]:
        if current is None or previous is None:
            return None

        current_mean = mean(job.opportunity_score for job in current.jobs)
        previous_mean = mean(job.opportunity_score for job in previous.jobs)
        return JtbdDrift(
            score_change=round_half_up(current_mean - previous_mean, 2),
            job_count_change=len(current.jobs) - len(previous.jobs),
        )

    @staticmethod
    def _opportunities_drift(
        current: Optional[OpportunitiesContent],
        previous: Optional[OpportunitiesContent],
    ) -> Optional[OpportunitiesDrift]:
        if current is None or previous is None:
            return None

        current_mean = mean(item.score for item in current.opportunities)
        previous_mean = mean(item.score for item in previous.opportunities)
        return OpportunitiesDrift(
            score_change=round_half_up(current_mean - previous_mean, 2),
            opportunity_count_change=len(current.opportunities) - len(previous.opportunities),
        )

    @staticmethod
    def _scoring_drift(
        current: Optional[ScoringMatrixContent],
        previous: Optional[ScoringMatrixContent],
    ) -> Optional[ScoringDrift]:
        if current is None or previous is None:
            return None

        current_mean = mean(s.total_weighted_score for s in current.summary)
        previous_mean = mean(s.total_weighted_score for s in previous.summary)
        return ScoringDrift(
            mean_score_change=round_half_up(current_mean - previous_mean, 2),
            competitor_count_change=len(current.summary) - len(previous.summary),
        )


def detect_drift(
    current: RunArtifacts,
    previous: RunArtifacts,
    config: Optional[GuardrailConfig] = None,
) -> DriftDetectionResult:
    """Compare two runs with default (or given) thresholds."""
    return DriftDetector(config).detect(current, previous)

"""
Score Distribution Audit

Sanity check over one generation batch (e.g. every opportunity score in a
run), not over a single item.

    is_flat             - range > 0 AND std < 0.1 × range, or a multi-score
                          batch where every score is identical
    has_extreme_outliers - any |score - mean| > 3 × std (only when std > 0)

Standard deviation is the population form (divide by n).
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from plinth_guardrails.utils.config import GuardrailConfig, get_guardrail_config
from plinth_guardrails.utils.numeric import mean, population_std_dev, round_half_up

logger = logging.getLogger(__name__)

FLAG_EMPTY = "empty_scores"
FLAG_FLAT = "flat_distribution"
FLAG_OUTLIERS = "extreme_outliers"


@dataclass
class ScoreDistributionCheck:
    """Summary statistics and flags for a batch of scores."""
    mean: float
    std_dev: float
    min: float
    max: float
    is_flat: bool
    has_extreme_outliers: bool
    flags: List[str] = field(default_factory=list)
    count: int = 0

    @property
    def range(self) -> float:
        return self.max - self.min

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "mean": self.mean,
            "std_dev": self.std_dev,
            "min": self.min,
            "max": self.max,
            "range": self.range,
            "count": self.count,
            "is_flat": self.is_flat,
            "has_extreme_outliers": self.has_extreme_outliers,
            "flags": list(self.flags),
        }


class ScoreDistributionAuditor:
    """
    Flags under-differentiated or outlier-laden score batches.

    Usage:
        auditor = ScoreDistributionAuditor()
        check = auditor.check([50, 50, 50, 50])
        # check.is_flat is True
    """

    def __init__(self, config: Optional[GuardrailConfig] = None):
        self.config = config or get_guardrail_config()

    def check(self, scores: Sequence[float]) -> ScoreDistributionCheck:
        """
        Audit a batch of scores.

        Args:
            scores: Scores from one generation batch

        Returns:
            ScoreDistributionCheck
        """
        if not scores:
            return ScoreDistributionCheck(
                mean=0.0,
                std_dev=0.0,
                min=0.0,
                max=0.0,
                is_flat=True,
                has_extreme_outliers=False,
                flags=[FLAG_EMPTY],
            )

        cfg = self.config
        values = [float(s) for s in scores]

        avg = mean(values)
        std_dev = population_std_dev(values)
        lowest = min(values)
        highest = max(values)
        spread = highest - lowest

        if spread > 0:
            is_flat = std_dev < cfg.flat_std_ratio * spread
        else:
            # Identical scores across a batch carry no differentiation
            is_flat = len(values) > 1

        has_extreme_outliers = False
        if std_dev > 0:
            limit = cfg.outlier_std_multiple * std_dev
            has_extreme_outliers = any(abs(v - avg) > limit for v in values)

        flags = []
        if is_flat:
            flags.append(FLAG_FLAT)
        if has_extreme_outliers:
            flags.append(FLAG_OUTLIERS)

        if flags:
            logger.warning(
                f"Score distribution flagged {flags} "
                f"(n={len(values)}, mean={avg:.2f}, std={std_dev:.2f}, range={spread:.2f})"
            )

        return ScoreDistributionCheck(
            mean=round_half_up(avg, 2),
            std_dev=round_half_up(std_dev, 2),
            min=lowest,
            max=highest,
            is_flat=is_flat,
            has_extreme_outliers=has_extreme_outliers,
            flags=flags,
            count=len(values),
        )


def check_score_distribution(
    scores: Sequence[float],
    config: Optional[GuardrailConfig] = None,
) -> ScoreDistributionCheck:
    """Audit a batch of scores with default (or given) thresholds."""
    return ScoreDistributionAuditor(config).check(scores)

"""
Guardrail Engine

Composes the guardrails in the order the generation pipeline uses them:

1. check_evidence  - evidence sufficiency gate and decay (once per project)
2. assess_text     - banned patterns in the generated text
3. guard_scores    - bands, ceilings and a distribution audit over raw scores
4. detect_run_drift - comparison with the previous run, after artifacts are saved

Every verdict is returned as a value; nothing here raises for weak evidence,
banned language or drift.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from plinth_guardrails.drift import DriftDetectionResult, detect_run_drift
from plinth_guardrails.quality import (
    BannedPatternResult,
    CompetitorRecord,
    ConfidenceLevel,
    EvidenceLookup,
    EvidenceQualityCheck,
    EvidenceQualityChecker,
    InvariantId,
    PatternValidator,
    invariant,
)
from plinth_guardrails.scoring import (
    ConfidenceComputer,
    ConfidenceSignals,
    ScoreCeilingEnforcer,
    ScoreDistributionAuditor,
    ScoreDistributionCheck,
)
from plinth_guardrails.utils.config import GuardrailConfig, get_guardrail_config
from plinth_guardrails.utils.numeric import mean

logger = logging.getLogger(__name__)


@dataclass
class TextAssessment:
    """Banned-pattern scan plus its penalty."""
    patterns: BannedPatternResult
    penalty: float

    def to_dict(self) -> Dict[str, Any]:
        return {**self.patterns.to_dict(), "penalty": self.penalty}


@dataclass
class GuardedScore:
    key: Optional[str]
    raw_score: float
    adjusted_score: float
    band: ConfidenceLevel

    @property
    def capped(self) -> bool:
        return self.adjusted_score < self.raw_score

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "raw_score": self.raw_score,
            "adjusted_score": self.adjusted_score,
            "band": self.band.value,
            "capped": self.capped,
        }


@dataclass
class GuardedScores:
    """Scores after ceilings, with their bands and a batch audit."""
    scores: List[GuardedScore]
    distribution: ScoreDistributionCheck
    signals: ConfidenceSignals
    evidence_checked: bool
    batch_band: ConfidenceLevel = ConfidenceLevel.LOW
    text: Optional[TextAssessment] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def adjusted_scores(self) -> List[float]:
        return [s.adjusted_score for s in self.scores]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "scores": [s.to_dict() for s in self.scores],
            "distribution": self.distribution.to_dict(),
            "signals": self.signals.to_dict(),
            "evidence_checked": self.evidence_checked,
            "batch_band": self.batch_band.value,
            "text": self.text.to_dict() if self.text else None,
            "warnings": list(self.warnings),
        }


ScoreInput = Union[Mapping[str, float], Sequence[float]]


def _keyed(raw_scores: ScoreInput) -> List[Tuple[Optional[str], float]]:
    if isinstance(raw_scores, Mapping):
        return [(str(key), float(value)) for key, value in raw_scores.items()]
    return [(None, float(value)) for value in raw_scores]


class GuardrailEngine:
    """
    Facade over the guardrail components, sharing one threshold set.

    Usage:
        engine = GuardrailEngine(lookup=DatabaseEvidenceLookup(db))
        check = await engine.check_evidence(competitors, project_id=project_id)
        guarded = engine.guard_scores({"opp-1": 92, "opp-2": 64}, check, repair_count=1, text=summary)
        drift = engine.detect_run_drift(artifacts, run_id)
    """

    def __init__(
        self,
        lookup: Optional[EvidenceLookup] = None,
        config: Optional[GuardrailConfig] = None,
    ):
        self.config = config or get_guardrail_config()
        self.lookup = lookup

        self.patterns = PatternValidator(self.config)
        self.confidence = ConfidenceComputer(self.config)
        self.ceiling = ScoreCeilingEnforcer(self.config)
        self.distribution = ScoreDistributionAuditor(self.config)

    async def check_evidence(
        self,
        competitors: Sequence[CompetitorRecord],
        project_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> EvidenceQualityCheck:
        """Run the evidence gate through the configured lookup."""
        if self.lookup is None:
            raise ValueError("GuardrailEngine needs an evidence lookup to check evidence")
        checker = EvidenceQualityChecker(self.lookup, config=self.config)
        return await checker.check(competitors, project_id=project_id, now=now)

    def assess_text(self, text: Optional[str]) -> TextAssessment:
        """Scan generated text for banned patterns."""
        result = self.patterns.detect(text or "")
        return TextAssessment(patterns=result, penalty=self.patterns.penalty_for(result))

    def guard_scores(
        self,
        raw_scores: ScoreInput,
        evidence_check: Optional[EvidenceQualityCheck],
        repair_count: int = 0,
        text: Optional[str] = None,
    ) -> GuardedScores:
        """
        Apply bands and ceilings to a batch of raw model scores.

        Args:
            raw_scores: Scores keyed by item id, or a plain list
            evidence_check: Result of check_evidence for the project
            repair_count: Output-repair passes the generator needed
            text: Generated text the scores came with, if any

        Returns:
            GuardedScores
        """
        warnings: List[str] = []

        evidence_checked = invariant(evidence_check is not None, {
            "id": InvariantId.EVIDENCE_CHECKED,
            "details": {"score_count": len(raw_scores)},
        })

        assessment = self.assess_text(text) if text else None
        penalty = assessment.penalty if assessment else 0.0

        if evidence_check is not None:
            signals = ConfidenceSignals.from_evidence_check(
                evidence_check,
                repair_count=repair_count,
                banned_pattern_penalty=penalty,
            )
        else:
            # Unchecked evidence is treated as the weakest case
            signals = ConfidenceSignals(
                evidence_quality=ConfidenceLevel.LOW,
                decay_factor=0.0,
                repair_count=repair_count,
                banned_pattern_penalty=penalty,
            )
            warnings.append("evidence_not_checked")

        guarded: List[GuardedScore] = []
        raw_values: List[float] = []
        for key, raw in _keyed(raw_scores):
            score = raw
            if not invariant(0 <= raw <= 100, {
                "id": InvariantId.SCORE_IN_RANGE,
                "details": {"key": key, "score": raw},
            }):
                score = max(0.0, min(100.0, raw))
                warnings.append(f"score_out_of_range:{key}" if key else "score_out_of_range")

            adjusted = self.ceiling.apply(score, signals)
            band = self.confidence.compute_band(signals, adjusted)

            raw_values.append(score)
            guarded.append(GuardedScore(key=key, raw_score=raw, adjusted_score=adjusted, band=band))

        distribution = self.distribution.check(raw_values)

        # One band for the whole batch, from its mean adjusted score
        batch_band = self.confidence.compute_band(signals, mean(g.adjusted_score for g in guarded))

        capped = sum(1 for g in guarded if g.capped)
        if capped:
            logger.info(
                f"Capped {capped}/{len(guarded)} scores "
                f"(quality={signals.evidence_quality.value}, penalty={penalty:.2f})"
            )

        return GuardedScores(
            scores=guarded,
            distribution=distribution,
            signals=signals,
            evidence_checked=evidence_checked,
            batch_band=batch_band,
            text=assessment,
            warnings=warnings,
        )

    def detect_run_drift(
        self,
        artifacts: Iterable[Any],
        current_run_id: str,
    ) -> Optional[DriftDetectionResult]:
        """Compare a run with its baseline; None when there is no baseline."""
        return detect_run_drift(artifacts, current_run_id, config=self.config)

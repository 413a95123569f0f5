"""
Plinth Guardrail Engine

Deterministic checks that gate, score and audit generated competitive
strategy artifacts before they reach a user:

- Is there enough evidence to trust a conclusion, and how stale is it?
- Does the generated text use vague or unsupportable language?
- How far should a raw model score be trusted?
- Has this run drifted suspiciously from the previous one?
"""

from plinth_guardrails.quality import (
    ConfidenceLevel,
    CompetitorRecord,
    EvidenceSource,
    EvidenceQualityCheck,
    EvidenceQualityChecker,
    check_evidence_quality,
    compute_decay_factor,
    PatternValidator,
    BannedPatternResult,
    detect_banned_patterns,
    compute_banned_pattern_penalty,
    InvariantId,
    InvariantViolation,
    invariant,
)
from plinth_guardrails.scoring import (
    ConfidenceSignals,
    ConfidenceComputer,
    compute_confidence_band,
    ScoreCeilingEnforcer,
    apply_score_ceiling,
    ScoreDistributionAuditor,
    ScoreDistributionCheck,
    check_score_distribution,
)
from plinth_guardrails.drift import (
    DriftDetector,
    DriftDetectionResult,
    RunArtifacts,
    detect_drift,
    detect_run_drift,
    extract_artifact_content,
    select_previous_run,
)
from plinth_guardrails.engine import GuardrailEngine, GuardedScores, TextAssessment
from plinth_guardrails.utils.config import GuardrailConfig, DEFAULT_CONFIG

__version__ = "0.1.0"

__all__ = [
    "ConfidenceLevel",
    "CompetitorRecord",
    "EvidenceSource",
    "EvidenceQualityCheck",
    "EvidenceQualityChecker",
    "check_evidence_quality",
    "compute_decay_factor",
    "PatternValidator",
    "BannedPatternResult",
    "detect_banned_patterns",
    "compute_banned_pattern_penalty",
    "InvariantId",
    "InvariantViolation",
    "invariant",
    "ConfidenceSignals",
    "ConfidenceComputer",
    "compute_confidence_band",
    "ScoreCeilingEnforcer",
    "apply_score_ceiling",
    "ScoreDistributionAuditor",
    "ScoreDistributionCheck",
    "check_score_distribution",
    "DriftDetector",
    "DriftDetectionResult",
    "RunArtifacts",
    "detect_drift",
    "detect_run_drift",
    "extract_artifact_content",
    "select_previous_run",
    "GuardrailEngine",
    "GuardedScores",
    "TextAssessment",
    "GuardrailConfig",
    "DEFAULT_CONFIG",
]

"""
Drift Guardrails

Components:
- DriftDetector: Mean score / item count deltas between two runs
- extract_artifact_content: Comparable artifacts from stored rows
- select_previous_run: Most recent prior run with comparable artifacts
- detect_run_drift: Baseline lookup plus comparison (None without a baseline)
"""

from .models import (
    ArtifactType,
    JtbdContent,
    JtbdJob,
    OpportunitiesContent,
    OpportunityItem,
    ScoringMatrixContent,
    CompetitorScoreSummary,
    StoredArtifact,
    RunArtifacts,
    RunSnapshot,
)
from .detector import (
    DriftDetector,
    DriftDetectionResult,
    JtbdDrift,
    OpportunitiesDrift,
    ScoringDrift,
    detect_drift,
    FLAG_JTBD,
    FLAG_OPPORTUNITIES,
    FLAG_SCORING,
)
from .runs import extract_artifact_content, select_previous_run, detect_run_drift

__all__ = [
    # Artifacts
    "ArtifactType",
    "JtbdContent",
    "JtbdJob",
    "OpportunitiesContent",
    "OpportunityItem",
    "ScoringMatrixContent",
    "CompetitorScoreSummary",
    "StoredArtifact",
    "RunArtifacts",
    "RunSnapshot",
    # Comparison
    "DriftDetector",
    "DriftDetectionResult",
    "JtbdDrift",
    "OpportunitiesDrift",
    "ScoringDrift",
    "detect_drift",
    "FLAG_JTBD",
    "FLAG_OPPORTUNITIES",
    "FLAG_SCORING",
    # History
    "extract_artifact_content",
    "select_previous_run",
    "detect_run_drift",
]

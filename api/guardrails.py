"""
Guardrail API Endpoints

FastAPI router exposing the guardrail engine to the generation pipeline and
the dashboard:

- Text checks (banned patterns and penalty)
- Score guarding (ceilings, bands, distribution audit)
- Evidence quality per project
- Drift of a run against the previous run
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from plinth_guardrails.database import (
    DatabaseEvidenceLookup,
    get_db,
    list_artifacts_for_project,
    list_competitors_for_project,
)
from plinth_guardrails.engine import GuardrailEngine
from plinth_guardrails.quality import ConfidenceLevel, EvidenceQualityCheck

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/guardrails", tags=["guardrails"])


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class TextCheckRequest(BaseModel):
    """Generated text to scan."""
    text: str = Field(..., max_length=200_000)


class TextCheckResponse(BaseModel):
    has_violations: bool
    vague_verbs: List[str]
    unsupported_absolutes: List[str]
    penalty: float


class EvidenceSummary(BaseModel):
    """Evidence verdict computed elsewhere (e.g. earlier in the same run)."""
    confidence: ConfidenceLevel
    decay_factor: float = Field(..., ge=0, le=1)
    passes: bool = True


class ScoreGuardRequest(BaseModel):
    """
    Raw model scores to guard.

    Evidence comes from project_id (checked now) or from an evidence summary.
    With neither, scores are guarded as if evidence were weakest.
    """
    scores: Dict[str, float] = Field(..., min_length=1)
    project_id: Optional[str] = None
    evidence: Optional[EvidenceSummary] = None
    repair_count: int = Field(default=0, ge=0)
    text: Optional[str] = None


class DistributionRequest(BaseModel):
    scores: List[float] = Field(default_factory=list)


class DriftResponse(BaseModel):
    project_id: str
    run_id: str
    has_baseline: bool
    drift: Optional[Dict[str, Any]] = None


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post("/text", response_model=TextCheckResponse)
async def check_text(request: TextCheckRequest):
    """Scan generated text for vague verbs and unsupported absolutes."""
    engine = GuardrailEngine()
    assessment = engine.assess_text(request.text)
    return TextCheckResponse(**assessment.to_dict())


@router.post("/scores")
async def guard_scores(request: ScoreGuardRequest, db: Session = Depends(get_db)):
    """Apply confidence ceilings and bands to a batch of raw scores."""
    engine = GuardrailEngine(lookup=DatabaseEvidenceLookup(db))

    evidence_check: Optional[EvidenceQualityCheck] = None
    if request.project_id:
        competitors = list_competitors_for_project(db, request.project_id)
        evidence_check = await engine.check_evidence(competitors, project_id=request.project_id)
    elif request.evidence:
        evidence_check = EvidenceQualityCheck(
            passes=request.evidence.passes,
            confidence=request.evidence.confidence,
            distinct_source_types=0.0,
            total_evidence_sources=0.0,
            decay_factor=request.evidence.decay_factor,
        )

    guarded = engine.guard_scores(
        request.scores,
        evidence_check,
        repair_count=request.repair_count,
        text=request.text,
    )

    result = guarded.to_dict()
    if evidence_check is not None and request.project_id:
        result["evidence"] = evidence_check.to_dict()
    return result


@router.post("/distribution")
async def audit_distribution(request: DistributionRequest):
    """Audit a batch of scores for flat or outlier-laden distributions."""
    engine = GuardrailEngine()
    return engine.distribution.check(request.scores).to_dict()


@router.get("/projects/{project_id}/evidence-quality")
async def project_evidence_quality(project_id: str, db: Session = Depends(get_db)):
    """Evidence sufficiency and freshness for a project's competitors."""
    competitors = list_competitors_for_project(db, project_id)
    engine = GuardrailEngine(lookup=DatabaseEvidenceLookup(db))
    check = await engine.check_evidence(competitors, project_id=project_id)
    return check.to_dict()


@router.get("/projects/{project_id}/runs/{run_id}/drift", response_model=DriftResponse)
async def run_drift(project_id: str, run_id: str, db: Session = Depends(get_db)):
    """
    Compare a run with the most recent prior run that has comparable artifacts.

    has_baseline is false (and drift null) when there is nothing to compare to.
    """
    artifacts = list_artifacts_for_project(db, project_id)
    result = GuardrailEngine().detect_run_drift(artifacts, run_id)

    return DriftResponse(
        project_id=project_id,
        run_id=run_id,
        has_baseline=result is not None,
        drift=result.to_dict() if result else None,
    )

"""
Run History

Picks the artifacts to compare out of a project's stored artifact history.

Within one set of artifacts, the artifact used for each type is the one with
schema_version 2 if any exists, otherwise the newest by created_at. The
version preference is applied before the timestamp.

The baseline is the most recent prior run that carries at least one of the
three comparable artifact types, not simply the run of the newest row.
Runs are scanned newest first and the scan stops at the first match.
"""

import logging
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError

from plinth_guardrails.quality.invariants import InvariantId, invariant
from plinth_guardrails.utils.config import GuardrailConfig
from .detector import DriftDetectionResult, DriftDetector
from .models import (
    CONTENT_MODELS,
    PREFERRED_SCHEMA_VERSION,
    ArtifactType,
    RunArtifacts,
    RunSnapshot,
    StoredArtifact,
)

logger = logging.getLogger(__name__)

_FIELD_FOR_TYPE = {
    ArtifactType.JTBD: "jtbd",
    ArtifactType.OPPORTUNITIES: "opportunities",
    ArtifactType.SCORING_MATRIX: "scoring_matrix",
}


def _coerce_artifact(raw: Any) -> StoredArtifact:
    if isinstance(raw, StoredArtifact):
        return raw
    return StoredArtifact.model_validate(raw, from_attributes=True)


def _coerce_all(artifacts: Iterable[Any]) -> List[StoredArtifact]:
    coerced = []
    for raw in artifacts:
        try:
            coerced.append(_coerce_artifact(raw))
        except ValidationError as e:
            logger.warning(f"Skipping unreadable artifact row: {e.error_count()} validation errors")
    return coerced


def _preferred(candidates: List[StoredArtifact]) -> Optional[StoredArtifact]:
    if not candidates:
        return None
    return max(
        candidates,
        key=lambda a: (a.effective_schema_version == PREFERRED_SCHEMA_VERSION, a.sort_time),
    )


def extract_artifact_content(artifacts: Iterable[Any]) -> RunArtifacts:
    """
    Parse the comparable artifacts out of a set of stored rows.

    Args:
        artifacts: StoredArtifact instances, dicts or ORM rows

    Returns:
        RunArtifacts; a type with null or unparseable content is absent
    """
    by_type: Dict[ArtifactType, List[StoredArtifact]] = defaultdict(list)
    for artifact in _coerce_all(artifacts):
        artifact_type = artifact.artifact_type
        if artifact_type is not None:
            by_type[artifact_type].append(artifact)

    result = RunArtifacts()
    for artifact_type, model in CONTENT_MODELS.items():
        chosen = _preferred(by_type.get(artifact_type, []))
        if chosen is None or chosen.content_json is None:
            continue

        try:
            content = model.model_validate(chosen.content_json)
        except ValidationError as e:
            logger.warning(
                f"Ignoring {artifact_type.value} artifact {chosen.id}: "
                f"content does not match schema ({e.error_count()} errors)"
            )
            continue

        setattr(result, _FIELD_FOR_TYPE[artifact_type], content)

    return result


def select_previous_run(
    artifacts: Iterable[Any],
    current_run_id: Optional[str],
) -> Optional[RunSnapshot]:
    """
    Find the most recent prior run usable as a drift baseline.

    Args:
        artifacts: A project's stored artifacts (any runs)
        current_run_id: Run to exclude

    Returns:
        RunSnapshot, or None if no prior run carries a comparable artifact
    """
    if current_run_id is not None:
        current_run_id = str(current_run_id)

    runs: Dict[str, List[StoredArtifact]] = defaultdict(list)
    for artifact in _coerce_all(artifacts):
        if not invariant(bool(artifact.run_id), {
            "id": InvariantId.ARTIFACT_HAS_RUN,
            "details": {"artifact_id": artifact.id, "type": artifact.type},
        }):
            continue
        if artifact.run_id == current_run_id:
            continue
        runs[artifact.run_id].append(artifact)

    ordered = sorted(
        runs.items(),
        key=lambda item: (max(a.sort_time for a in item[1]), item[0]),
        reverse=True,
    )

    for run_id, run_artifacts in ordered:
        content = extract_artifact_content(run_artifacts)
        if content.has_any:
            return RunSnapshot(
                run_id=run_id,
                created_at=max(a.sort_time for a in run_artifacts),
                artifacts=content,
            )
        logger.debug(f"Run {run_id} has no comparable artifacts, checking older runs")

    return None


def detect_run_drift(
    artifacts: Iterable[Any],
    current_run_id: str,
    config: Optional[GuardrailConfig] = None,
) -> Optional[DriftDetectionResult]:
    """
    Compare a run against its baseline from the project's artifact history.

    Args:
        artifacts: All stored artifacts of the project (current run included)
        current_run_id: The run just completed

    Returns:
        DriftDetectionResult, or None when there is no baseline to compare to
    """
    current_run_id = str(current_run_id)
    stored = _coerce_all(artifacts)

    baseline = select_previous_run(stored, current_run_id)
    if baseline is None:
        logger.info(f"No baseline run for drift check of run {current_run_id}")
        return None

    current = extract_artifact_content(a for a in stored if a.run_id == current_run_id)
    result = DriftDetector(config).detect(current, baseline.artifacts)
    result.baseline_run_id = baseline.run_id

    if result.has_significant_drift:
        logger.warning(f"Run {current_run_id} drifted from run {baseline.run_id}: {result.flags}")
    else:
        logger.info(f"Run {current_run_id} within drift thresholds of run {baseline.run_id}")

    return result

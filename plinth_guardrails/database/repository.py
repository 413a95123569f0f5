"""
Repository Layer - Data Access for the Guardrails

Plain functions over a caller-owned Session. Reads return the engine's own
record types (CompetitorRecord, EvidenceSource, StoredArtifact) so nothing
downstream depends on ORM rows. Writes flush but leave committing to the
caller (get_db_context commits on exit).

SQLAlchemy errors propagate; the evidence lookup chain handles them per tier.
"""

import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from plinth_guardrails.drift.models import StoredArtifact
from plinth_guardrails.quality.models import CompetitorRecord, EvidenceSource, normalize_source_type
from plinth_guardrails.utils.domain import extract_domain
from .models import ArtifactRow, Competitor, EvidenceSourceRow

logger = logging.getLogger(__name__)


def _to_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Stored timestamps are naive UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


# =============================================================================
# COMPETITORS
# =============================================================================

def create_competitor(
    db: Session,
    project_id: str,
    url: Optional[str] = None,
    name: Optional[str] = None,
) -> str:
    """
    Create a competitor for a project.

    Returns:
        ID of the created competitor
    """
    competitor = Competitor(project_id=project_id, url=url, name=name)
    db.add(competitor)
    db.flush()
    logger.debug(f"Created competitor {competitor.id} for project {project_id}")
    return competitor.id


def list_competitors_for_project(db: Session, project_id: str) -> List[CompetitorRecord]:
    """All competitors of a project, oldest first."""
    rows = (
        db.query(Competitor)
        .filter(Competitor.project_id == project_id)
        .order_by(Competitor.created_at, Competitor.id)
        .all()
    )
    return [CompetitorRecord(id=row.id, url=row.url, name=row.name) for row in rows]


# =============================================================================
# EVIDENCE SOURCES
# =============================================================================

def add_evidence_source(
    db: Session,
    project_id: str,
    url: str,
    source_type: str,
    competitor_id: Optional[str] = None,
    extracted_at: Optional[datetime] = None,
    domain: Optional[str] = None,
    page_title: Optional[str] = None,
) -> str:
    """
    Record one evidence source.

    The domain is derived from the URL when not given.

    Returns:
        ID of the created evidence row
    """
    domain = domain or extract_domain(url)
    if not domain:
        raise ValueError(f"Cannot derive a domain for evidence source url {url!r}")

    row = EvidenceSourceRow(
        project_id=project_id,
        competitor_id=competitor_id,
        url=url,
        domain=domain,
        source_type=normalize_source_type(source_type) or source_type,
        page_title=page_title,
        extracted_at=_to_utc_naive(extracted_at),
    )
    db.add(row)
    db.flush()
    return row.id


def _to_evidence(rows: List[EvidenceSourceRow]) -> List[EvidenceSource]:
    return [EvidenceSource.model_validate(row, from_attributes=True) for row in rows]


def get_evidence_sources_by_competitor(db: Session, competitor_id: str) -> List[EvidenceSource]:
    """Evidence attached to a competitor."""
    rows = (
        db.query(EvidenceSourceRow)
        .filter(EvidenceSourceRow.competitor_id == competitor_id)
        .all()
    )
    return _to_evidence(rows)


def get_evidence_sources_for_domain(
    db: Session,
    project_id: Optional[str],
    domain: str,
) -> List[EvidenceSource]:
    """Evidence collected for a domain, scoped to a project when one is given."""
    query = db.query(EvidenceSourceRow).filter(EvidenceSourceRow.domain == domain)
    if project_id is not None:
        query = query.filter(EvidenceSourceRow.project_id == project_id)
    return _to_evidence(query.all())


class DatabaseEvidenceLookup:
    """
    Evidence lookup backed by the evidence_sources table.

    Queries run on the caller's session, one at a time.

    Usage:
        lookup = DatabaseEvidenceLookup(db)
        check = await check_evidence_quality(competitors, lookup, project_id=project_id)
    """

    def __init__(self, db: Session):
        self.db = db

    async def get_by_competitor(self, competitor_id: str) -> List[EvidenceSource]:
        return get_evidence_sources_by_competitor(self.db, competitor_id)

    async def get_by_domain(self, project_id: Optional[str], domain: str) -> List[EvidenceSource]:
        return get_evidence_sources_for_domain(self.db, project_id, domain)


# =============================================================================
# ARTIFACTS
# =============================================================================

def store_artifact(
    db: Session,
    project_id: str,
    run_id: Optional[str],
    artifact_type: str,
    content: Any,
    schema_version: Optional[int] = None,
    created_at: Optional[datetime] = None,
) -> str:
    """
    Store a generated artifact.

    Returns:
        ID of the created artifact
    """
    row = ArtifactRow(
        project_id=project_id,
        run_id=run_id,
        type=artifact_type,
        content_json=content,
        schema_version=schema_version,
        created_at=_to_utc_naive(created_at) or datetime.utcnow(),
    )
    db.add(row)
    db.flush()
    logger.debug(f"Stored {artifact_type} artifact {row.id} for run {run_id}")
    return row.id


def list_artifacts_for_project(db: Session, project_id: str) -> List[StoredArtifact]:
    """All artifacts of a project, newest first."""
    rows = (
        db.query(ArtifactRow)
        .filter(ArtifactRow.project_id == project_id)
        .order_by(ArtifactRow.created_at.desc())
        .all()
    )
    return [StoredArtifact.model_validate(row, from_attributes=True) for row in rows]

"""
SQLAlchemy Models for the Plinth Guardrail Engine

The guardrails only read these tables. Evidence rows are written by the
evidence collector and artifacts by the generation pipeline; the write
helpers in repository.py exist for those collaborators and for tests.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, JSON, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _new_id() -> str:
    return str(uuid4())


class Competitor(Base):
    """Competitors tracked by a project."""
    __tablename__ = "competitors"

    id = Column(String(36), primary_key=True, default=_new_id)
    project_id = Column(String(36), nullable=False, index=True)

    name = Column(String(255))
    url = Column(Text)  # primary site, used for domain fallback lookups

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    evidence_sources = relationship("EvidenceSourceRow", back_populates="competitor")


class EvidenceSourceRow(Base):
    """One collected public signal (pricing page, docs, review, ...)."""
    __tablename__ = "evidence_sources"

    id = Column(String(36), primary_key=True, default=_new_id)
    project_id = Column(String(36), nullable=False)
    competitor_id = Column(String(36), ForeignKey("competitors.id"), nullable=True)

    url = Column(Text, nullable=False)
    domain = Column(String(255), nullable=False)
    source_type = Column(String(50), nullable=False)
    page_title = Column(Text)

    extracted_at = Column(DateTime)  # UTC
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    competitor = relationship("Competitor", back_populates="evidence_sources")

    __table_args__ = (
        Index("idx_evidence_sources_competitor", "competitor_id"),
        Index("idx_evidence_sources_project_domain", "project_id", "domain"),
    )


class ArtifactRow(Base):
    """Generated strategy artifact (jtbd, opportunities_v2, scoring_matrix, ...)."""
    __tablename__ = "artifacts"

    id = Column(String(36), primary_key=True, default=_new_id)
    project_id = Column(String(36), nullable=False)
    run_id = Column(String(36))  # nullable on legacy rows

    type = Column(String(50), nullable=False)
    content_json = Column(JSON)
    schema_version = Column(Integer)

    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_artifacts_project_created", "project_id", "created_at"),
        Index("idx_artifacts_run", "run_id"),
    )

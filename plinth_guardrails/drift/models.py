"""
Artifact Snapshot Types

Read-only views of the strategy artifacts the generation pipeline stores.
Only the fields drift detection reads are declared; everything else in the
stored JSON is carried through untouched.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ArtifactType(str, Enum):
    """Artifact types drift detection compares. Other types are ignored."""
    JTBD = "jtbd"
    OPPORTUNITIES = "opportunities_v2"
    SCORING_MATRIX = "scoring_matrix"


PREFERRED_SCHEMA_VERSION = 2


class JtbdJob(BaseModel):
    model_config = ConfigDict(extra="allow")

    job_statement: Optional[str] = None
    opportunity_score: float = 0.0


class JtbdContent(BaseModel):
    """Jobs-to-be-done artifact."""
    model_config = ConfigDict(extra="allow")

    jobs: List[JtbdJob] = Field(default_factory=list)


class OpportunityItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    opportunity: Optional[str] = None
    score: float = 0.0


class OpportunitiesContent(BaseModel):
    """Ranked opportunities artifact."""
    model_config = ConfigDict(extra="allow")

    opportunities: List[OpportunityItem] = Field(default_factory=list)


class CompetitorScoreSummary(BaseModel):
    model_config = ConfigDict(extra="allow")

    competitor_name: Optional[str] = None
    total_weighted_score: float = 0.0


class ScoringMatrixContent(BaseModel):
    """Competitor scoring matrix artifact."""
    model_config = ConfigDict(extra="allow")

    summary: List[CompetitorScoreSummary] = Field(default_factory=list)


CONTENT_MODELS = {
    ArtifactType.JTBD: JtbdContent,
    ArtifactType.OPPORTUNITIES: OpportunitiesContent,
    ArtifactType.SCORING_MATRIX: ScoringMatrixContent,
}


class StoredArtifact(BaseModel):
    """One stored artifact row, as drift detection sees it."""

    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: Optional[str] = None
    project_id: Optional[str] = None
    run_id: Optional[str] = None
    type: str
    content_json: Optional[Any] = None
    created_at: Optional[datetime] = None
    schema_version: Optional[int] = None

    @field_validator("id", "project_id", "run_id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        # UUID and integer keys from the database are compared as strings
        if value is not None and not isinstance(value, str):
            return str(value)
        return value

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def artifact_type(self) -> Optional[ArtifactType]:
        try:
            return ArtifactType(self.type)
        except ValueError:
            return None

    @property
    def effective_schema_version(self) -> Optional[int]:
        """Schema version from the row, the content, or the content's meta block."""
        if self.schema_version is not None:
            return self.schema_version

        content = self.content_json
        if not isinstance(content, dict):
            return None

        version = content.get("schema_version")
        if version is None and isinstance(content.get("meta"), dict):
            version = content["meta"].get("schema_version")

        try:
            return int(version) if version is not None else None
        except (TypeError, ValueError):
            return None

    @property
    def sort_time(self) -> datetime:
        return self.created_at or datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class RunArtifacts:
    """The three comparable artifacts of one run; any may be absent."""
    jtbd: Optional[JtbdContent] = None
    opportunities: Optional[OpportunitiesContent] = None
    scoring_matrix: Optional[ScoringMatrixContent] = None

    @property
    def has_any(self) -> bool:
        return (
            self.jtbd is not None
            or self.opportunities is not None
            or self.scoring_matrix is not None
        )

    def present_types(self) -> List[str]:
        present = []
        if self.jtbd is not None:
            present.append(ArtifactType.JTBD.value)
        if self.opportunities is not None:
            present.append(ArtifactType.OPPORTUNITIES.value)
        if self.scoring_matrix is not None:
            present.append(ArtifactType.SCORING_MATRIX.value)
        return present


@dataclass
class RunSnapshot:
    """A prior run chosen as the drift baseline."""
    run_id: str
    created_at: Optional[datetime]
    artifacts: RunArtifacts = field(default_factory=RunArtifacts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "artifact_types": self.artifacts.present_types(),
        }

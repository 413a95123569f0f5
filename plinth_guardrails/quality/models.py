"""
Evidence Record Types

Read-only views of what the evidence collector stored. The guardrail engine
never writes these.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator


class ConfidenceLevel(str, Enum):
    """Discrete trust classification for an output."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def coerce(cls, value: Union["ConfidenceLevel", str, None]) -> "ConfidenceLevel":
        """Accept enum members or their string values; anything else is LOW."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return cls.LOW
        return cls.LOW


class SourceType(str, Enum):
    """Kinds of public signal collected about a competitor."""
    PRICING = "pricing"
    DOCS = "docs"
    REVIEWS = "reviews"
    CHANGELOG = "changelog"
    MARKETING = "marketing"
    JOBS = "jobs"
    STATUS = "status"


# Legacy source_type spellings found in older evidence rows
SOURCE_TYPE_ALIASES = {
    "marketing_site": SourceType.MARKETING.value,
    "homepage": SourceType.MARKETING.value,
    "pricing_page": SourceType.PRICING.value,
    "documentation": SourceType.DOCS.value,
    "review": SourceType.REVIEWS.value,
    "release_notes": SourceType.CHANGELOG.value,
    "careers": SourceType.JOBS.value,
    "status_page": SourceType.STATUS.value,
}


def normalize_source_type(value: Optional[str]) -> Optional[str]:
    """Map legacy spellings onto the canonical source type."""
    if not value:
        return None
    key = value.strip().lower()
    if not key:
        return None
    return SOURCE_TYPE_ALIASES.get(key, key)


class EvidenceSource(BaseModel):
    """One observed signal about a competitor."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    source_type: Optional[str] = None
    extracted_at: Optional[datetime] = None
    competitor_id: Optional[str] = None
    domain: Optional[str] = None
    url: Optional[str] = None

    @field_validator("source_type", mode="before")
    @classmethod
    def _normalize_type(cls, value):
        if isinstance(value, SourceType):
            return value.value
        return normalize_source_type(value)

    @field_validator("competitor_id", mode="before")
    @classmethod
    def _stringify_competitor_id(cls, value):
        if value is not None and not isinstance(value, str):
            return str(value)
        return value

    @field_validator("extracted_at")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


@dataclass(frozen=True)
class CompetitorRecord:
    """A competitor tracked by a project."""
    id: str
    url: Optional[str] = None
    name: Optional[str] = None

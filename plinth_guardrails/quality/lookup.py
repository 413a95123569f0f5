"""
Evidence Lookup Chain

Resolves a competitor's evidence through three tiers:

1. By competitor id
2. By domain derived from the competitor URL
3. Empty list

A tier that fails logs its reason and hands over to the next one. The chain
never raises: one competitor's missing data must not block judging the rest.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, List, Optional, Protocol, Sequence, Union

from pydantic import ValidationError

from plinth_guardrails.utils.domain import extract_domain
from .models import CompetitorRecord, EvidenceSource

logger = logging.getLogger(__name__)


class EvidenceLookup(Protocol):
    """Storage collaborator that serves evidence rows."""

    async def get_by_competitor(self, competitor_id: str) -> Sequence[Any]:
        ...

    async def get_by_domain(self, project_id: Optional[str], domain: str) -> Sequence[Any]:
        ...


class LookupTier(str, Enum):
    """Which tier of the chain produced the sources."""
    COMPETITOR = "competitor"
    DOMAIN = "domain"
    EMPTY = "empty"


@dataclass
class LookupResult:
    """Outcome of resolving one competitor's evidence."""
    competitor_id: str
    tier: LookupTier
    sources: List[EvidenceSource] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return self.tier != LookupTier.COMPETITOR


def _coerce_row(row: Union[EvidenceSource, dict, Any]) -> EvidenceSource:
    if isinstance(row, EvidenceSource):
        return row
    if isinstance(row, dict):
        return EvidenceSource.model_validate(row)
    # ORM rows and other attribute objects
    return EvidenceSource.model_validate(row, from_attributes=True)


def _coerce(
    rows: Optional[Iterable[Union[EvidenceSource, dict, Any]]],
    competitor_id: str,
) -> List[EvidenceSource]:
    sources = []
    for row in rows or []:
        try:
            sources.append(_coerce_row(row))
        except ValidationError as e:
            logger.warning(
                f"Skipping unreadable evidence row for competitor {competitor_id}: "
                f"{e.error_count()} validation errors"
            )
    return sources


async def resolve_evidence_sources(
    lookup: EvidenceLookup,
    competitor: CompetitorRecord,
    project_id: Optional[str] = None,
) -> LookupResult:
    """
    Resolve evidence for one competitor through the fallback chain.

    Only a failing lookup call moves the chain to the next tier. Unreadable
    rows inside a successful answer are skipped one by one.

    Args:
        lookup: Evidence storage collaborator
        competitor: Competitor to resolve
        project_id: Project scope for the domain lookup

    Returns:
        LookupResult naming the tier that answered and any tier errors
    """
    errors: List[str] = []

    # Tier 1: competitor id
    try:
        rows = await lookup.get_by_competitor(competitor.id)
    except Exception as e:
        errors.append(f"competitor lookup failed: {e}")
        logger.warning(f"Evidence lookup by competitor {competitor.id} failed: {e}")
    else:
        return LookupResult(
            competitor_id=competitor.id,
            tier=LookupTier.COMPETITOR,
            sources=_coerce(rows, competitor.id),
        )

    # Tier 2: domain
    domain = extract_domain(competitor.url)
    if domain:
        try:
            rows = await lookup.get_by_domain(project_id, domain)
        except Exception as e:
            errors.append(f"domain lookup failed: {e}")
            logger.warning(f"Evidence lookup by domain for competitor {competitor.id} failed: {e}")
        else:
            logger.info(f"Evidence for competitor {competitor.id} resolved by domain fallback")
            return LookupResult(
                competitor_id=competitor.id,
                tier=LookupTier.DOMAIN,
                sources=_coerce(rows, competitor.id),
                errors=errors,
            )
    else:
        errors.append("no usable domain for fallback")
        logger.info(f"Competitor {competitor.id} has no usable URL for domain fallback")

    # Tier 3: empty
    return LookupResult(
        competitor_id=competitor.id,
        tier=LookupTier.EMPTY,
        errors=errors,
    )

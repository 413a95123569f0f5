"""
Evidence Quality Gate

Decides whether a project's competitor evidence is strong enough to trust
generated conclusions, and how fresh it is.

Gate (per-competitor averages):
    passes = avg distinct source types >= 2 OR avg evidence sources >= 3

Confidence:
    high   - both thresholds met
    medium - exactly one met
    low    - neither

Decay factor (from the OLDEST extracted_at, TTL = EVIDENCE_CACHE_TTL_HOURS):
    age <= 24h        -> 1.0
    24h < age <= TTL  -> linear 1.0 -> 0.5
    age > TTL         -> 0.5 × e^(-(age - TTL) / (2 × TTL))
    no timestamps     -> 0.5

Evidence is discounted as it ages, never discarded: the curve approaches
zero but does not reach it.
"""

import asyncio
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

from plinth_guardrails.utils.config import GuardrailConfig, get_guardrail_config
from plinth_guardrails.utils.numeric import round_half_up
from .invariants import InvariantId, invariant
from .lookup import EvidenceLookup, LookupResult, LookupTier, resolve_evidence_sources
from .models import CompetitorRecord, ConfidenceLevel

logger = logging.getLogger(__name__)


@dataclass
class EvidenceQualityCheck:
    """Result of the evidence quality gate."""
    passes: bool
    confidence: ConfidenceLevel
    distinct_source_types: float  # average per competitor
    total_evidence_sources: float  # average per competitor
    decay_factor: float
    reason: Optional[str] = None
    competitor_count: int = 0
    lookup_tiers: Dict[str, int] = field(default_factory=dict)
    oldest_extracted_at: Optional[datetime] = None
    newest_extracted_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "passes": self.passes,
            "confidence": self.confidence.value,
            "reason": self.reason,
            "distinct_source_types": self.distinct_source_types,
            "total_evidence_sources": self.total_evidence_sources,
            "decay_factor": self.decay_factor,
            "competitor_count": self.competitor_count,
            "lookup_tiers": dict(self.lookup_tiers),
            "oldest_extracted_at": self.oldest_extracted_at.isoformat() if self.oldest_extracted_at else None,
            "newest_extracted_at": self.newest_extracted_at.isoformat() if self.newest_extracted_at else None,
        }


def compute_decay_factor(
    oldest_extracted_at: Optional[datetime],
    now: Optional[datetime] = None,
    config: Optional[GuardrailConfig] = None,
) -> float:
    """
    Compute the recency decay factor for a body of evidence.

    Args:
        oldest_extracted_at: Oldest extraction timestamp seen, or None
        now: Reference time (defaults to current UTC time)
        config: Thresholds (TTL, fresh window)

    Returns:
        Freshness multiplier in [0, 1]
    """
    cfg = config or get_guardrail_config()

    if oldest_extracted_at is None:
        return cfg.missing_timestamp_decay

    now = now or datetime.now(timezone.utc)
    if oldest_extracted_at.tzinfo is None:
        oldest_extracted_at = oldest_extracted_at.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    age_hours = (now - oldest_extracted_at) / timedelta(hours=1)
    ttl_hours = cfg.evidence_cache_ttl_hours
    fresh_hours = cfg.fresh_window_hours
    floor = cfg.stale_decay_floor

    # Future timestamps count as fresh
    if age_hours <= fresh_hours:
        return 1.0

    if age_hours <= ttl_hours:
        window = ttl_hours - fresh_hours
        progress = (age_hours - fresh_hours) / window
        return 1.0 - progress * (1.0 - floor)

    excess_hours = age_hours - ttl_hours
    return floor * math.exp(-excess_hours / (2 * ttl_hours))


class EvidenceQualityChecker:
    """
    Evidence sufficiency and freshness gate for a set of competitors.

    Usage:
        checker = EvidenceQualityChecker(lookup)
        check = await checker.check(competitors, project_id="p1")
        if not check.passes:
            logger.info(check.reason)
    """

    def __init__(self, lookup: EvidenceLookup, config: Optional[GuardrailConfig] = None):
        self.lookup = lookup
        self.config = config or get_guardrail_config()

    async def check(
        self,
        competitors: Sequence[CompetitorRecord],
        project_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> EvidenceQualityCheck:
        """
        Run the evidence quality gate.

        Args:
            competitors: Competitors of the project
            project_id: Project scope for domain fallback lookups
            now: Reference time for the decay factor

        Returns:
            EvidenceQualityCheck (never raises for missing or bad evidence)
        """
        if not competitors:
            return EvidenceQualityCheck(
                passes=False,
                confidence=ConfidenceLevel.LOW,
                reason="No competitors found",
                distinct_source_types=0.0,
                total_evidence_sources=0.0,
                decay_factor=0.0,
            )

        # Fan out: aggregation below does not depend on order
        results: List[LookupResult] = await asyncio.gather(*[
            resolve_evidence_sources(self.lookup, competitor, project_id)
            for competitor in competitors
        ])

        return self.evaluate(results, now=now)

    def evaluate(
        self,
        results: Sequence[LookupResult],
        now: Optional[datetime] = None,
    ) -> EvidenceQualityCheck:
        """Aggregate resolved lookups into a quality verdict."""
        cfg = self.config
        competitor_count = len(results)

        total_sources = 0
        total_distinct_types = 0
        oldest: Optional[datetime] = None
        newest: Optional[datetime] = None
        tiers = {tier.value: 0 for tier in LookupTier}

        for result in results:
            tiers[result.tier.value] += 1
            total_sources += len(result.sources)

            source_types = set()
            for source in result.sources:
                if source.source_type:
                    source_types.add(source.source_type)

                if source.extracted_at:
                    if oldest is None or source.extracted_at < oldest:
                        oldest = source.extracted_at
                    if newest is None or source.extracted_at > newest:
                        newest = source.extracted_at

            total_distinct_types += len(source_types)

        avg_distinct = total_distinct_types / competitor_count if competitor_count else 0.0
        avg_sources = total_sources / competitor_count if competitor_count else 0.0

        meets_type_requirement = avg_distinct >= cfg.min_distinct_source_types
        meets_count_requirement = avg_sources >= cfg.min_evidence_sources
        passes = meets_type_requirement or meets_count_requirement

        if meets_type_requirement and meets_count_requirement:
            confidence = ConfidenceLevel.HIGH
        elif passes:
            confidence = ConfidenceLevel.MEDIUM
        else:
            confidence = ConfidenceLevel.LOW

        decay_factor = compute_decay_factor(oldest, now=now, config=cfg)
        invariant(0.0 <= decay_factor <= 1.0, {
            "id": InvariantId.DECAY_IN_RANGE,
            "details": {"decay_factor": decay_factor},
        })

        reason = None
        if not passes:
            reason = (
                f"Insufficient evidence quality: average {avg_distinct:.1f} distinct source types "
                f"and {avg_sources:.1f} evidence sources per competitor. "
                f"Requires ≥{cfg.min_distinct_source_types:g} distinct source types "
                f"OR ≥{cfg.min_evidence_sources:g} evidence sources."
            )

        degraded = competitor_count - tiers[LookupTier.COMPETITOR.value]
        if degraded:
            logger.info(f"Evidence check: {degraded}/{competitor_count} competitors used fallback lookups")

        log_fn = logger.info if passes else logger.warning
        log_fn(
            f"Evidence quality: {confidence.value} (passes={passes}, "
            f"types={avg_distinct:.2f}, sources={avg_sources:.2f}, decay={decay_factor:.2f})"
        )

        return EvidenceQualityCheck(
            passes=passes,
            confidence=confidence,
            reason=reason,
            distinct_source_types=round_half_up(avg_distinct, 1),
            total_evidence_sources=round_half_up(avg_sources, 1),
            decay_factor=decay_factor,
            competitor_count=competitor_count,
            lookup_tiers=tiers,
            oldest_extracted_at=oldest,
            newest_extracted_at=newest,
        )


async def check_evidence_quality(
    competitors: Sequence[CompetitorRecord],
    lookup: EvidenceLookup,
    project_id: Optional[str] = None,
    now: Optional[datetime] = None,
    config: Optional[GuardrailConfig] = None,
) -> EvidenceQualityCheck:
    """Run the evidence quality gate with a one-off checker."""
    checker = EvidenceQualityChecker(lookup, config=config)
    return await checker.check(competitors, project_id=project_id, now=now)

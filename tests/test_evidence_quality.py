"""
Tests for the Evidence Quality Gate

Tests:
- Decay factor curve
- Gate and confidence thresholds
- Competitor -> domain -> empty lookup chain
"""

import asyncio
import logging
import math
import uuid
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from plinth_guardrails.quality import (
    CompetitorRecord,
    ConfidenceLevel,
    EvidenceQualityChecker,
    LookupTier,
    check_evidence_quality,
    compute_decay_factor,
    resolve_evidence_sources,
)
from plinth_guardrails.utils.config import GuardrailConfig


class TestDecayFactor:
    """Freshness multiplier from the oldest extraction time."""

    def test_missing_timestamp(self, now, config):
        assert compute_decay_factor(None, now=now, config=config) == 0.5

    def test_fresh_within_a_day(self, now, config):
        assert compute_decay_factor(now, now=now, config=config) == 1.0
        assert compute_decay_factor(now - timedelta(hours=24), now=now, config=config) == 1.0

    def test_future_timestamp_counts_as_fresh(self, now, config):
        assert compute_decay_factor(now + timedelta(hours=5), now=now, config=config) == 1.0

    def test_linear_between_fresh_window_and_ttl(self, now, config):
        # 96h is halfway between 24h and 168h
        decay = compute_decay_factor(now - timedelta(hours=96), now=now, config=config)

        assert decay == pytest.approx(0.75)

    def test_half_at_ttl(self, now, config):
        decay = compute_decay_factor(now - timedelta(hours=168), now=now, config=config)

        assert decay == pytest.approx(0.5)

    def test_exponential_beyond_ttl(self, now, config):
        # excess of 2 × TTL gives 0.5 × e^-1
        decay = compute_decay_factor(now - timedelta(hours=168 + 336), now=now, config=config)

        assert decay == pytest.approx(0.5 * math.exp(-1))

    def test_never_reaches_zero(self, now, config):
        decay = compute_decay_factor(now - timedelta(days=400), now=now, config=config)

        assert 0.0 < decay < 0.01

    def test_monotonically_non_increasing(self, now, config):
        ages = [0, 12, 24, 30, 60, 100, 167, 168, 169, 300, 1000, 5000]
        values = [
            compute_decay_factor(now - timedelta(hours=age), now=now, config=config)
            for age in ages
        ]

        assert all(a >= b for a, b in zip(values, values[1:]))
        assert all(0.0 <= v <= 1.0 for v in values)

    def test_naive_timestamp_treated_as_utc(self, now, config):
        naive = (now - timedelta(hours=96)).replace(tzinfo=None)

        assert compute_decay_factor(naive, now=now, config=config) == pytest.approx(0.75)

    def test_custom_ttl(self, now):
        config = GuardrailConfig(evidence_cache_ttl_hours=48)

        assert compute_decay_factor(now - timedelta(hours=48), now=now, config=config) == pytest.approx(0.5)


class TestEvidenceQualityChecker:
    """Sufficiency gate over a project's competitors."""

    def test_no_competitors(self, lookup_factory, now, config):
        check = asyncio.run(check_evidence_quality([], lookup_factory(), now=now, config=config))

        assert not check.passes
        assert check.confidence == ConfidenceLevel.LOW
        assert check.reason == "No competitors found"
        assert check.distinct_source_types == 0.0
        assert check.total_evidence_sources == 0.0
        assert check.decay_factor == 0.0

    def test_thin_evidence_fails_both_gates(self, lookup_factory, make_source, now, config):
        """(2+1+1)/3 ≈ 1.33 types and (4+1+1)/3 = 2.0 sources: low."""
        lookup = lookup_factory(by_competitor={
            "c1": [
                make_source("pricing", competitor_id="c1"),
                make_source("pricing", competitor_id="c1"),
                make_source("docs", competitor_id="c1"),
                make_source("docs", competitor_id="c1"),
            ],
            "c2": [make_source("pricing", competitor_id="c2")],
            "c3": [make_source("reviews", competitor_id="c3")],
        })
        competitors = [CompetitorRecord(id=c) for c in ("c1", "c2", "c3")]

        check = asyncio.run(check_evidence_quality(competitors, lookup, now=now, config=config))

        assert not check.passes
        assert check.confidence == ConfidenceLevel.LOW
        assert check.distinct_source_types == 1.3
        assert check.total_evidence_sources == 2.0
        assert check.reason.startswith("Insufficient evidence quality")
        assert "≥2 distinct source types" in check.reason

    def test_both_thresholds_met_is_high(self, lookup_factory, make_source, now, config):
        sources = [make_source("pricing"), make_source("docs"), make_source("changelog")]
        lookup = lookup_factory(by_competitor={"c1": sources, "c2": sources})
        competitors = [CompetitorRecord(id="c1"), CompetitorRecord(id="c2")]

        check = asyncio.run(check_evidence_quality(competitors, lookup, now=now, config=config))

        assert check.passes
        assert check.confidence == ConfidenceLevel.HIGH
        assert check.distinct_source_types == 3.0
        assert check.total_evidence_sources == 3.0
        assert check.reason is None

    def test_one_threshold_met_is_medium(self, lookup_factory, make_source, now, config):
        sources = [make_source("reviews"), make_source("reviews"), make_source("reviews")]
        lookup = lookup_factory(by_competitor={"c1": sources})

        check = asyncio.run(
            check_evidence_quality([CompetitorRecord(id="c1")], lookup, now=now, config=config)
        )

        assert check.passes
        assert check.confidence == ConfidenceLevel.MEDIUM

    def test_source_type_threshold_alone_is_medium(self, lookup_factory, make_source, now, config):
        """2.0 distinct types but only 2.0 sources per competitor: passes as medium."""
        lookup = lookup_factory(by_competitor={
            "c1": [make_source("pricing", competitor_id="c1"), make_source("docs", competitor_id="c1")],
            "c2": [make_source("reviews", competitor_id="c2"), make_source("jobs", competitor_id="c2")],
        })
        competitors = [CompetitorRecord(id="c1"), CompetitorRecord(id="c2")]

        check = asyncio.run(check_evidence_quality(competitors, lookup, now=now, config=config))

        assert check.passes
        assert check.confidence == ConfidenceLevel.MEDIUM
        assert check.distinct_source_types == 2.0
        assert check.total_evidence_sources == 2.0

    def test_unreadable_row_keeps_competitor_evidence(self, now, config, caplog):
        caplog.set_level(logging.WARNING)
        lookup = AsyncMock()
        lookup.get_by_competitor.return_value = [
            {"source_type": "pricing", "extracted_at": now.isoformat()},
            {"source_type": "docs", "extracted_at": now.isoformat()},
            {"source_type": "reviews", "extracted_at": now.isoformat()},
            {"source_type": "changelog", "extracted_at": "not-a-date"},
        ]

        check = asyncio.run(check_evidence_quality(
            [CompetitorRecord(id="c1", url="acme.com")], lookup, now=now, config=config,
        ))

        assert check.passes
        assert check.confidence == ConfidenceLevel.HIGH
        assert check.total_evidence_sources == 3.0
        assert check.lookup_tiers == {"competitor": 1, "domain": 0, "empty": 0}
        lookup.get_by_domain.assert_not_awaited()
        assert any("Skipping unreadable evidence row" in r.getMessage() for r in caplog.records)

    def test_decay_uses_oldest_source(self, lookup_factory, make_source, now, config):
        lookup = lookup_factory(by_competitor={
            "c1": [make_source("pricing", hours_ago=2), make_source("docs", hours_ago=96)],
        })

        check = asyncio.run(
            check_evidence_quality([CompetitorRecord(id="c1")], lookup, now=now, config=config)
        )

        assert check.decay_factor == pytest.approx(0.75)
        assert check.oldest_extracted_at == now - timedelta(hours=96)
        assert check.newest_extracted_at == now - timedelta(hours=2)

    def test_sources_without_timestamps(self, lookup_factory, make_source, now, config):
        lookup = lookup_factory(by_competitor={"c1": [make_source("pricing", hours_ago=None)]})

        check = asyncio.run(
            check_evidence_quality([CompetitorRecord(id="c1")], lookup, now=now, config=config)
        )

        assert check.decay_factor == 0.5

    def test_failed_lookup_degrades_one_competitor(self, lookup_factory, make_source, now, config):
        sources = [make_source("pricing"), make_source("docs"), make_source("jobs")]
        lookup = lookup_factory(
            by_competitor={"c1": sources},
            failing_competitors={"c2"},
            failing_domains={"beta.io"},
        )
        competitors = [
            CompetitorRecord(id="c1", url="https://acme.com"),
            CompetitorRecord(id="c2", url="https://beta.io"),
        ]

        check = asyncio.run(check_evidence_quality(competitors, lookup, now=now, config=config))

        assert check.competitor_count == 2
        assert check.total_evidence_sources == 1.5
        assert check.distinct_source_types == 1.5
        assert check.lookup_tiers == {"competitor": 1, "domain": 0, "empty": 1}

    def test_to_dict(self, lookup_factory, make_source, now, config):
        lookup = lookup_factory(by_competitor={"c1": [make_source("pricing")]})

        check = asyncio.run(
            check_evidence_quality([CompetitorRecord(id="c1")], lookup, now=now, config=config)
        )
        data = check.to_dict()

        assert data["confidence"] == "low"
        assert data["passes"] is False
        assert data["lookup_tiers"]["competitor"] == 1
        assert data["oldest_extracted_at"] == (now - timedelta(hours=1)).isoformat()

    def test_with_async_mock_lookup(self, now, config):
        lookup = AsyncMock()
        lookup.get_by_competitor.return_value = [
            {"source_type": "marketing_site", "extracted_at": now.isoformat()},
            {"source_type": "pricing_page", "extracted_at": now.isoformat()},
            {"source_type": "status_page", "extracted_at": now.isoformat()},
        ]

        checker = EvidenceQualityChecker(lookup, config=config)
        check = asyncio.run(checker.check([CompetitorRecord(id="c1")], project_id="p1", now=now))

        assert check.confidence == ConfidenceLevel.HIGH
        assert check.decay_factor == 1.0
        lookup.get_by_competitor.assert_awaited_once_with("c1")
        lookup.get_by_domain.assert_not_awaited()


class TestLookupChain:
    """Competitor -> domain -> empty fallback."""

    def test_competitor_tier(self, lookup_factory, make_source):
        lookup = lookup_factory(by_competitor={"c1": [make_source("pricing")]})

        result = asyncio.run(resolve_evidence_sources(lookup, CompetitorRecord(id="c1", url="acme.com")))

        assert result.tier == LookupTier.COMPETITOR
        assert len(result.sources) == 1
        assert not result.degraded
        assert lookup.domain_calls == []

    def test_empty_competitor_result_does_not_fall_back(self, lookup_factory):
        lookup = lookup_factory()

        result = asyncio.run(resolve_evidence_sources(lookup, CompetitorRecord(id="c1", url="acme.com")))

        assert result.tier == LookupTier.COMPETITOR
        assert result.sources == []
        assert lookup.domain_calls == []

    def test_domain_fallback(self, lookup_factory, make_source):
        lookup = lookup_factory(
            by_domain={"beta.io": [make_source("docs", domain="beta.io")]},
            failing_competitors={"c2"},
        )
        competitor = CompetitorRecord(id="c2", url="https://www.beta.io/pricing")

        result = asyncio.run(resolve_evidence_sources(lookup, competitor, project_id="p1"))

        assert result.tier == LookupTier.DOMAIN
        assert len(result.sources) == 1
        assert lookup.domain_calls == [("p1", "beta.io")]
        assert result.errors and "competitor lookup failed" in result.errors[0]

    def test_empty_when_both_tiers_fail(self, lookup_factory):
        lookup = lookup_factory(failing_competitors={"c2"}, failing_domains={"beta.io"})

        result = asyncio.run(resolve_evidence_sources(lookup, CompetitorRecord(id="c2", url="beta.io")))

        assert result.tier == LookupTier.EMPTY
        assert result.sources == []
        assert len(result.errors) == 2

    def test_empty_without_usable_url(self, lookup_factory):
        lookup = lookup_factory(failing_competitors={"c3"})

        result = asyncio.run(resolve_evidence_sources(lookup, CompetitorRecord(id="c3", url="not a url")))

        assert result.tier == LookupTier.EMPTY
        assert lookup.domain_calls == []

    def test_unreadable_domain_row_skipped(self, lookup_factory, make_source):
        lookup = lookup_factory(failing_competitors={"c2"})
        lookup.by_domain["beta.io"] = [
            make_source("docs", domain="beta.io"),
            {"source_type": "pricing", "extracted_at": "yesterday-ish"},
        ]

        result = asyncio.run(resolve_evidence_sources(lookup, CompetitorRecord(id="c2", url="beta.io")))

        assert result.tier == LookupTier.DOMAIN
        assert [s.source_type for s in result.sources] == ["docs"]

    def test_uuid_competitor_id_read_as_string(self):
        competitor_id = uuid.uuid4()
        lookup = AsyncMock()
        lookup.get_by_competitor.return_value = [{"source_type": "pricing", "competitor_id": competitor_id}]

        result = asyncio.run(resolve_evidence_sources(lookup, CompetitorRecord(id=str(competitor_id))))

        assert result.sources[0].competitor_id == str(competitor_id)

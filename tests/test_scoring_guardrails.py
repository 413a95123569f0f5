"""
Tests for Scoring Guardrails

Tests:
- Confidence bands (cascading rules)
- Score ceilings (hard clamp)
- Score distribution audit
"""

import logging

import pytest

from plinth_guardrails.quality import ConfidenceLevel, EvidenceQualityCheck
from plinth_guardrails.scoring import (
    ConfidenceComputer,
    ConfidenceSignals,
    ScoreCeilingEnforcer,
    apply_score_ceiling,
    check_score_distribution,
    compute_confidence_band,
)
from plinth_guardrails.utils.config import GuardrailConfig


def signals(quality="high", decay=1.0, repairs=0, penalty=0.0) -> ConfidenceSignals:
    return ConfidenceSignals(
        evidence_quality=quality,
        decay_factor=decay,
        repair_count=repairs,
        banned_pattern_penalty=penalty,
    )


class TestConfidenceSignals:

    def test_string_quality_coerced(self):
        assert signals("HIGH").evidence_quality == ConfidenceLevel.HIGH
        assert signals("unknown").evidence_quality == ConfidenceLevel.LOW

    def test_from_evidence_check(self):
        check = EvidenceQualityCheck(
            passes=True,
            confidence=ConfidenceLevel.MEDIUM,
            distinct_source_types=2.0,
            total_evidence_sources=2.5,
            decay_factor=0.7,
        )

        result = ConfidenceSignals.from_evidence_check(check, repair_count=2, banned_pattern_penalty=0.1)

        assert result.evidence_quality == ConfidenceLevel.MEDIUM
        assert result.decay_factor == 0.7
        assert result.repair_count == 2
        assert result.to_dict()["evidence_quality"] == "medium"


class TestConfidenceBands:
    """high > medium > low cascade."""

    @pytest.fixture
    def computer(self, config):
        return ConfidenceComputer(config)

    def test_high_band(self, computer):
        assert computer.compute_band(signals(), 75) == ConfidenceLevel.HIGH

    def test_high_requires_score_of_70(self, computer):
        assert computer.compute_band(signals(), 69) == ConfidenceLevel.MEDIUM

    def test_banned_language_blocks_high(self, computer):
        assert computer.compute_band(signals(penalty=0.25), 95) == ConfidenceLevel.MEDIUM

    def test_stale_evidence_blocks_high(self, computer):
        assert computer.compute_band(signals(decay=0.5), 95) == ConfidenceLevel.MEDIUM

    def test_stale_and_repaired_is_low(self, computer):
        assert computer.compute_band(signals(decay=0.5, repairs=3), 95) == ConfidenceLevel.LOW

    def test_medium_quality_caps_at_medium(self, computer):
        assert computer.compute_band(signals("medium"), 99) == ConfidenceLevel.MEDIUM

    def test_medium_requires_score_of_50(self, computer):
        assert computer.compute_band(signals("medium"), 49) == ConfidenceLevel.LOW

    def test_low_quality_is_always_low(self, computer):
        assert computer.compute_band(signals("low"), 100) == ConfidenceLevel.LOW

    def test_penalty_above_threshold_never_high(self):
        for score in range(0, 101, 5):
            for decay in (0.0, 0.8, 1.0):
                band = compute_confidence_band(signals(decay=decay, penalty=0.21), score)
                assert band != ConfidenceLevel.HIGH

    def test_high_implies_score_and_clean_language(self):
        for score in range(0, 101, 5):
            for penalty in (0.0, 0.1, 0.2, 0.3, 1.0):
                s = signals(penalty=penalty)
                if compute_confidence_band(s, score) == ConfidenceLevel.HIGH:
                    assert score >= 70
                    assert penalty <= 0.2


class TestScoreCeiling:
    """min(score, ceiling), ceiling in {85, 90, 100}."""

    @pytest.fixture
    def enforcer(self, config):
        return ScoreCeilingEnforcer(config)

    def test_high_confidence_is_uncapped(self, enforcer):
        assert enforcer.ceiling_for(signals()) == 100
        assert enforcer.apply(97, signals()) == 97

    def test_high_with_stale_evidence_but_few_repairs(self, enforcer):
        assert enforcer.ceiling_for(signals(decay=0.5, repairs=0)) == 100

    def test_high_with_stale_evidence_and_repairs(self, enforcer):
        assert enforcer.ceiling_for(signals(decay=0.5, repairs=2)) == 90

    def test_banned_language_drops_to_90(self, enforcer):
        assert enforcer.apply(97, signals(penalty=0.3)) == 90

    def test_medium_quality_capped_at_90(self, enforcer):
        assert enforcer.apply(92, signals("medium")) == 90

    def test_low_quality_capped_at_85(self, enforcer):
        assert enforcer.apply(92, signals("low")) == 85

    def test_ceiling_never_raises_a_score(self, enforcer):
        for quality in ("low", "medium", "high"):
            for score in (0, 40, 84.5, 85, 89.9, 90, 100):
                adjusted = enforcer.apply(score, signals(quality))
                assert adjusted <= score
                assert adjusted in (score, 85, 90, 100)

    def test_out_of_range_score_logs_and_clamps_to_ceiling(self, enforcer, caplog):
        caplog.set_level(logging.WARNING)

        adjusted = enforcer.apply(120, signals("low"))

        assert adjusted == 85
        assert any("INV-2" in r.getMessage() for r in caplog.records)

    def test_configured_ceiling(self):
        config = GuardrailConfig(low_confidence_ceiling=80)

        assert apply_score_ceiling(92, signals("low"), config=config) == 80


class TestScoreDistribution:
    """Flat and outlier detection over a batch."""

    def test_identical_scores_are_flat(self):
        check = check_score_distribution([50, 50, 50, 50])

        assert check.is_flat
        assert check.flags == ["flat_distribution"]
        assert check.std_dev == 0.0
        assert not check.has_extreme_outliers

    def test_empty_scores(self):
        check = check_score_distribution([])

        assert check.is_flat
        assert check.flags == ["empty_scores"]
        assert check.mean == 0.0
        assert check.std_dev == 0.0
        assert check.min == 0.0
        assert check.max == 0.0

    def test_single_score_is_not_flat(self):
        check = check_score_distribution([70])

        assert not check.is_flat
        assert check.flags == []

    def test_well_spread_scores(self):
        check = check_score_distribution([20, 40, 60, 80])

        assert not check.is_flat
        assert not check.has_extreme_outliers
        assert check.mean == 50.0
        assert check.std_dev == 22.36
        assert check.range == 60

    def test_extreme_outlier(self):
        check = check_score_distribution([50] * 20 + [100])

        assert check.has_extreme_outliers
        assert not check.is_flat
        assert check.flags == ["extreme_outliers"]

    def test_small_batch_outlier_stays_within_three_sigma(self):
        # With four values, 95 is ~1.7σ from the mean under the population std
        check = check_score_distribution([10, 20, 30, 95])

        assert not check.has_extreme_outliers

    def test_low_spread_large_batch_is_flat(self):
        check = check_score_distribution([50] * 98 + [49, 51])

        assert check.is_flat
        assert check.has_extreme_outliers
        assert check.flags == ["flat_distribution", "extreme_outliers"]

    def test_to_dict(self):
        data = check_score_distribution([20, 40, 60, 80]).to_dict()

        assert data["count"] == 4
        assert data["range"] == 60
        assert data["flags"] == []

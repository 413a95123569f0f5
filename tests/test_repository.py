"""
Tests for the Database Layer

Uses an in-memory SQLite database (see conftest.db_session).
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from plinth_guardrails.database import (
    DatabaseEvidenceLookup,
    add_evidence_source,
    create_competitor,
    get_evidence_sources_by_competitor,
    get_evidence_sources_for_domain,
    list_artifacts_for_project,
    list_competitors_for_project,
    store_artifact,
)
from plinth_guardrails.drift import StoredArtifact, detect_run_drift
from plinth_guardrails.quality import ConfidenceLevel, EvidenceSource, check_evidence_quality


class TestCompetitors:

    def test_create_and_list(self, db_session):
        first = create_competitor(db_session, "proj-1", url="https://acme.com", name="Acme")
        second = create_competitor(db_session, "proj-1", url="beta.io")
        create_competitor(db_session, "proj-2", url="other.com")

        competitors = list_competitors_for_project(db_session, "proj-1")

        assert {c.id for c in competitors} == {first, second}
        assert {c.url for c in competitors} == {"https://acme.com", "beta.io"}

    def test_unknown_project(self, db_session):
        assert list_competitors_for_project(db_session, "missing") == []


class TestEvidenceSources:

    def test_domain_derived_and_type_normalized(self, db_session, now):
        competitor_id = create_competitor(db_session, "proj-1", url="acme.com")
        add_evidence_source(
            db_session,
            "proj-1",
            url="https://www.acme.com/pricing",
            source_type="pricing_page",
            competitor_id=competitor_id,
            extracted_at=now,
        )

        sources = get_evidence_sources_by_competitor(db_session, competitor_id)

        assert len(sources) == 1
        assert isinstance(sources[0], EvidenceSource)
        assert sources[0].domain == "acme.com"
        assert sources[0].source_type == "pricing"
        assert sources[0].extracted_at == now

    def test_domain_lookup_scoped_to_project(self, db_session):
        add_evidence_source(db_session, "proj-1", url="https://acme.com/docs", source_type="docs")
        add_evidence_source(db_session, "proj-2", url="https://acme.com/jobs", source_type="jobs")

        scoped = get_evidence_sources_for_domain(db_session, "proj-1", "acme.com")
        unscoped = get_evidence_sources_for_domain(db_session, None, "acme.com")

        assert [s.source_type for s in scoped] == ["docs"]
        assert len(unscoped) == 2

    def test_unusable_url_rejected(self, db_session):
        with pytest.raises(ValueError):
            add_evidence_source(db_session, "proj-1", url="not a url", source_type="docs")


class TestDatabaseEvidenceLookup:

    def test_evidence_gate_from_database(self, db_session, now):
        competitor_id = create_competitor(db_session, "proj-1", url="acme.com")
        for source_type, hours in (("pricing", 2), ("docs", 30), ("changelog", 5)):
            add_evidence_source(
                db_session,
                "proj-1",
                url=f"https://acme.com/{source_type}",
                source_type=source_type,
                competitor_id=competitor_id,
                extracted_at=now - timedelta(hours=hours),
            )

        competitors = list_competitors_for_project(db_session, "proj-1")
        lookup = DatabaseEvidenceLookup(db_session)
        check = asyncio.run(check_evidence_quality(competitors, lookup, project_id="proj-1", now=now))

        assert check.passes
        assert check.confidence == ConfidenceLevel.HIGH
        assert check.lookup_tiers["competitor"] == 1
        assert check.oldest_extracted_at == now - timedelta(hours=30)
        assert check.decay_factor < 1.0

    def test_domain_tier(self, db_session):
        add_evidence_source(db_session, "proj-1", url="https://beta.io/status", source_type="status_page")
        lookup = DatabaseEvidenceLookup(db_session)

        sources = asyncio.run(lookup.get_by_domain("proj-1", "beta.io"))

        assert [s.source_type for s in sources] == ["status"]


class TestArtifacts:

    def test_store_and_list_newest_first(self, db_session):
        base = datetime(2025, 1, 1, tzinfo=timezone.utc)
        store_artifact(db_session, "proj-1", "run-1", "jtbd", {"jobs": []}, created_at=base)
        store_artifact(db_session, "proj-1", "run-2", "jtbd", {"jobs": []}, created_at=base + timedelta(days=1),
                       schema_version=2)
        store_artifact(db_session, "proj-2", "run-9", "jtbd", {"jobs": []}, created_at=base)

        artifacts = list_artifacts_for_project(db_session, "proj-1")

        assert [a.run_id for a in artifacts] == ["run-2", "run-1"]
        assert all(isinstance(a, StoredArtifact) for a in artifacts)
        assert artifacts[0].schema_version == 2
        assert artifacts[0].created_at.tzinfo is not None

    def test_drift_from_stored_artifacts(self, db_session):
        base = datetime(2025, 1, 1, tzinfo=timezone.utc)
        store_artifact(db_session, "proj-1", "run-1", "jtbd",
                       {"jobs": [{"opportunity_score": 58}]}, created_at=base)
        store_artifact(db_session, "proj-1", "run-2", "jtbd",
                       {"jobs": [{"opportunity_score": 72}]}, created_at=base + timedelta(days=1))

        result = detect_run_drift(list_artifacts_for_project(db_session, "proj-1"), "run-2")

        assert result.flags == ["jtbd_drift"]
        assert result.baseline_run_id == "run-1"

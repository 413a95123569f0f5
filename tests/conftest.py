"""
Pytest Configuration and Shared Fixtures

Provides common fixtures for all test modules: thresholds, a fixed clock,
evidence factories, an in-memory evidence lookup and an in-memory database.
"""

import pytest
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from plinth_guardrails.database.models import Base
from plinth_guardrails.quality.models import EvidenceSource
from plinth_guardrails.utils.config import GuardrailConfig


# ============================================================================
# Thresholds and Clock
# ============================================================================

@pytest.fixture
def config() -> GuardrailConfig:
    """Default thresholds (168h TTL)."""
    return GuardrailConfig()


@pytest.fixture
def now() -> datetime:
    """Fixed reference time for decay calculations."""
    return datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


# ============================================================================
# Evidence Fixtures
# ============================================================================

@pytest.fixture
def make_source(now):
    """Factory for EvidenceSource records extracted some hours before `now`."""

    def _make(
        source_type: str,
        hours_ago: Optional[float] = 1.0,
        competitor_id: str = "comp-1",
        domain: str = "acme.com",
    ) -> EvidenceSource:
        extracted_at = now - timedelta(hours=hours_ago) if hours_ago is not None else None
        return EvidenceSource(
            source_type=source_type,
            extracted_at=extracted_at,
            competitor_id=competitor_id,
            domain=domain,
            url=f"https://{domain}/{source_type}",
        )

    return _make


class FakeEvidenceLookup:
    """In-memory evidence store with switchable failures."""

    def __init__(
        self,
        by_competitor: Optional[Dict[str, List[EvidenceSource]]] = None,
        by_domain: Optional[Dict[str, List[EvidenceSource]]] = None,
        failing_competitors: Iterable[str] = (),
        failing_domains: Iterable[str] = (),
    ):
        self.by_competitor = by_competitor or {}
        self.by_domain = by_domain or {}
        self.failing_competitors = set(failing_competitors)
        self.failing_domains = set(failing_domains)
        self.competitor_calls: List[str] = []
        self.domain_calls: List[tuple] = []

    async def get_by_competitor(self, competitor_id: str) -> List[EvidenceSource]:
        self.competitor_calls.append(competitor_id)
        if competitor_id in self.failing_competitors:
            raise ConnectionError("evidence store unavailable")
        return self.by_competitor.get(competitor_id, [])

    async def get_by_domain(self, project_id: Optional[str], domain: str) -> List[EvidenceSource]:
        self.domain_calls.append((project_id, domain))
        if domain in self.failing_domains:
            raise ConnectionError("evidence store unavailable")
        return self.by_domain.get(domain, [])


@pytest.fixture
def lookup_factory():
    """Build a FakeEvidenceLookup."""
    return FakeEvidenceLookup


# ============================================================================
# Database
# ============================================================================

@pytest.fixture
def db_engine():
    """In-memory SQLite shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """Session on the in-memory database."""
    SessionLocal = sessionmaker(bind=db_engine, autocommit=False, autoflush=False, expire_on_commit=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()

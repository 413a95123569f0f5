"""
Plinth Guardrails Database Layer

Usage:
    from plinth_guardrails.database import (
        init_db, get_db, get_db_context,
        list_competitors_for_project, list_artifacts_for_project,
        DatabaseEvidenceLookup,
    )

    init_db()

    with get_db_context() as db:
        competitors = list_competitors_for_project(db, project_id)
        lookup = DatabaseEvidenceLookup(db)
"""

# Models
from .models import Base, Competitor, EvidenceSourceRow, ArtifactRow

# Session management
from .session import (
    get_database_url,
    create_db_engine,
    enable_sqlite_foreign_keys,
    get_engine,
    get_session_factory,
    get_db,
    get_db_context,
    init_db,
    check_db_connection,
)

# Repository
from .repository import (
    create_competitor,
    list_competitors_for_project,
    add_evidence_source,
    get_evidence_sources_by_competitor,
    get_evidence_sources_for_domain,
    DatabaseEvidenceLookup,
    store_artifact,
    list_artifacts_for_project,
)

__all__ = [
    # Models
    "Base",
    "Competitor",
    "EvidenceSourceRow",
    "ArtifactRow",
    # Session
    "get_database_url",
    "create_db_engine",
    "enable_sqlite_foreign_keys",
    "get_engine",
    "get_session_factory",
    "get_db",
    "get_db_context",
    "init_db",
    "check_db_connection",
    # Repository
    "create_competitor",
    "list_competitors_for_project",
    "add_evidence_source",
    "get_evidence_sources_by_competitor",
    "get_evidence_sources_for_domain",
    "DatabaseEvidenceLookup",
    "store_artifact",
    "list_artifacts_for_project",
]

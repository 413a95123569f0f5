"""
Quality Gates

Guards the trustworthiness of generated strategy artifacts.

Components:
- PatternValidator: Vague verbs and unsupported absolutes in generated text
- EvidenceQualityChecker: Evidence sufficiency gate plus freshness decay
- resolve_evidence_sources: Competitor -> domain -> empty lookup chain
- invariant: Non-throwing pipeline assertions (INV-1 .. INV-5)
"""

from .patterns import (
    PatternValidator,
    BannedPatternResult,
    VAGUE_VERBS,
    UNSUPPORTED_ABSOLUTES,
    detect_banned_patterns,
    compute_banned_pattern_penalty,
)
from .models import (
    ConfidenceLevel,
    EvidenceSource,
    SourceType,
    CompetitorRecord,
    normalize_source_type,
)
from .lookup import EvidenceLookup, LookupResult, LookupTier, resolve_evidence_sources
from .evidence import (
    EvidenceQualityChecker,
    EvidenceQualityCheck,
    check_evidence_quality,
    compute_decay_factor,
)
from .invariants import InvariantId, InvariantViolation, INVARIANT_DESCRIPTIONS, invariant

__all__ = [
    # Banned patterns
    "PatternValidator",
    "BannedPatternResult",
    "VAGUE_VERBS",
    "UNSUPPORTED_ABSOLUTES",
    "detect_banned_patterns",
    "compute_banned_pattern_penalty",
    # Evidence records
    "ConfidenceLevel",
    "EvidenceSource",
    "SourceType",
    "CompetitorRecord",
    "normalize_source_type",
    # Lookup chain
    "EvidenceLookup",
    "LookupResult",
    "LookupTier",
    "resolve_evidence_sources",
    # Evidence gate
    "EvidenceQualityChecker",
    "EvidenceQualityCheck",
    "check_evidence_quality",
    "compute_decay_factor",
    # Invariants
    "InvariantId",
    "InvariantViolation",
    "INVARIANT_DESCRIPTIONS",
    "invariant",
]

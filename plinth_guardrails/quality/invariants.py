"""
Pipeline Invariants

Non-throwing assertion helper for expectations about pipeline state.

In production a failed invariant is logged as a structured warning keyed by
a fixed identifier and the call returns False. With STRICT_INVARIANTS enabled
(or strict=True) it raises InvariantViolation instead, so a broken
expectation fails the test that exposed it.

Usage:
    if not invariant(0 <= score <= 100, {
        "id": InvariantId.SCORE_IN_RANGE,
        "message": "raw score outside 0..100",
        "details": {"score": score},
    }):
        score = max(0.0, min(100.0, score))
"""

import logging
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from plinth_guardrails.utils.config import get_settings

logger = logging.getLogger(__name__)


class InvariantId(str, Enum):
    """Fixed invariant identifiers."""
    EVIDENCE_CHECKED = "INV-1"
    SCORE_IN_RANGE = "INV-2"
    CEILING_NOT_RAISED = "INV-3"
    ARTIFACT_HAS_RUN = "INV-4"
    DECAY_IN_RANGE = "INV-5"


INVARIANT_DESCRIPTIONS: Dict[InvariantId, str] = {
    InvariantId.EVIDENCE_CHECKED: "Evidence quality was checked before scores were guarded",
    InvariantId.SCORE_IN_RANGE: "Raw scores lie within 0..100",
    InvariantId.CEILING_NOT_RAISED: "A ceiling-adjusted score never exceeds the raw score",
    InvariantId.ARTIFACT_HAS_RUN: "Stored artifacts carry a run_id",
    InvariantId.DECAY_IN_RANGE: "Decay factor lies within 0..1",
}

# Detail keys that may carry user or competitor content
_PII_KEYS = {
    "email", "name", "url", "domain", "text", "content", "content_json",
    "user", "user_id", "competitor_name", "statement", "ip",
}
_MAX_DETAIL_STRING = 80


class InvariantViolation(Exception):
    """Raised for a failed invariant in strict mode."""

    def __init__(self, invariant_id: InvariantId, message: str, details: Optional[Dict[str, Any]] = None):
        self.invariant_id = invariant_id
        self.details = details or {}
        super().__init__(f"{invariant_id.value}: {message}")


def _safe_details(details: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Keep scalar, non-PII detail values only."""
    if not details:
        return {}

    safe = {}
    for key, value in details.items():
        if key.lower() in _PII_KEYS:
            continue
        if value is None or isinstance(value, (bool, int, float)):
            safe[key] = value
        elif isinstance(value, Enum):
            safe[key] = value.value
        elif isinstance(value, str):
            safe[key] = value[:_MAX_DETAIL_STRING]
    return safe


def _resolve_id(raw: Union[InvariantId, str, None]) -> InvariantId:
    if isinstance(raw, InvariantId):
        return raw
    try:
        return InvariantId(raw)
    except ValueError:
        raise ValueError(f"Unknown invariant id: {raw!r}") from None


def invariant(
    condition: bool,
    context: Mapping[str, Any],
    strict: Optional[bool] = None,
) -> bool:
    """
    Check a pipeline invariant.

    Args:
        condition: The expectation that should hold
        context: {"id": InvariantId | "INV-n", "message": str, "details": dict}
        strict: Raise instead of logging; defaults to STRICT_INVARIANTS

    Returns:
        True if the invariant holds, False otherwise (never raises unless strict)
    """
    if condition:
        return True

    invariant_id = _resolve_id(context.get("id"))
    message = context.get("message") or INVARIANT_DESCRIPTIONS[invariant_id]
    details = _safe_details(context.get("details"))

    if strict is None:
        strict = get_settings().STRICT_INVARIANTS

    if strict:
        raise InvariantViolation(invariant_id, message, details)

    logger.warning(
        f"Invariant {invariant_id.value} violated: {message}",
        extra={"invariant_id": invariant_id.value, "details": details},
    )
    return False

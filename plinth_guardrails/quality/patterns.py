"""
Banned Pattern Detection for Generated Text

Flags two lexical markers of low-quality strategy output:

1. Vague verbs - "improve", "optimize", "leverage" ... actions with no
   measurable outcome attached
2. Unsupported absolutes - "always", "never", "every" ... claims no
   competitor evidence can back

Matching is whole-word and case-insensitive. Verbs accept one trailing "s"
("optimizes"), absolutes must match exactly. "improvement" never matches
"improve".

Penalty:
    min(1.0, (0.3 × |vague verbs| + 0.2 × |unsupported absolutes|) / 10)
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Pattern, Sequence, Tuple

from plinth_guardrails.utils.config import GuardrailConfig, get_guardrail_config

logger = logging.getLogger(__name__)


VAGUE_VERBS: Tuple[str, ...] = (
    "improve",
    "optimize",
    "leverage",
    "enhance",
    "streamline",
    "empower",
    "facilitate",
    "enable",
    "boost",
    "maximize",
    "utilize",
    "transform",
    "revolutionize",
    "unlock",
    "innovate",
    "strengthen",
    "accelerate",
    "drive",
    "elevate",
    "harness",
    "synergize",
    "supercharge",
    "amplify",
    "reimagine",
    "modernize",
    "simplify",
    "grow",
    "scale",
)

UNSUPPORTED_ABSOLUTES: Tuple[str, ...] = (
    "always",
    "never",
    "every",
    "everyone",
    "everything",
    "nobody",
    "none",
    "guaranteed",
    "guarantees",
    "completely",
    "entirely",
    "definitely",
    "certainly",
    "undoubtedly",
    "impossible",
    "unmatched",
    "unbeatable",
)


@dataclass
class BannedPatternResult:
    """Result of a banned-pattern scan."""
    has_violations: bool
    vague_verbs: List[str] = field(default_factory=list)
    unsupported_absolutes: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "has_violations": self.has_violations,
            "vague_verbs": list(self.vague_verbs),
            "unsupported_absolutes": list(self.unsupported_absolutes),
        }


def _compile(words: Sequence[str], allow_plural: bool) -> List[Tuple[str, Pattern]]:
    suffix = "s?" if allow_plural else ""
    return [
        (word, re.compile(rf"\b{re.escape(word)}{suffix}\b", re.IGNORECASE))
        for word in words
    ]


class PatternValidator:
    """
    Scans generated text for vague verbs and unsupported absolutes.

    Usage:
        validator = PatternValidator()
        result = validator.detect(jtbd_text)
        penalty = validator.penalty(jtbd_text)
    """

    def __init__(
        self,
        config: Optional[GuardrailConfig] = None,
        vague_verbs: Sequence[str] = VAGUE_VERBS,
        unsupported_absolutes: Sequence[str] = UNSUPPORTED_ABSOLUTES,
    ):
        self.config = config or get_guardrail_config()
        self._verb_patterns = _compile(vague_verbs, allow_plural=True)
        self._absolute_patterns = _compile(unsupported_absolutes, allow_plural=False)

    @staticmethod
    def _find(text: str, patterns: List[Tuple[str, Pattern]]) -> List[str]:
        # One entry per lemma, in list order
        return [word for word, regex in patterns if regex.search(text)]

    def detect(self, text: str) -> BannedPatternResult:
        """
        Scan text for banned patterns.

        Args:
            text: Generated text (or a JSON dump of an artifact)

        Returns:
            BannedPatternResult with deduplicated matches
        """
        if not text:
            return BannedPatternResult(has_violations=False)

        vague = self._find(text, self._verb_patterns)
        absolutes = self._find(text, self._absolute_patterns)

        return BannedPatternResult(
            has_violations=bool(vague or absolutes),
            vague_verbs=vague,
            unsupported_absolutes=absolutes,
        )

    def penalty_for(self, result: BannedPatternResult) -> float:
        """Convert a scan result into a 0-1 penalty."""
        cfg = self.config
        raw = (
            cfg.vague_verb_weight * len(result.vague_verbs)
            + cfg.unsupported_absolute_weight * len(result.unsupported_absolutes)
        ) / cfg.penalty_divisor
        return min(1.0, raw)

    def penalty(self, text: str) -> float:
        """Compute the banned-pattern penalty for text."""
        result = self.detect(text)
        penalty = self.penalty_for(result)

        if result.has_violations:
            logger.debug(
                f"Banned patterns: {len(result.vague_verbs)} vague verbs, "
                f"{len(result.unsupported_absolutes)} absolutes (penalty {penalty:.2f})"
            )

        return penalty


def detect_banned_patterns(text: str) -> BannedPatternResult:
    """Scan text with the default word lists."""
    return PatternValidator().detect(text)


def compute_banned_pattern_penalty(text: str) -> float:
    """Penalty in [0, 1] for text, using the default word lists."""
    return PatternValidator().penalty(text)

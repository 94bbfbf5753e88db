"""
Fuzzy payee matching.

Scores how closely a transaction description matches a rule's patterns.
Substring containment either way is an immediate perfect match; otherwise
the normalized Levenshtein similarity of the best pattern is used.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from rapidfuzz.distance import Levenshtein

from ..config.detection_config import DETECTION_CONFIG


@dataclass(frozen=True)
class FuzzyMatch:
    """Result of matching a description against a set of patterns."""
    match: bool
    score: float  # 0.0 to 1.0
    matched_pattern: Optional[str]


NO_MATCH = FuzzyMatch(match=False, score=0.0, matched_pattern=None)


def normalize_payee_text(text: str) -> str:
    """Uppercase and collapse whitespace."""
    return " ".join(str(text or "").upper().split())


def similarity(left: str, right: str) -> float:
    """(longer length - edit distance) / longer length, on already-normalized text."""
    longer = max(len(left), len(right))
    if longer == 0:
        return 1.0
    return (longer - Levenshtein.distance(left, right)) / longer


def fuzzy_match(
    description: str,
    patterns: Iterable[str],
    threshold: Optional[float] = None,
) -> FuzzyMatch:
    """
    Match a description against candidate patterns.

    Args:
        description: Transaction description or free-text search term
        patterns: Candidate pattern strings
        threshold: Minimum score for match=True (defaults to DETECTION_CONFIG)

    Returns:
        FuzzyMatch with the best score found. Scores below the threshold
        are still reported, with match=False.

    Example:
        >>> fuzzy_match("british gas", ["BRITISH GAS"])
        FuzzyMatch(match=True, score=1.0, matched_pattern='BRITISH GAS')
    """
    if threshold is None:
        threshold = DETECTION_CONFIG["fuzzy_match_threshold"]

    text = normalize_payee_text(description)
    if not text:
        return NO_MATCH

    best_score = 0.0
    best_pattern = None
    for pattern in patterns:
        candidate = normalize_payee_text(pattern)
        if not candidate:
            continue

        if candidate in text or text in candidate:
            return FuzzyMatch(match=True, score=1.0, matched_pattern=pattern)

        score = similarity(text, candidate)
        if score > best_score:
            best_score = score
            best_pattern = pattern

    return FuzzyMatch(
        match=best_pattern is not None and best_score >= threshold,
        score=best_score,
        matched_pattern=best_pattern,
    )

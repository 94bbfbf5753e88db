"""
Confidence scoring for recurring payment candidates.

Blends the pattern, frequency, amount and occurrence signals into a single
0.0 to 1.0 value. The pattern match carries the most weight: a named
provider rule is trusted more than regularity alone.
"""

import statistics
from typing import Dict, Optional, Sequence

from ..config.detection_config import DETECTION_CONFIG


def amount_consistency(amounts: Sequence[float]) -> float:
    """1 - 2 * coefficient of variation of absolute amounts, floored at 0."""
    values = [abs(a) for a in amounts]
    if len(values) < 2:
        return 1.0
    mean_amount = statistics.mean(values)
    if mean_amount == 0:
        return 0.0
    return max(0.0, 1.0 - 2.0 * statistics.pstdev(values) / mean_amount)


def occurrence_signal(occurrence_count: int, saturation: Optional[int] = None) -> float:
    if saturation is None:
        saturation = DETECTION_CONFIG["occurrence_saturation"]
    return min(occurrence_count / saturation, 1.0)


def score_confidence(
    frequency_consistency: float,
    amount_consistency: float,
    pattern_match_score: float,
    occurrence_count: int,
    rule_confidence_boost: float = 0.0,
    config: Optional[Dict] = None,
) -> float:
    """
    Combine detection signals into one confidence value.

    Args:
        frequency_consistency: Gap regularity around the classified frequency (0-1)
        amount_consistency: Inverse amount variance (0-1)
        pattern_match_score: Fuzzy match score of the rule pattern (0-1)
        occurrence_count: Number of transactions in the series
        rule_confidence_boost: Boost from the matched rule, added verbatim
        config: Tuning values (defaults to DETECTION_CONFIG)

    Returns:
        Confidence clamped to [0, 1]
    """
    config = config or DETECTION_CONFIG
    weights = config["confidence_weights"]

    score = (
        pattern_match_score * weights["pattern_match"]
        + frequency_consistency * weights["frequency_consistency"]
        + amount_consistency * weights["amount_consistency"]
        + occurrence_signal(occurrence_count, config["occurrence_saturation"]) * weights["occurrences"]
    )

    # Series sitting exactly at the minimum are less convincing
    if occurrence_count <= config["low_occurrence_count"]:
        score *= config["low_occurrence_penalty"]

    score += rule_confidence_boost or 0.0

    if amount_consistency >= config["amount_regularity_min"]:
        score += config["amount_regularity_bonus"]
    if occurrence_count >= config["high_occurrence_count"]:
        score += config["high_occurrence_bonus"]

    return max(0.0, min(1.0, score))


def score_category_suggestion(
    pattern_match_score: float,
    rule_confidence_boost: float = 0.0,
    has_amount_pattern: bool = False,
    is_frequent_payee: bool = False,
) -> float:
    """Confidence for a free-text category suggestion, capped at 1.0."""
    weights = DETECTION_CONFIG["category_suggestion"]
    score = pattern_match_score * weights["pattern_weight"] + (rule_confidence_boost or 0.0)
    if has_amount_pattern:
        score += weights["amount_pattern_bonus"]
    if is_frequent_payee:
        score += weights["frequent_payee_bonus"]
    return max(0.0, min(1.0, score))

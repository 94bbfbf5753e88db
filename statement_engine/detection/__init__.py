"""
Recurring payment detection.

Fuzzy payee matching, rule-based clustering, frequency classification and
confidence scoring, combined by RecurringPaymentDetector.
"""

from .clusterer import CandidateGroup, RuleBasedClusterer, max_amount_deviation
from .confidence import amount_consistency, score_category_suggestion, score_confidence
from .frequency import classify_frequency, day_gaps, frequency_consistency
from .fuzzy_matcher import FuzzyMatch, fuzzy_match, normalize_payee_text, similarity
from .payee import extract_payee_name, generate_entry_title, map_category_to_type
from .recurring_detector import (
    RecurringPaymentDetector,
    coerce_transactions,
    detect_recurring_payments,
    detect_recurring_payments_async,
    suggest_categories,
    suggest_recurring_payments,
)

__all__ = [
    "CandidateGroup",
    "FuzzyMatch",
    "RecurringPaymentDetector",
    "RuleBasedClusterer",
    "amount_consistency",
    "classify_frequency",
    "coerce_transactions",
    "day_gaps",
    "detect_recurring_payments",
    "detect_recurring_payments_async",
    "extract_payee_name",
    "frequency_consistency",
    "fuzzy_match",
    "generate_entry_title",
    "map_category_to_type",
    "max_amount_deviation",
    "normalize_payee_text",
    "score_category_suggestion",
    "score_confidence",
    "similarity",
    "suggest_categories",
    "suggest_recurring_payments",
]

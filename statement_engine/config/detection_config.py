"""
Detection and ingestion configuration for the statement engine.
Contains thresholds, frequency bands, confidence weights and ingestion limits.
"""

from dataclasses import dataclass
from typing import Dict, Optional

# Detection Configuration
# NOTE: These are defaults only. A rule set may override the first three keys
# under its "settings" section (see DetectionSettings.from_dict).
DETECTION_CONFIG = {
    # Acceptance thresholds
    "min_confidence_threshold": 0.7,
    "fuzzy_match_threshold": 0.75,
    "amount_variance_tolerance": 0.15,  # 15% either side of the group mean

    # A single transaction is never recurring
    "min_group_size": 2,

    # Number of suggestions shown when detection feeds a live display
    "live_suggestion_limit": 5,

    # Day-gap bands (inclusive) around the canonical periods
    "frequency_bands": {
        "weekly": {"min": 5, "max": 10},
        "monthly": {"min": 25, "max": 35},
        "quarterly": {"min": 80, "max": 100},
        "annually": {"min": 350, "max": 380},
    },

    # Gaps whose standard deviation exceeds this fraction of the mean are irregular
    "irregularity_ratio": 0.3,

    # Canonical interval used to measure frequency consistency
    "expected_intervals": {
        "weekly": 7,
        "monthly": 30,
        "quarterly": 91,
        "annually": 365,
    },

    # Confidence blend (pattern match dominates)
    "confidence_weights": {
        "pattern_match": 0.40,
        "frequency_consistency": 0.25,
        "amount_consistency": 0.20,
        "occurrences": 0.15,
    },
    "occurrence_saturation": 6,        # occurrence signal is 1.0 from here on
    "low_occurrence_count": 2,         # counts at or below are penalised
    "low_occurrence_penalty": 0.8,
    "amount_regularity_min": 0.9,      # amount consistency needed for the bonus
    "amount_regularity_bonus": 0.05,
    "high_occurrence_count": 6,
    "high_occurrence_bonus": 0.05,

    # Suggestion-only (free text) scoring
    "category_suggestion": {
        "pattern_weight": 0.7,
        "amount_pattern_bonus": 0.1,
        "frequent_payee_bonus": 0.15,
    },

    # Chunk size used by the async detector between cooperative yields
    "async_chunk_size": 25,
}


# Ingestion Configuration
INGESTION_CONFIG = {
    # Decoding a document may never take longer than this
    "decode_timeout_seconds": 30.0,

    # Bank identification only looks at the start of the statement
    "bank_scan_token_limit": 50,

    # Amount tokens above this are treated as references, not money
    "max_plausible_amount": 50000.0,

    # pdfplumber word grouping tolerance (points)
    "word_x_tolerance": 1.5,
}


@dataclass(frozen=True)
class DetectionSettings:
    """Per-rule-set thresholds. Defaults come from DETECTION_CONFIG."""
    min_confidence_threshold: float = DETECTION_CONFIG["min_confidence_threshold"]
    fuzzy_match_threshold: float = DETECTION_CONFIG["fuzzy_match_threshold"]
    amount_variance_tolerance: float = DETECTION_CONFIG["amount_variance_tolerance"]

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "DetectionSettings":
        """
        Build settings from a rule-set "settings" section.

        Unknown keys are ignored; missing keys keep their defaults.
        """
        if not data:
            return cls()

        values = {}
        for key in (
            "min_confidence_threshold",
            "fuzzy_match_threshold",
            "amount_variance_tolerance",
        ):
            if data.get(key) is not None:
                values[key] = float(data[key])

        return cls(**values)

"""
Frequency classification for recurring payment series.
"""

import statistics
from datetime import date
from typing import Dict, List, Optional, Sequence

from ..config.detection_config import DETECTION_CONFIG

IRREGULAR = "irregular"

# Consistency reported when there are too few gaps to judge, or no pattern at all
FEW_OCCURRENCES_CONSISTENCY = 0.6
IRREGULAR_CONSISTENCY = 0.3


def day_gaps(dates: Sequence[date]) -> List[int]:
    """Day gaps between consecutive dates, after sorting."""
    ordered = sorted(dates)
    return [(ordered[i] - ordered[i - 1]).days for i in range(1, len(ordered))]


def classify_frequency(
    dates: Sequence[date],
    bands: Optional[Dict[str, Dict[str, float]]] = None,
    irregularity_ratio: Optional[float] = None,
) -> str:
    """
    Classify a series of payment dates.

    The mean gap must fall inside one of the bands (weekly 5-10, monthly
    25-35, quarterly 80-100, annually 350-380 days by default) and the gaps
    must not spread by more than irregularity_ratio of the mean.

    Returns:
        'weekly', 'monthly', 'quarterly', 'annually' or 'irregular'
    """
    if bands is None:
        bands = DETECTION_CONFIG["frequency_bands"]
    if irregularity_ratio is None:
        irregularity_ratio = DETECTION_CONFIG["irregularity_ratio"]

    gaps = day_gaps(dates)
    if not gaps:
        return IRREGULAR

    mean_gap = statistics.mean(gaps)
    if mean_gap <= 0:
        return IRREGULAR
    if statistics.pstdev(gaps) > irregularity_ratio * mean_gap:
        return IRREGULAR

    for label, band in bands.items():
        if band["min"] <= mean_gap <= band["max"]:
            return label
    return IRREGULAR


def frequency_consistency(
    dates: Sequence[date],
    frequency: str,
    expected_intervals: Optional[Dict[str, int]] = None,
) -> float:
    """
    How tightly the gaps sit around the canonical interval, 0.0 to 1.0.

    1 - 2 * (mean relative deviation from the expected interval), floored at 0.
    """
    if expected_intervals is None:
        expected_intervals = DETECTION_CONFIG["expected_intervals"]

    if len(dates) < 3:
        return FEW_OCCURRENCES_CONSISTENCY
    expected = expected_intervals.get(frequency)
    if frequency == IRREGULAR or not expected:
        return IRREGULAR_CONSISTENCY

    gaps = day_gaps(dates)
    deviation = statistics.mean(abs(gap - expected) / expected for gap in gaps)
    return max(0.0, 1.0 - 2.0 * deviation)

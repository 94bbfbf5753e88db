"""
Test suite for frequency classification and confidence scoring.
"""

import unittest
from datetime import date, timedelta

from statement_engine.detection.confidence import (
    amount_consistency,
    occurrence_signal,
    score_category_suggestion,
    score_confidence,
)
from statement_engine.detection.frequency import (
    classify_frequency,
    day_gaps,
    frequency_consistency,
)


class TestClassifyFrequency(unittest.TestCase):
    """Test cases for frequency bands."""

    def test_monthly(self):
        dates = [date(2024, 1, 15), date(2024, 2, 15), date(2024, 3, 15), date(2024, 4, 15)]
        self.assertEqual(classify_frequency(dates), "monthly")

    def test_weekly(self):
        start = date(2024, 1, 1)
        dates = [start + timedelta(days=7 * i) for i in range(5)]
        self.assertEqual(classify_frequency(dates), "weekly")

    def test_quarterly(self):
        dates = [date(2023, 1, 1), date(2023, 4, 1), date(2023, 7, 1)]
        self.assertEqual(classify_frequency(dates), "quarterly")

    def test_annually(self):
        dates = [date(2021, 3, 1), date(2022, 3, 1), date(2023, 3, 1)]
        self.assertEqual(classify_frequency(dates), "annually")

    def test_order_does_not_matter(self):
        dates = [date(2024, 3, 15), date(2024, 1, 15), date(2024, 2, 15)]
        self.assertEqual(classify_frequency(dates), "monthly")
        self.assertEqual(day_gaps(dates), [31, 29])

    def test_scattered_gaps_are_irregular(self):
        """Mean falls in no band once the spread is too wide."""
        dates = [date(2024, 1, 1), date(2024, 1, 4), date(2024, 2, 13)]
        self.assertEqual(classify_frequency(dates), "irregular")

    def test_mean_outside_bands_is_irregular(self):
        dates = [date(2024, 1, 1), date(2024, 1, 16), date(2024, 1, 31)]
        self.assertEqual(classify_frequency(dates), "irregular")

    def test_too_few_dates(self):
        self.assertEqual(classify_frequency([date(2024, 1, 1)]), "irregular")
        self.assertEqual(classify_frequency([]), "irregular")

    def test_same_day_payments(self):
        self.assertEqual(classify_frequency([date(2024, 1, 1), date(2024, 1, 1)]), "irregular")

    def test_reference_sequences(self):
        cases = [
            (["2023-08-15", "2023-09-15", "2023-10-15"], "monthly"),
            (["2023-10-01", "2023-10-08", "2023-10-15", "2023-10-22"], "weekly"),
            (["2021-10-15", "2022-10-15", "2023-10-15"], "annually"),
            (["2023-08-15", "2023-09-20", "2023-10-05"], "irregular"),
        ]
        for days, expected in cases:
            dates = [date.fromisoformat(d) for d in days]
            self.assertEqual(classify_frequency(dates), expected, days)

    def test_custom_bands(self):
        dates = [date(2024, 1, 1), date(2024, 1, 15), date(2024, 1, 29)]
        bands = {"fortnightly": {"min": 12, "max": 16}}
        self.assertEqual(classify_frequency(dates, bands=bands), "fortnightly")


class TestFrequencyConsistency(unittest.TestCase):
    """Test cases for gap regularity."""

    def test_exact_weekly(self):
        start = date(2024, 1, 1)
        dates = [start + timedelta(days=7 * i) for i in range(4)]
        self.assertEqual(frequency_consistency(dates, "weekly"), 1.0)

    def test_calendar_months(self):
        dates = [date(2024, 1, 15), date(2024, 2, 15), date(2024, 3, 15), date(2024, 4, 15)]
        self.assertAlmostEqual(frequency_consistency(dates, "monthly"), 1 - 2 / 30)

    def test_two_dates(self):
        self.assertEqual(frequency_consistency([date(2024, 1, 1), date(2024, 2, 1)], "monthly"), 0.6)

    def test_irregular(self):
        dates = [date(2024, 1, 1), date(2024, 1, 4), date(2024, 2, 13)]
        self.assertEqual(frequency_consistency(dates, "irregular"), 0.3)

    def test_floored_at_zero(self):
        dates = [date(2024, 1, 1), date(2024, 4, 1), date(2024, 7, 1)]
        self.assertEqual(frequency_consistency(dates, "weekly"), 0.0)


class TestConfidence(unittest.TestCase):
    """Test cases for confidence scoring."""

    def test_amount_consistency(self):
        self.assertEqual(amount_consistency([85.5, 85.5, 85.5]), 1.0)
        self.assertEqual(amount_consistency([-10.0, 10.0]), 1.0)
        self.assertEqual(amount_consistency([42.0]), 1.0)
        self.assertEqual(amount_consistency([0.0, 0.0]), 0.0)
        self.assertLess(amount_consistency([50.0, 75.0, 100.0]), 0.5)

    def test_occurrence_signal_saturates(self):
        self.assertAlmostEqual(occurrence_signal(3), 0.5)
        self.assertEqual(occurrence_signal(6), 1.0)
        self.assertEqual(occurrence_signal(12), 1.0)

    def test_weighted_blend(self):
        """0.9*0.40 + 0.6*0.25 + 0.8*0.20 + (3/6)*0.15 with no bonuses."""
        score = score_confidence(0.6, 0.8, 0.9, 3)
        self.assertAlmostEqual(score, 0.745)

    def test_perfect_series_is_clamped(self):
        self.assertEqual(score_confidence(1.0, 1.0, 1.0, 5, rule_confidence_boost=0.2), 1.0)

    def test_low_occurrence_penalty(self):
        """(0.40 + 0.15 + 0.10 + 0.05) * 0.8"""
        self.assertAlmostEqual(score_confidence(0.6, 0.5, 1.0, 2), 0.56)

    def test_more_occurrences_score_higher(self):
        self.assertGreater(score_confidence(0.6, 0.5, 1.0, 8), score_confidence(0.6, 0.5, 1.0, 2))

    def test_confidence_never_drops_with_more_occurrences(self):
        scores = [score_confidence(0.8, 0.9, 0.85, n) for n in range(3, 9)]
        self.assertEqual(scores, sorted(scores))

    def test_rule_boost_is_added(self):
        base = score_confidence(0.6, 0.8, 0.9, 3)
        boosted = score_confidence(0.6, 0.8, 0.9, 3, rule_confidence_boost=0.1)
        self.assertAlmostEqual(boosted - base, 0.1)

    def test_bounds(self):
        self.assertEqual(score_confidence(0.0, 0.0, 0.0, 1, rule_confidence_boost=-5.0), 0.0)
        self.assertEqual(score_confidence(1.0, 1.0, 1.0, 10, rule_confidence_boost=3.0), 1.0)

    def test_category_suggestion_score(self):
        self.assertAlmostEqual(score_category_suggestion(1.0, 0.2), 0.9)
        self.assertAlmostEqual(score_category_suggestion(0.5), 0.35)
        self.assertEqual(
            score_category_suggestion(1.0, 0.2, has_amount_pattern=True, is_frequent_payee=True), 1.0
        )


if __name__ == "__main__":
    unittest.main()

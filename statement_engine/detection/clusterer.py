"""
Rule-based clustering of transactions into candidate recurring series.
"""

import logging
import statistics
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ..config.detection_config import DETECTION_CONFIG
from ..models import DetectionRule, DetectionRuleSet, Transaction
from .fuzzy_matcher import fuzzy_match

logger = logging.getLogger(__name__)


@dataclass
class CandidateGroup:
    """Transactions tentatively attributed to one rule."""
    rule: DetectionRule
    transactions: List[Transaction] = field(default_factory=list)
    match_scores: List[float] = field(default_factory=list)
    matched_patterns: List[str] = field(default_factory=list)

    def add(self, transaction: Transaction, score: float, pattern: str) -> None:
        self.transactions.append(transaction)
        self.match_scores.append(score)
        self.matched_patterns.append(pattern)

    @property
    def size(self) -> int:
        return len(self.transactions)

    @property
    def pattern_score(self) -> float:
        return statistics.mean(self.match_scores) if self.match_scores else 0.0

    @property
    def matched_pattern(self) -> Optional[str]:
        """Most frequent matched pattern; ties go to the earliest seen."""
        if not self.matched_patterns:
            return None
        return Counter(self.matched_patterns).most_common(1)[0][0]

    @property
    def amounts(self) -> List[float]:
        return [abs(txn.amount) for txn in self.transactions]


def max_amount_deviation(amounts: Sequence[float]) -> float:
    """Largest relative deviation of any absolute amount from the group mean."""
    values = [abs(a) for a in amounts]
    if not values:
        return 0.0
    mean_amount = statistics.mean(values)
    if mean_amount == 0:
        return 0.0
    return max(abs(v - mean_amount) / mean_amount for v in values)


def _group_key(rule: DetectionRule) -> str:
    return f"{rule.group}:{rule.name}"


class RuleBasedClusterer:
    """Groups transactions by the first rule (in priority order) they match."""

    def __init__(self, rule_set: DetectionRuleSet, min_group_size: Optional[int] = None):
        self.rule_set = rule_set
        self.settings = rule_set.settings
        self.rules = list(rule_set.iter_rules())
        self.min_group_size = min_group_size or DETECTION_CONFIG["min_group_size"]

    def required_occurrences(self, rule: DetectionRule) -> int:
        return max(self.min_group_size, rule.min_occurrences or 0)

    def assign(self, transaction: Transaction, groups: Dict[str, CandidateGroup]) -> Optional[CandidateGroup]:
        """Add a transaction to the group of the first rule it matches, if any."""
        for rule in self.rules:
            result = fuzzy_match(
                transaction.description,
                rule.patterns,
                threshold=self.settings.fuzzy_match_threshold,
            )
            if result.match:
                group = groups.setdefault(_group_key(rule), CandidateGroup(rule=rule))
                group.add(transaction, result.score, result.matched_pattern)
                return group
        return None

    def ordered(self, groups: Dict[str, CandidateGroup]) -> List[CandidateGroup]:
        """Groups in rule priority order."""
        return [groups[_group_key(rule)] for rule in self.rules if _group_key(rule) in groups]

    def group(self, transactions: Sequence[Transaction]) -> List[CandidateGroup]:
        """
        Attribute each transaction to the first rule whose patterns match it.

        Returns:
            Non-empty tentative groups, in rule priority order
        """
        groups: Dict[str, CandidateGroup] = {}
        for txn in transactions:
            self.assign(txn, groups)
        return self.ordered(groups)

    def accept(self, group: CandidateGroup) -> bool:
        """Minimum-occurrence and amount-variance checks."""
        required = self.required_occurrences(group.rule)
        if group.size < required:
            logger.debug(
                "Group '%s' rejected: %d occurrences, %d required",
                group.rule.name, group.size, required
            )
            return False

        deviation = max_amount_deviation(group.amounts)
        if deviation > self.settings.amount_variance_tolerance:
            logger.debug(
                "Group '%s' rejected: amount deviation %.2f exceeds %.2f",
                group.rule.name, deviation, self.settings.amount_variance_tolerance
            )
            return False

        return True

    def finalize(self, groups: Sequence[CandidateGroup]) -> List[CandidateGroup]:
        """Accepted groups, members sorted by date."""
        accepted = []
        for group in groups:
            if not self.accept(group):
                continue
            order = sorted(range(group.size), key=lambda i: group.transactions[i].date)
            accepted.append(CandidateGroup(
                rule=group.rule,
                transactions=[group.transactions[i] for i in order],
                match_scores=[group.match_scores[i] for i in order],
                matched_patterns=[group.matched_patterns[i] for i in order],
            ))
        return accepted

    def cluster(self, transactions: Sequence[Transaction]) -> List[CandidateGroup]:
        """Tentative groups that pass acceptance."""
        return self.finalize(self.group(transactions))

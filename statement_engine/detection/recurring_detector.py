"""
Recurring Payment Detection.

Turns a statement's transactions into recurring payment suggestions:
rule-based clustering -> frequency classification -> confidence scoring
-> category/domain resolution. The detector is a pure function of its
inputs; the rule set (including the default one) is always passed in.
"""

import asyncio
import logging
import math
import statistics
from typing import Dict, Iterable, List, Optional, Sequence, Union

from ..config.detection_config import DETECTION_CONFIG
from ..models import (
    CategoryNode,
    CategorySuggestion,
    DetectionRuleSet,
    RecurringSuggestion,
    Transaction,
)
from ..resolution.category_resolver import resolve_rule_category, root_category_name
from ..resolution.domain_buckets import suggest_domain
from .clusterer import CandidateGroup, RuleBasedClusterer, max_amount_deviation
from .confidence import amount_consistency, score_category_suggestion, score_confidence
from .frequency import classify_frequency, frequency_consistency
from .fuzzy_matcher import fuzzy_match
from .payee import extract_payee_name, generate_entry_title, map_category_to_type

logger = logging.getLogger(__name__)

TransactionLike = Union[Transaction, Dict]


def _finite(value) -> bool:
    try:
        return math.isfinite(value)
    except TypeError:
        return False


def coerce_transactions(items: Optional[Iterable[TransactionLike]]) -> List[Transaction]:
    """
    Accept Transaction objects or plain dicts, dropping anything malformed.

    A transaction without a valid date, description or amount can never
    belong to a recurring series, so it is skipped rather than raised.
    """
    transactions = []
    for item in items or []:
        if isinstance(item, Transaction):
            if item.description and item.description.strip() and _finite(item.amount):
                transactions.append(item)
            continue
        try:
            transactions.append(Transaction.from_dict(item))
        except ValueError as e:
            logger.debug("Skipping malformed transaction: %s", e)
    return transactions


class RecurringPaymentDetector:
    """Detects recurring payments against one rule set."""

    def __init__(
        self,
        rule_set: Optional[DetectionRuleSet],
        category_tree: Optional[Sequence[CategoryNode]] = None,
        config: Optional[Dict] = None,
    ):
        """
        Args:
            rule_set: Rules to detect with; None means nothing is detected
            category_tree: Optional category roots; when given, suggestions
                that cannot be mapped onto the tree are dropped
            config: Tuning values (defaults to DETECTION_CONFIG)
        """
        self.rule_set = rule_set
        self.category_tree = category_tree
        self.config = config or DETECTION_CONFIG
        self.clusterer = (
            RuleBasedClusterer(rule_set, min_group_size=self.config.get("min_group_size"))
            if rule_set is not None else None
        )

    def detect(
        self,
        transactions: Iterable[TransactionLike],
        limit: Optional[int] = None,
    ) -> List[RecurringSuggestion]:
        """
        Detect recurring payments.

        Args:
            transactions: Transactions (objects or dicts)
            limit: Keep only the top-N suggestions; None keeps all

        Returns:
            Suggestions sorted by confidence, highest first
        """
        if self.clusterer is None or not self.clusterer.rules:
            logger.debug("No detection rules available; nothing to detect")
            return []

        txns = coerce_transactions(transactions)
        if not txns:
            return []

        groups = self.clusterer.cluster(txns)
        return self._rank(self._build_all(groups), limit, len(txns))

    async def detect_async(
        self,
        transactions: Iterable[TransactionLike],
        limit: Optional[int] = None,
        chunk_size: Optional[int] = None,
    ) -> List[RecurringSuggestion]:
        """Same result as detect(), yielding to the event loop between chunks."""
        if self.clusterer is None or not self.clusterer.rules:
            return []

        txns = coerce_transactions(transactions)
        chunk_size = chunk_size or self.config["async_chunk_size"]

        tentative: Dict[str, CandidateGroup] = {}
        for start in range(0, len(txns), chunk_size):
            for txn in txns[start:start + chunk_size]:
                self.clusterer.assign(txn, tentative)
            await asyncio.sleep(0)

        groups = self.clusterer.finalize(self.clusterer.ordered(tentative))
        suggestions = []
        for start in range(0, len(groups), chunk_size):
            suggestions.extend(self._build_all(groups[start:start + chunk_size]))
            await asyncio.sleep(0)

        return self._rank(suggestions, limit, len(txns))

    def _build_all(self, groups: Sequence[CandidateGroup]) -> List[RecurringSuggestion]:
        suggestions = []
        for group in groups:
            suggestion = self.build_suggestion(group)
            if suggestion is not None:
                suggestions.append(suggestion)
        return suggestions

    def _rank(self, suggestions: List[RecurringSuggestion], limit: Optional[int], total: int) -> List[RecurringSuggestion]:
        ranked = sorted(suggestions, key=lambda s: s.confidence, reverse=True)
        if limit is not None:
            ranked = ranked[:limit]
        logger.info("Detected %d recurring payments from %d transactions", len(ranked), total)
        return ranked

    def build_suggestion(self, group: CandidateGroup) -> Optional[RecurringSuggestion]:
        """Score an accepted group; None if it falls below the threshold or cannot be categorised."""
        rule = group.rule
        dates = [txn.date for txn in group.transactions]

        frequency = classify_frequency(
            dates,
            bands=self.config["frequency_bands"],
            irregularity_ratio=self.config["irregularity_ratio"],
        )
        freq_consistency = frequency_consistency(dates, frequency, self.config["expected_intervals"])
        amt_consistency = amount_consistency(group.amounts)

        confidence = score_confidence(
            frequency_consistency=freq_consistency,
            amount_consistency=amt_consistency,
            pattern_match_score=group.pattern_score,
            occurrence_count=group.size,
            rule_confidence_boost=rule.confidence_boost,
            config=self.config,
        )
        threshold = self.rule_set.settings.min_confidence_threshold
        if confidence < threshold:
            logger.debug(
                "Discarding '%s': confidence %.3f below %.2f", rule.name, confidence, threshold
            )
            return None

        category_id = category_name = None
        if self.category_tree is not None:
            node = resolve_rule_category(self.category_tree, rule)
            if node is None:
                logger.debug("Discarding '%s': no category mapping", rule.name)
                return None
            category_id, category_name = node.id, node.name

        description = group.transactions[0].description
        payee = rule.provider or extract_payee_name(description)
        pattern = group.matched_pattern

        return RecurringSuggestion(
            payee=payee,
            category=rule.category,
            subcategory=rule.subcategory,
            frequency=frequency,
            confidence=confidence,
            occurrences=tuple(group.transactions),
            provider=rule.provider or rule.name,
            matched_pattern=pattern,
            reason=f"Matched pattern '{pattern}' on {group.size} {frequency} payments",
            typical_amount=statistics.median(group.amounts),
            frequency_consistency=freq_consistency,
            amount_consistency=amt_consistency,
            category_id=category_id,
            category_name=category_name,
            domain=suggest_domain(payee, rule.category, rule.subcategory, description),
            entry_title=generate_entry_title(payee, rule.category, rule.provider, rule.subcategory),
            entry_type=map_category_to_type(rule.category),
        )

    def suggest_categories(
        self,
        search_term: str,
        limit: Optional[int] = None,
        amounts: Optional[Sequence[float]] = None,
        occurrence_count: int = 0,
    ) -> List[CategorySuggestion]:
        """
        Category proposals for a free-text payee or description.

        Args:
            search_term: Text typed by the user
            limit: Top-N to return (defaults to the live suggestion limit)
            amounts: Known payment amounts for the payee; without them a
                typical bill amount is assumed
            occurrence_count: Times the payee has been seen before

        Returns:
            Suggestions sorted by confidence, highest first
        """
        if limit is None:
            limit = self.config["live_suggestion_limit"]
        if self.rule_set is None or not (search_term or "").strip():
            return []

        settings = self.rule_set.settings
        if amounts:
            has_amount_pattern = max_amount_deviation(amounts) <= settings.amount_variance_tolerance
        else:
            has_amount_pattern = True
        is_frequent_payee = occurrence_count >= 3

        suggestions = []
        for rule in self.rule_set.iter_rules():
            result = fuzzy_match(search_term, rule.patterns, threshold=settings.fuzzy_match_threshold)
            if not result.match:
                continue

            category_id = None
            category_name = root_category_name(rule.category).title()
            if self.category_tree is not None:
                node = resolve_rule_category(self.category_tree, rule)
                if node is None:
                    continue
                category_id, category_name = node.id, node.name

            suggestions.append(CategorySuggestion(
                category_id=category_id,
                category_name=category_name,
                subcategory_name=rule.subcategory,
                confidence=score_category_suggestion(
                    result.score,
                    rule.confidence_boost,
                    has_amount_pattern=has_amount_pattern,
                    is_frequent_payee=is_frequent_payee,
                ),
                provider=rule.provider or rule.name,
                matched_pattern=result.matched_pattern,
                reason=f"Matched pattern: {result.matched_pattern}",
            ))

        suggestions.sort(key=lambda s: s.confidence, reverse=True)
        return suggestions[:limit]


def detect_recurring_payments(
    transactions: Iterable[TransactionLike],
    rule_set: Optional[DetectionRuleSet],
    category_tree: Optional[Sequence[CategoryNode]] = None,
    limit: Optional[int] = None,
) -> List[RecurringSuggestion]:
    """Bulk import analysis: every accepted suggestion, highest confidence first."""
    return RecurringPaymentDetector(rule_set, category_tree).detect(transactions, limit=limit)


def suggest_recurring_payments(
    transactions: Iterable[TransactionLike],
    rule_set: Optional[DetectionRuleSet],
    category_tree: Optional[Sequence[CategoryNode]] = None,
) -> List[RecurringSuggestion]:
    """Live display: the top suggestions only."""
    return RecurringPaymentDetector(rule_set, category_tree).detect(
        transactions, limit=DETECTION_CONFIG["live_suggestion_limit"]
    )


async def detect_recurring_payments_async(
    transactions: Iterable[TransactionLike],
    rule_set: Optional[DetectionRuleSet],
    category_tree: Optional[Sequence[CategoryNode]] = None,
    limit: Optional[int] = None,
) -> List[RecurringSuggestion]:
    return await RecurringPaymentDetector(rule_set, category_tree).detect_async(transactions, limit=limit)


def suggest_categories(
    search_term: str,
    rule_set: Optional[DetectionRuleSet],
    category_tree: Optional[Sequence[CategoryNode]] = None,
    limit: Optional[int] = None,
) -> List[CategorySuggestion]:
    return RecurringPaymentDetector(rule_set, category_tree).suggest_categories(search_term, limit=limit)

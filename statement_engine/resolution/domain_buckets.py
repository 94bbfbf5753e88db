"""
Domain bucket resolution.

A coarse life-area guess (property, vehicles, insurance, government,
services) for a payee, independent of the user's category tree. Anything
unmatched falls back to 'finance' with a low confidence.
"""

import re
from functools import lru_cache
from typing import Optional

from ..models import DomainSuggestion
from ..patterns.domain_patterns import (
    CATEGORY_DOMAIN_BOOSTS,
    DOMAIN_PATTERNS,
    FALLBACK_DOMAIN,
    FALLBACK_DOMAIN_CONFIDENCE,
    KEYWORD_MATCH_CONFIDENCE,
    MAX_DOMAIN_CONFIDENCE,
    PROVIDER_MATCH_CONFIDENCE,
)


@lru_cache(maxsize=None)
def _term_pattern(term: str):
    return re.compile(r"(?<![a-z0-9])" + re.escape(term.lower()) + r"(?![a-z0-9])")


def contains_term(text: str, term: str) -> bool:
    """Whole-word containment, so short terms like 'bp' don't hit inside words."""
    return bool(text) and _term_pattern(term).search(text) is not None


def _record_type(record_types, *texts: str) -> str:
    for key, record_type in record_types.items():
        if any(contains_term(text, key) for text in texts):
            return record_type
    return "other"


def suggest_domain(
    payee: str,
    category: Optional[str] = None,
    subcategory: Optional[str] = None,
    description: Optional[str] = None,
) -> DomainSuggestion:
    """
    Suggest a domain bucket for a payee.

    Provider names score 0.95 and keywords 0.75; buckets are tried in order
    and a later one only wins with a strictly higher score. Matching
    category pairs (e.g. utilities -> property) add 0.1, capped at 0.95.
    """
    payee_text = " ".join(filter(None, [payee, description])).lower()
    category_text = (category or "").replace("_", " ").lower()
    subcategory_text = (subcategory or "").replace("_", " ").lower()

    best = DomainSuggestion(
        domain=FALLBACK_DOMAIN,
        confidence=FALLBACK_DOMAIN_CONFIDENCE,
        record_type="other",
        reasoning="Default (no specific match found)",
    )

    for domain, patterns in DOMAIN_PATTERNS.items():
        candidate = None

        provider = next((p for p in patterns["providers"] if contains_term(payee_text, p)), None)
        if provider:
            candidate = DomainSuggestion(
                domain=domain,
                confidence=PROVIDER_MATCH_CONFIDENCE,
                record_type=_record_type(patterns["record_types"], payee_text, category_text),
                reasoning=f'provider match: "{provider}"',
            )
        else:
            keyword = next(
                (
                    k for k in patterns["keywords"]
                    if contains_term(payee_text, k)
                    or contains_term(category_text, k)
                    or contains_term(subcategory_text, k)
                ),
                None,
            )
            if keyword:
                candidate = DomainSuggestion(
                    domain=domain,
                    confidence=KEYWORD_MATCH_CONFIDENCE,
                    record_type=_record_type(patterns["record_types"], keyword),
                    reasoning=f'keyword match: "{keyword}"',
                )

        if candidate is not None and candidate.confidence > best.confidence:
            best = candidate

    boost = CATEGORY_DOMAIN_BOOSTS.get(((category or "").lower(), best.domain))
    if boost:
        best = DomainSuggestion(
            domain=best.domain,
            confidence=min(MAX_DOMAIN_CONFIDENCE, best.confidence + boost),
            record_type=best.record_type,
            reasoning=best.reasoning,
        )

    return best

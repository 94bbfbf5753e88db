"""
Payee naming helpers for recurring suggestions.
"""

import re
from typing import Optional

from ..patterns.uk_providers import ENTRY_TYPES, PAYMENT_TYPE_CODES

_CODES = "|".join(re.escape(code) for code in sorted(PAYMENT_TYPE_CODES, key=len, reverse=True))

LEADING_CODE_PATTERN = re.compile(rf"^(?:{_CODES})(?:\s+|-)", re.IGNORECASE)
TRAILING_CODE_PATTERN = re.compile(rf"(?:\s+|-)(?:{_CODES})$", re.IGNORECASE)
TRAILING_DATE_PATTERN = re.compile(r"\s+\d{1,2}[/-]\d{1,2}(?:[/-]\d{2,4})?$")
TRAILING_AMOUNT_PATTERN = re.compile(r"\s+£?\d+(?:,\d{3})*\.\d{2}$")
REFERENCE_PATTERN = re.compile(r"\s+REF(?:ERENCE)?[:\s]+\S+", re.IGNORECASE)
LONG_NUMBER_PATTERN = re.compile(r"\s+\d{6,}\b")


def extract_payee_name(description: str) -> str:
    """
    Derive a display payee from a raw description.

    Example:
        >>> extract_payee_name("BRITISH GAS DD")
        'British Gas'
    """
    name = " ".join(str(description or "").split())
    name = REFERENCE_PATTERN.sub("", name)

    # Codes, dates and amounts can be stacked at either end
    previous = None
    while previous != name:
        previous = name
        name = LEADING_CODE_PATTERN.sub("", name)
        name = TRAILING_CODE_PATTERN.sub("", name)
        name = TRAILING_DATE_PATTERN.sub("", name)
        name = TRAILING_AMOUNT_PATTERN.sub("", name)
        name = LONG_NUMBER_PATTERN.sub("", name)
        name = name.strip()

    if not name:
        name = " ".join(str(description or "").split())
    return name.title()


def generate_entry_title(payee: str, category: str, provider: Optional[str] = None,
                         subcategory: Optional[str] = None) -> str:
    """Title for the record created from a suggestion."""
    if provider and subcategory:
        return f"{provider} - {subcategory.replace('_', ' ').title()}"
    if provider:
        return provider
    return f"{payee} - {category.replace('_', ' ').title()}"


def map_category_to_type(category: str) -> str:
    """Record type for a rule category: utility, policy or other."""
    return ENTRY_TYPES.get((category or "").lower(), "other")

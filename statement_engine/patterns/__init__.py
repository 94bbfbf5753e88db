"""
Pattern definitions and rule-set loading for the statement engine.

Contains:
- Bank markers and payment-type codes used during ingestion
- The default UK detection rule set and category name-paths
- Domain bucket patterns
- Loaders that turn rule documents into DetectionRuleSet objects
"""

from .domain_patterns import DOMAIN_PATTERNS
from .rule_set_loader import (
    LEGACY_CATEGORY_ALIASES,
    LEGACY_GROUP_ALIASES,
    RULE_GROUP_ORDER,
    build_rule,
    build_rule_set,
    default_rule_set,
    load_rule_set_csv,
    load_rule_set_json,
)
from .uk_providers import (
    BANK_MARKERS,
    CATEGORY_ROOT_NAMES,
    DEFAULT_RULE_SET,
    ENTRY_TYPES,
    PAYMENT_TYPE_CODES,
    SUBCATEGORY_PATHS,
    UNKNOWN_BANK,
)

__all__ = [
    "BANK_MARKERS",
    "CATEGORY_ROOT_NAMES",
    "DEFAULT_RULE_SET",
    "DOMAIN_PATTERNS",
    "ENTRY_TYPES",
    "LEGACY_CATEGORY_ALIASES",
    "LEGACY_GROUP_ALIASES",
    "PAYMENT_TYPE_CODES",
    "RULE_GROUP_ORDER",
    "SUBCATEGORY_PATHS",
    "UNKNOWN_BANK",
    "build_rule",
    "build_rule_set",
    "default_rule_set",
    "load_rule_set_csv",
    "load_rule_set_json",
]

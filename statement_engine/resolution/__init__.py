"""
Category and domain resolution for recurring suggestions.
"""

from .category_resolver import (
    build_category_tree,
    find_category_by_path,
    resolve_category,
    resolve_rule_category,
)
from .domain_buckets import suggest_domain

__all__ = [
    "build_category_tree",
    "find_category_by_path",
    "resolve_category",
    "resolve_rule_category",
    "suggest_domain",
]

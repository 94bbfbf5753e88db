"""
Statement Engine - Bank Statement Import and Recurring Payment Detection.

Converts UK bank statement documents into structured transactions and
detects recurring payments (bills, council tax, subscriptions, insurance)
with a confidence score, frequency and suggested category.

Main Components:
    - ingestion: Token decoding, bank identification and statement parsing
    - detection: Fuzzy payee matching, clustering, frequency and confidence
    - resolution: Category tree and domain bucket resolution
    - patterns: Bank markers, default UK rule set and rule-set loading
    - config: Detection and ingestion configuration
"""

from typing import Dict, Optional, Sequence, Union

# Data model
from .models import (
    CategoryNode,
    CategorySuggestion,
    DetectionRule,
    DetectionRuleSet,
    DomainSuggestion,
    ParsedStatement,
    RecurringSuggestion,
    StatementMetadata,
    StatementPeriod,
    Transaction,
)

from .exceptions import (
    RuleSetLoadError,
    StatementDecodeError,
    StatementIngestionError,
    StatementTimeoutError,
)

# Ingestion
from .ingestion import (
    StatementParser,
    decode_pages,
    identify_bank,
    ingest_statement,
    load_statement_content,
    parse_statement,
)

# Detection
from .detection import (
    RecurringPaymentDetector,
    detect_recurring_payments,
    detect_recurring_payments_async,
    extract_payee_name,
    fuzzy_match,
    generate_entry_title,
    map_category_to_type,
    suggest_categories,
    suggest_recurring_payments,
)

# Resolution
from .resolution import build_category_tree, resolve_category, suggest_domain

# Configuration and rules
from .config import DETECTION_CONFIG, INGESTION_CONFIG, DetectionSettings
from .patterns import (
    build_rule_set,
    default_rule_set,
    load_rule_set_csv,
    load_rule_set_json,
)

__version__ = "1.0.0"
__all__ = [
    # Models
    "CategoryNode",
    "CategorySuggestion",
    "DetectionRule",
    "DetectionRuleSet",
    "DetectionSettings",
    "DomainSuggestion",
    "ParsedStatement",
    "RecurringSuggestion",
    "StatementMetadata",
    "StatementPeriod",
    "Transaction",
    # Errors
    "RuleSetLoadError",
    "StatementDecodeError",
    "StatementIngestionError",
    "StatementTimeoutError",
    # Ingestion
    "StatementParser",
    "decode_pages",
    "identify_bank",
    "ingest_statement",
    "load_statement_content",
    "parse_statement",
    # Detection
    "RecurringPaymentDetector",
    "detect_recurring_payments",
    "detect_recurring_payments_async",
    "extract_payee_name",
    "fuzzy_match",
    "generate_entry_title",
    "map_category_to_type",
    "suggest_categories",
    "suggest_recurring_payments",
    # Resolution
    "build_category_tree",
    "resolve_category",
    "suggest_domain",
    # Configuration
    "DETECTION_CONFIG",
    "INGESTION_CONFIG",
    "build_rule_set",
    "default_rule_set",
    "load_rule_set_csv",
    "load_rule_set_json",
    # Main function
    "run_statement_import",
]


def run_statement_import(
    document: Union[bytes, Dict],
    rule_set: Optional[DetectionRuleSet],
    bank_hint: Optional[str] = None,
    category_tree: Optional[Sequence[CategoryNode]] = None,
    timeout: Optional[float] = None,
    limit: Optional[int] = None,
) -> Dict:
    """
    Main entry point for importing a bank statement.

    This function orchestrates the complete pipeline:
    1. Decode the document into pages and tokens (bounded by a timeout)
    2. Identify the bank and parse transactions and metadata
    3. Detect recurring payments against the given rule set
    4. Return the statement and its suggestions

    Args:
        document: Raw statement bytes, or an already-decoded page structure
            ({"Pages": [{"Texts": [{"R": [{"T": "..."}]}]}]})
        rule_set: Detection rules; pass default_rule_set() for the UK
            defaults. None yields no suggestions.
        bank_hint: Bank label that bypasses identification
        category_tree: Optional category roots for category mapping
        timeout: Decode timeout in seconds (defaults to INGESTION_CONFIG)
        limit: Top-N suggestions; None returns all (bulk import)

    Returns:
        Dictionary containing:
            - bank: Identified (or hinted) bank label
            - account_number: Masked account number or None
            - sort_code: "XX-XX-XX" or None
            - statement_period: {"start", "end"} or None
            - transactions: Parsed transactions as dicts
            - suggestions: Recurring suggestions as dicts, highest confidence first

    Raises:
        StatementDecodeError: If the document cannot be decoded
        StatementTimeoutError: If decoding exceeds the timeout

    Example:
        >>> result = run_statement_import(pdf_bytes, default_rule_set())
        >>> result["suggestions"][0]["payee"]
        'British Gas'
    """
    statement = ingest_statement(document, bank_hint=bank_hint, timeout=timeout)
    suggestions = detect_recurring_payments(
        statement.transactions,
        rule_set,
        category_tree=category_tree,
        limit=limit,
    )

    result = statement.to_dict()
    result["suggestions"] = [suggestion.to_dict() for suggestion in suggestions]
    return result

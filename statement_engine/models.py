"""
Data model for statement ingestion and recurring payment detection.

All records are immutable once created. Transactions are produced by the
statement parser (or rebuilt from plain dicts for API and batch callers);
suggestions are produced by the detector and read once by downstream sinks.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

from .config.detection_config import DetectionSettings


ISO_DATE_FORMAT = "%Y-%m-%d"

# Accepted when rebuilding transactions from plain dicts
_DICT_DATE_FORMATS = (ISO_DATE_FORMAT, "%d/%m/%Y")


def coerce_date(value) -> date:
    """
    Convert a date, datetime or date string into a date.

    Raises:
        ValueError: If the value cannot be interpreted as a calendar date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Invalid date: {value!r}")

    text = value.strip()
    # Full ISO timestamps carry the date in the first ten characters
    candidates = [text, text[:10]] if len(text) > 10 else [text]
    for candidate in candidates:
        for fmt in _DICT_DATE_FORMATS:
            try:
                return datetime.strptime(candidate, fmt).date()
            except ValueError:
                continue
    raise ValueError(f"Invalid date: {value!r}")


@dataclass(frozen=True)
class Transaction:
    """A single parsed statement line. Negative amounts are debits."""
    date: date
    description: str
    amount: float
    balance: Optional[float] = None
    original_text: str = ""
    source_bank: str = "Generic"

    @classmethod
    def from_dict(cls, data: Dict) -> "Transaction":
        """
        Rebuild a transaction from a plain dict.

        Accepts both snake_case and camelCase keys, and 'name' as an
        alias for 'description'.

        Raises:
            ValueError: If date, description or amount is missing or invalid
        """
        if not isinstance(data, dict):
            raise ValueError(f"Transaction must be a mapping, got {type(data).__name__}")

        description = data.get("description") or data.get("name") or ""
        description = " ".join(str(description).split())
        if not description:
            raise ValueError("Transaction has no description")

        if data.get("date") is None:
            raise ValueError("Transaction has no date")
        txn_date = coerce_date(data["date"])

        try:
            amount = float(data["amount"])
        except (KeyError, TypeError, ValueError):
            raise ValueError(f"Transaction has invalid amount: {data.get('amount')!r}")
        if not math.isfinite(amount):
            raise ValueError(f"Transaction has non-finite amount: {data.get('amount')!r}")

        balance = data.get("balance")
        if balance is not None:
            try:
                balance = float(balance)
            except (TypeError, ValueError):
                balance = None
            if balance is not None and not math.isfinite(balance):
                balance = None

        return cls(
            date=txn_date,
            description=description,
            amount=amount,
            balance=balance,
            original_text=data.get("original_text") or data.get("originalText") or description,
            source_bank=data.get("source_bank") or data.get("sourceBank") or "Generic",
        )

    def to_dict(self) -> Dict:
        return {
            "date": self.date.strftime(ISO_DATE_FORMAT),
            "description": self.description,
            "amount": self.amount,
            "balance": self.balance,
            "original_text": self.original_text,
            "source_bank": self.source_bank,
        }


@dataclass(frozen=True)
class StatementPeriod:
    start: date
    end: date

    def to_dict(self) -> Dict:
        return {
            "start": self.start.strftime(ISO_DATE_FORMAT),
            "end": self.end.strftime(ISO_DATE_FORMAT),
        }


@dataclass(frozen=True)
class StatementMetadata:
    """Labelled fields found anywhere in the statement text."""
    account_number_masked: Optional[str] = None
    sort_code: Optional[str] = None
    statement_period: Optional[StatementPeriod] = None


@dataclass(frozen=True)
class ParsedStatement:
    """Output of statement ingestion."""
    transactions: Tuple[Transaction, ...]
    metadata: StatementMetadata
    bank: str

    @property
    def account_number(self) -> Optional[str]:
        return self.metadata.account_number_masked

    @property
    def sort_code(self) -> Optional[str]:
        return self.metadata.sort_code

    @property
    def statement_period(self) -> Optional[StatementPeriod]:
        return self.metadata.statement_period

    def to_dict(self) -> Dict:
        period = self.statement_period
        return {
            "bank": self.bank,
            "transactions": [txn.to_dict() for txn in self.transactions],
            "account_number": self.account_number,
            "sort_code": self.sort_code,
            "statement_period": period.to_dict() if period else None,
        }


@dataclass(frozen=True)
class DetectionRule:
    """
    A named provider/payee rule.

    'group' is the rule group the rule was loaded from; group order sets
    match priority. 'category_path' optionally overrides the default
    subcategory name-path used for category tree resolution.
    """
    name: str
    patterns: Tuple[str, ...]
    category: str
    subcategory: Optional[str] = None
    provider: Optional[str] = None
    confidence_boost: float = 0.1
    min_occurrences: Optional[int] = None
    expected_frequency: Optional[str] = None
    active: bool = True
    uk_specific: bool = True
    category_path: Optional[Tuple[str, ...]] = None
    group: str = "general_rules"


@dataclass(frozen=True)
class DetectionRuleSet:
    """Ordered rule groups plus the thresholds they are evaluated with."""
    name: str
    groups: Tuple[Tuple[str, Tuple[DetectionRule, ...]], ...]
    settings: DetectionSettings = field(default_factory=DetectionSettings)
    description: str = ""
    version: str = "1.0"
    is_default: bool = False

    def iter_rules(self, include_inactive: bool = False):
        """Yield rules in priority order (group order, then rule order)."""
        for _, rules in self.groups:
            for rule in rules:
                if rule.active or include_inactive:
                    yield rule

    @property
    def rule_count(self) -> int:
        return sum(len(rules) for _, rules in self.groups)


@dataclass(frozen=True)
class DomainSuggestion:
    domain: str
    confidence: float
    record_type: str
    reasoning: str


@dataclass(frozen=True)
class RecurringSuggestion:
    """A detected recurring payment, ready for a downstream record sink."""
    payee: str
    category: str
    subcategory: Optional[str]
    frequency: str
    confidence: float
    occurrences: Tuple[Transaction, ...]
    provider: str
    matched_pattern: str
    reason: str
    typical_amount: float = 0.0
    frequency_consistency: float = 0.0
    amount_consistency: float = 0.0
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    domain: Optional[DomainSuggestion] = None
    entry_title: str = ""
    entry_type: str = "other"

    @property
    def occurrence_count(self) -> int:
        return len(self.occurrences)

    @property
    def first_seen(self) -> date:
        return self.occurrences[0].date

    @property
    def last_seen(self) -> date:
        return self.occurrences[-1].date

    def to_dict(self) -> Dict:
        return {
            "payee": self.payee,
            "category": self.category,
            "subcategory": self.subcategory,
            "frequency": self.frequency,
            "confidence": round(self.confidence, 3),
            "provider": self.provider,
            "matched_pattern": self.matched_pattern,
            "reason": self.reason,
            "typical_amount": round(self.typical_amount, 2),
            "occurrence_count": self.occurrence_count,
            "first_seen": self.first_seen.strftime(ISO_DATE_FORMAT),
            "last_seen": self.last_seen.strftime(ISO_DATE_FORMAT),
            "category_id": self.category_id,
            "category_name": self.category_name,
            "domain": self.domain.domain if self.domain else None,
            "domain_confidence": round(self.domain.confidence, 3) if self.domain else None,
            "record_type": self.domain.record_type if self.domain else None,
            "entry_title": self.entry_title,
            "entry_type": self.entry_type,
            "occurrences": [txn.to_dict() for txn in self.occurrences],
        }


@dataclass(frozen=True)
class CategorySuggestion:
    """A category proposal for a free-text payee search."""
    category_id: Optional[str]
    category_name: str
    subcategory_name: Optional[str]
    confidence: float
    provider: str
    matched_pattern: str
    reason: str

    def to_dict(self) -> Dict:
        return {
            "category_id": self.category_id,
            "category_name": self.category_name,
            "subcategory_name": self.subcategory_name,
            "confidence": round(self.confidence, 3),
            "provider": self.provider,
            "matched_pattern": self.matched_pattern,
            "reason": self.reason,
        }


@dataclass
class CategoryNode:
    """A node of a caller-supplied category tree. Read-only to the engine."""
    id: str
    name: str
    parent_id: Optional[str] = None
    children: List["CategoryNode"] = field(default_factory=list)

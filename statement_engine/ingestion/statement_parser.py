"""
Statement parser.

Walks the flattened token stream of a statement with a small state machine
and emits Transaction records, then scans the whole stream separately for
labelled metadata (account number, sort code, statement period).
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional

from ..models import ParsedStatement, StatementMetadata, StatementPeriod, Transaction
from ..patterns.uk_providers import UNKNOWN_BANK
from .bank_identifier import identify_bank
from .bank_profiles import (
    DEBIT_MARKERS,
    SIGN_MARKERS,
    AmountToken,
    BankProfile,
    profile_for_bank,
)
from .token_decoder import flatten_tokens

logger = logging.getLogger(__name__)


ACCOUNT_NUMBER_PATTERN = re.compile(r"Account\s+(?:Number|No\.?)[:\s]+(\d{6,12})\b", re.IGNORECASE)
SORT_CODE_PATTERN = re.compile(r"Sort\s+Code[:\s]+(\d{2})[-\s]?(\d{2})[-\s]?(\d{2})\b", re.IGNORECASE)

_DATE_FRAGMENT = r"(\d{1,2}[/-]\d{1,2}[/-]\d{2,4}|\d{1,2}\s+[A-Za-z]{3,9}\s+\d{2,4}|\d{4}-\d{2}-\d{2})"
STATEMENT_PERIOD_PATTERN = re.compile(
    r"Statement\s+Period[:\s]+" + _DATE_FRAGMENT + r"\s+to\s+" + _DATE_FRAGMENT,
    re.IGNORECASE,
)

ACCOUNT_MASK = "****"


class ParserState(Enum):
    SEEK_DATE = "seek-date"
    SEEK_DESCRIPTION = "seek-description"
    SEEK_AMOUNT = "seek-amount"
    SEEK_BALANCE = "seek-balance"


@dataclass
class _PendingTransaction:
    date: date
    raw_tokens: List[str]
    description_parts: List[str] = field(default_factory=list)
    amount: Optional[AmountToken] = None
    marker: Optional[str] = None
    balance: Optional[float] = None


class StatementParser:
    """Bank-aware token sequencer producing Transaction records."""

    def __init__(self, bank: str = "Generic"):
        self.bank = bank or UNKNOWN_BANK
        self.profile: BankProfile = profile_for_bank(self.bank)
        self.source_bank = self.profile.name if self.bank == UNKNOWN_BANK else self.bank

    def parse(self, pages: List[List[str]]) -> ParsedStatement:
        """
        Parse decoded pages into a ParsedStatement.

        Args:
            pages: Decoded tokens per page

        Returns:
            ParsedStatement with transactions in statement order and metadata
        """
        tokens = flatten_tokens(pages)
        transactions = self.parse_transactions(tokens)
        metadata = self.extract_metadata(tokens)

        logger.info(
            "Parsed %d transactions from %d tokens (bank=%s, profile=%s)",
            len(transactions), len(tokens), self.bank, self.profile.name
        )
        return ParsedStatement(
            transactions=tuple(transactions),
            metadata=metadata,
            bank=self.bank,
        )

    def parse_transactions(self, tokens: List[str]) -> List[Transaction]:
        transactions: List[Transaction] = []
        state = ParserState.SEEK_DATE
        pending: Optional[_PendingTransaction] = None

        for token in tokens:
            token_date = self.profile.parse_date(token)
            if token_date is not None:
                # A new date always opens a new record
                self._finish(pending, transactions)
                pending = _PendingTransaction(date=token_date, raw_tokens=[token])
                state = ParserState.SEEK_DESCRIPTION
                continue

            if state is ParserState.SEEK_DATE:
                continue

            if state in (ParserState.SEEK_DESCRIPTION, ParserState.SEEK_AMOUNT):
                amount = self.profile.parse_amount(token)
                pending.raw_tokens.append(token)
                if amount is None:
                    pending.description_parts.append(token)
                    state = ParserState.SEEK_AMOUNT
                    continue

                pending.amount = amount
                state = ParserState.SEEK_BALANCE
                continue

            # SEEK_BALANCE: a sign marker may follow the amount as its own token
            marker = token.strip().upper()
            if marker in SIGN_MARKERS and pending.marker is None and pending.amount.marker is None:
                pending.marker = marker
                pending.raw_tokens.append(token)
                if not self.profile.has_balance_column:
                    self._finish(pending, transactions)
                    pending = None
                    state = ParserState.SEEK_DATE
                continue

            balance = self.profile.parse_amount(token) if self.profile.has_balance_column else None
            if balance is not None:
                pending.balance = self._balance_value(balance)
                pending.raw_tokens.append(token)
            self._finish(pending, transactions)
            pending = None
            state = ParserState.SEEK_DATE

        self._finish(pending, transactions)
        return transactions

    def _finish(self, pending: Optional[_PendingTransaction], transactions: List[Transaction]) -> None:
        """Commit a pending record if it is valid, otherwise drop it."""
        if pending is None:
            return

        description = " ".join(" ".join(pending.description_parts).split())
        if not description or pending.amount is None:
            logger.debug(
                "Rejected row on %s: %s",
                pending.date.isoformat(),
                "no description" if not description else "no amount",
            )
            return

        transactions.append(Transaction(
            date=pending.date,
            description=description,
            amount=self.profile.signed_amount(pending.amount, pending.marker),
            balance=pending.balance,
            original_text=" ".join(pending.raw_tokens),
            source_bank=self.source_bank,
        ))

    @staticmethod
    def _balance_value(balance: AmountToken) -> float:
        if balance.marker in DEBIT_MARKERS or balance.explicit_sign == "-":
            return -balance.value
        return balance.value

    def extract_metadata(self, tokens: List[str]) -> StatementMetadata:
        """Find account number, sort code and statement period anywhere in the text."""
        text = " ".join(tokens)

        account_number = None
        match = ACCOUNT_NUMBER_PATTERN.search(text)
        if match:
            account_number = ACCOUNT_MASK + match.group(1)[-4:]

        sort_code = None
        match = SORT_CODE_PATTERN.search(text)
        if match:
            sort_code = "-".join(match.groups())

        period = None
        match = STATEMENT_PERIOD_PATTERN.search(text)
        if match:
            start = self.profile.parse_date(match.group(1))
            end = self.profile.parse_date(match.group(2))
            if start and end:
                period = StatementPeriod(start=start, end=end)

        return StatementMetadata(
            account_number_masked=account_number,
            sort_code=sort_code,
            statement_period=period,
        )


def parse_statement(pages: List[List[str]], bank_hint: Optional[str] = None) -> ParsedStatement:
    """
    Parse decoded pages, identifying the bank unless a hint is given.

    Args:
        pages: Decoded tokens per page
        bank_hint: Bank label to use instead of identification

    Returns:
        ParsedStatement
    """
    bank = bank_hint or identify_bank(pages)
    return StatementParser(bank).parse(pages)

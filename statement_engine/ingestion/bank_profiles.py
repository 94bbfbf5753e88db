"""
Bank parsing profiles.

Each profile exposes the same three hooks to the statement parser:
the date formats it tries, how an amount's sign is decided, and whether a
running balance column follows the amount.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Optional, Tuple

from ..config.detection_config import INGESTION_CONFIG


AMOUNT_PATTERN = re.compile(
    r"^(?P<sign>[-+])?\s*£?\s*(?P<number>\d{1,3}(?:,\d{3})+|\d+)\.(?P<pence>\d{2})"
    r"(?:\s*(?P<marker>CR|DR|O/D))?$",
    re.IGNORECASE,
)

DEBIT_MARKERS = {"DR", "O/D"}
CREDIT_MARKERS = {"CR"}
SIGN_MARKERS = DEBIT_MARKERS | CREDIT_MARKERS

# Long month names only appear in headers (statement period)
_HEADER_DATE_FORMATS = ("%d %B %Y", "%d %B %y")

TWO_DIGIT_YEAR_PIVOT = 50


@dataclass(frozen=True)
class AmountToken:
    """An amount-shaped token before sign rules are applied."""
    value: float
    explicit_sign: Optional[str] = None
    marker: Optional[str] = None


@dataclass(frozen=True)
class BankProfile:
    name: str
    date_formats: Tuple[str, ...]
    has_balance_column: bool = True
    unmarked_is_debit: bool = False
    max_amount: Optional[float] = None

    def parse_date(self, token: str) -> Optional[date]:
        """Parse a whole token as a date using this profile's formats, in order."""
        text = " ".join(token.split())
        if not text or not text[0].isdigit():
            return None
        for fmt in self.date_formats + _HEADER_DATE_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
            except ValueError:
                continue
            if "%y" in fmt:
                # 00-49 -> 2000s, 50-99 -> 1900s
                short_year = parsed.year % 100
                century = 2000 if short_year < TWO_DIGIT_YEAR_PIVOT else 1900
                parsed = parsed.replace(year=century + short_year)
            return parsed.date()
        return None

    def parse_amount(self, token: str) -> Optional[AmountToken]:
        """Return the amount if the whole token is amount-shaped."""
        match = AMOUNT_PATTERN.match(token.strip())
        if not match:
            return None
        value = float(f"{match.group('number').replace(',', '')}.{match.group('pence')}")
        if self.max_amount is not None and value > self.max_amount:
            return None
        marker = match.group("marker")
        return AmountToken(
            value=value,
            explicit_sign=match.group("sign"),
            marker=marker.upper() if marker else None,
        )

    def signed_amount(self, amount: AmountToken, marker: Optional[str] = None) -> float:
        """
        Apply the sign convention.

        DR and O/D force a debit, CR forces a credit. Without a marker the
        literal sign is kept; an unsigned amount is a debit only on
        statements whose unmarked amounts are debits.
        """
        marker = amount.marker or marker
        if marker in DEBIT_MARKERS:
            return -amount.value
        if marker in CREDIT_MARKERS:
            return amount.value
        if amount.explicit_sign == "-":
            return -amount.value
        if amount.explicit_sign == "+":
            return amount.value
        return -amount.value if self.unmarked_is_debit else amount.value


GENERIC_PROFILE = BankProfile(
    name="Generic",
    date_formats=("%d/%m/%Y", "%d %b %Y", "%Y-%m-%d", "%d-%m-%Y", "%d/%m/%y", "%d %b %y"),
    has_balance_column=False,
)

BANK_PROFILES: Dict[str, BankProfile] = {
    "NatWest": BankProfile(
        name="NatWest",
        date_formats=("%d/%m/%Y", "%d/%m/%y", "%d %b %Y", "%Y-%m-%d"),
    ),
    "Barclays": BankProfile(
        name="Barclays",
        date_formats=("%d %b %Y", "%d/%m/%Y", "%Y-%m-%d", "%d %b %y"),
    ),
    "HSBC": BankProfile(
        name="HSBC",
        date_formats=("%d %b %y", "%d/%m/%y", "%d/%m/%Y", "%d %b %Y", "%Y-%m-%d"),
        unmarked_is_debit=True,
        max_amount=INGESTION_CONFIG["max_plausible_amount"],
    ),
    "Generic": GENERIC_PROFILE,
}


def profile_for_bank(bank: Optional[str]) -> BankProfile:
    """Return the parsing profile for a bank label; other banks use Generic."""
    return BANK_PROFILES.get(bank or "", GENERIC_PROFILE)

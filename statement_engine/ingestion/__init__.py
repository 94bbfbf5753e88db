"""
Statement ingestion.

document bytes -> page structure (pdfplumber, bounded by a timeout)
-> decoded tokens -> bank identification -> Transaction records + metadata.
"""

from .bank_identifier import identify_bank
from .bank_profiles import BANK_PROFILES, GENERIC_PROFILE, BankProfile, profile_for_bank
from .document_loader import extract_pdf_content, ingest_statement, load_statement_content
from .statement_parser import ParserState, StatementParser, parse_statement
from .token_decoder import decode_pages, decode_token, flatten_tokens

__all__ = [
    "BANK_PROFILES",
    "GENERIC_PROFILE",
    "BankProfile",
    "ParserState",
    "StatementParser",
    "decode_pages",
    "decode_token",
    "extract_pdf_content",
    "flatten_tokens",
    "identify_bank",
    "ingest_statement",
    "load_statement_content",
    "parse_statement",
    "profile_for_bank",
]

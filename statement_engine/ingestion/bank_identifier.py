"""
Bank identification from the opening tokens of a statement.
"""

import logging
from typing import List, Optional

from ..config.detection_config import INGESTION_CONFIG
from ..patterns.uk_providers import BANK_MARKERS, UNKNOWN_BANK
from .token_decoder import flatten_tokens

logger = logging.getLogger(__name__)


def identify_bank(pages: List[List[str]], scan_limit: Optional[int] = None) -> str:
    """
    Identify the issuing bank from the first tokens of a statement.

    Tokens are scanned in order across pages; for each token every bank's
    markers are checked in BANK_MARKERS order and the first hit wins.

    Args:
        pages: Decoded tokens per page
        scan_limit: Number of leading tokens to inspect

    Returns:
        Bank label, or "Unknown" if nothing matches
    """
    if scan_limit is None:
        scan_limit = INGESTION_CONFIG["bank_scan_token_limit"]

    for token in flatten_tokens(pages)[:scan_limit]:
        token_upper = token.upper()
        for bank, markers in BANK_MARKERS:
            if any(marker in token_upper for marker in markers):
                logger.debug("Identified bank %s from token '%s'", bank, token)
                return bank

    return UNKNOWN_BANK

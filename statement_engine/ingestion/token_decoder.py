"""
Token decoder.

Turns the positioned page content of a parsed statement document into an
ordered list of plain-text tokens per page. The page structure is:

    {"Pages": [{"Texts": [{"x": 1.2, "y": 3.4, "R": [{"T": "BRITISH%20GAS"}]}]}]}

Each text run payload ("T") is percent-encoded.
"""

from typing import Dict, Iterable, List
from urllib.parse import unquote


def decode_token(raw: str) -> str:
    """Percent-decode a single run payload, keeping the raw text if it is malformed."""
    try:
        return unquote(raw, errors="strict")
    except UnicodeDecodeError:
        return raw


def decode_pages(content: Dict) -> List[List[str]]:
    """
    Decode a page structure into per-page token lists.

    Never raises for odd content: missing or non-list sections are treated
    as empty and empty tokens are dropped.

    Args:
        content: Page structure with a 'Pages' list

    Returns:
        One list of decoded, stripped, non-empty tokens per page
    """
    if not isinstance(content, dict):
        return []
    pages = content.get("Pages")
    if not isinstance(pages, list):
        return []

    decoded_pages = []
    for page in pages:
        tokens = []
        texts = page.get("Texts") if isinstance(page, dict) else None
        for text in texts if isinstance(texts, list) else []:
            runs = text.get("R") if isinstance(text, dict) else None
            for run in runs if isinstance(runs, list) else []:
                raw = run.get("T") if isinstance(run, dict) else None
                if not isinstance(raw, str):
                    continue
                token = decode_token(raw).strip()
                if token:
                    tokens.append(token)
        decoded_pages.append(tokens)

    return decoded_pages


def flatten_tokens(pages: Iterable[List[str]]) -> List[str]:
    """Join per-page token lists into one stream, preserving order."""
    return [token for page in pages for token in page]

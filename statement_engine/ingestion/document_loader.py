"""
Statement document loading.

Converts raw statement bytes into the positioned page structure consumed by
the token decoder, using pdfplumber. Extraction runs on a worker thread and
is bounded by a timeout so a parser that never finishes cannot hang the
caller.
"""

import io
import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Callable, Dict, Optional, Union
from urllib.parse import quote

import pdfplumber

from ..config.detection_config import INGESTION_CONFIG
from ..exceptions import StatementDecodeError, StatementTimeoutError
from ..models import ParsedStatement
from .statement_parser import parse_statement
from .token_decoder import decode_pages

logger = logging.getLogger(__name__)

Extractor = Callable[[bytes], Dict]


def extract_pdf_content(data: bytes) -> Dict:
    """
    Extract positioned words from a PDF into the page structure.

    Words separated by a single space stay together so that statement
    columns come out as one run each.
    """
    pages = []
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        for page in pdf.pages:
            words = page.extract_words(
                keep_blank_chars=True,
                x_tolerance=INGESTION_CONFIG["word_x_tolerance"],
            )
            pages.append({
                "Texts": [
                    {"x": word["x0"], "y": word["top"], "R": [{"T": quote(word["text"])}]}
                    for word in words
                ]
            })
    return {"Pages": pages}


def load_statement_content(
    data: bytes,
    timeout: Optional[float] = None,
    extractor: Optional[Extractor] = None,
) -> Dict:
    """
    Decode document bytes into a page structure within a time bound.

    Args:
        data: Raw document bytes
        timeout: Seconds to wait (defaults to INGESTION_CONFIG)
        extractor: Callable turning bytes into the page structure

    Returns:
        Page structure with a 'Pages' list

    Raises:
        StatementDecodeError: If the document cannot be decoded at all
        StatementTimeoutError: If decoding exceeds the timeout
    """
    if not data:
        raise StatementDecodeError("Statement document is empty")

    if timeout is None:
        timeout = INGESTION_CONFIG["decode_timeout_seconds"]
    extractor = extractor or extract_pdf_content

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="statement-decode")
    future = executor.submit(extractor, data)
    try:
        content = future.result(timeout=timeout)
    except FutureTimeoutError as e:
        future.cancel()
        logger.error("Statement decoding timed out after %.1fs", timeout)
        raise StatementTimeoutError(timeout) from e
    except StatementDecodeError:
        raise
    except Exception as e:
        logger.error("Statement decoding failed: %s: %s", type(e).__name__, e)
        raise StatementDecodeError(f"Could not decode statement: {e}") from e
    finally:
        # Never wait on a stuck extractor thread
        executor.shutdown(wait=False)

    if not isinstance(content, dict) or not isinstance(content.get("Pages"), list):
        raise StatementDecodeError("Decoded statement has no page structure")
    return content


def ingest_statement(
    document: Union[bytes, Dict],
    bank_hint: Optional[str] = None,
    timeout: Optional[float] = None,
    extractor: Optional[Extractor] = None,
) -> ParsedStatement:
    """
    Turn a statement document into transactions and metadata.

    Args:
        document: Raw document bytes, or an already-decoded page structure
        bank_hint: Bank label that bypasses identification
        timeout: Decode timeout in seconds (bytes input only)
        extractor: Alternative bytes-to-page-structure callable

    Returns:
        ParsedStatement

    Raises:
        StatementDecodeError: If the bytes cannot be decoded
        StatementTimeoutError: If decoding exceeds the timeout
    """
    if isinstance(document, (bytes, bytearray)):
        content = load_statement_content(bytes(document), timeout=timeout, extractor=extractor)
    elif isinstance(document, dict):
        content = document
    else:
        raise StatementDecodeError(
            f"Unsupported statement document type: {type(document).__name__}"
        )

    pages = decode_pages(content)
    return parse_statement(pages, bank_hint=bank_hint)

"""
Statement Batch Processor for bulk import of bank statements.
Handles PDF statements, pre-decoded JSON page structures and ZIP archives
of either, with per-file error handling and untruncated recurring payment
detection.
"""

import io
import json
import logging
import os
import traceback
import zipfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from statement_engine.detection.recurring_detector import RecurringPaymentDetector
from statement_engine.exceptions import StatementDecodeError, StatementTimeoutError
from statement_engine.ingestion.document_loader import ingest_statement
from statement_engine.models import CategoryNode, DetectionRuleSet, ParsedStatement, RecurringSuggestion

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".pdf", ".json")


class InvalidStatementStructureError(Exception):
    """Raised when a JSON file is not a decoded statement page structure."""
    pass


@dataclass
class ProcessingError:
    """Details of a processing error."""
    file_name: str
    error_type: str
    error_message: str
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())


@dataclass
class StatementResult:
    """Parsed statement and its recurring payment suggestions."""
    file_name: str
    statement: ParsedStatement
    suggestions: List[RecurringSuggestion]


@dataclass
class BatchStats:
    """Statistics for batch processing."""
    total_files: int = 0
    processed: int = 0
    successful: int = 0
    failed: int = 0

    total_transactions: int = 0
    total_suggestions: int = 0
    statements_by_bank: Dict[str, int] = field(default_factory=dict)

    # Timing
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @property
    def average_suggestions(self) -> float:
        """Average suggestions per successful statement."""
        if self.successful == 0:
            return 0.0
        return self.total_suggestions / self.successful

    @property
    def processing_time(self) -> float:
        """Calculate total processing time in seconds."""
        if self.start_time and self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return 0.0

    @property
    def success_rate(self) -> float:
        """Calculate success rate as percentage."""
        if self.total_files == 0:
            return 0.0
        return (self.successful / self.total_files) * 100


@dataclass
class BatchResult:
    """Complete result of batch processing."""
    stats: BatchStats
    results: List[StatementResult]
    errors: List[ProcessingError]
    error_summary: Dict[str, int] = field(default_factory=dict)

    @staticmethod
    def merge_results(result1: 'BatchResult', result2: 'BatchResult') -> 'BatchResult':
        """
        Merge two BatchResult objects into a single combined result.

        Used when statements arrive in several uploads and the import
        analysis should cover all of them.
        """
        merged_stats = BatchStats()
        for name in ("total_files", "processed", "successful", "failed",
                     "total_transactions", "total_suggestions"):
            setattr(merged_stats, name, getattr(result1.stats, name) + getattr(result2.stats, name))

        merged_stats.statements_by_bank = dict(result1.stats.statements_by_bank)
        for bank, count in result2.stats.statements_by_bank.items():
            merged_stats.statements_by_bank[bank] = merged_stats.statements_by_bank.get(bank, 0) + count

        # Earliest start, latest end
        starts = [s for s in (result1.stats.start_time, result2.stats.start_time) if s]
        ends = [e for e in (result1.stats.end_time, result2.stats.end_time) if e]
        merged_stats.start_time = min(starts) if starts else None
        merged_stats.end_time = max(ends) if ends else None

        merged_error_summary = dict(result1.error_summary)
        for error_type, count in result2.error_summary.items():
            merged_error_summary[error_type] = merged_error_summary.get(error_type, 0) + count

        return BatchResult(
            stats=merged_stats,
            results=result1.results + result2.results,
            errors=result1.errors + result2.errors,
            error_summary=merged_error_summary
        )


class StatementBatchProcessor:
    """Batch processor for bank statement imports."""

    def __init__(
        self,
        rule_set: Optional[DetectionRuleSet],
        category_tree: Optional[Sequence[CategoryNode]] = None,
        decode_timeout: Optional[float] = None,
    ):
        """
        Initialize the batch processor.

        Args:
            rule_set: Detection rules used for every statement
            category_tree: Optional category roots for category mapping
            decode_timeout: Per-document decode timeout in seconds
        """
        self.rule_set = rule_set
        self.decode_timeout = decode_timeout
        self.detector = RecurringPaymentDetector(rule_set, category_tree)

        logger.info(
            f"Initialized batch processor: rules={rule_set.name if rule_set else 'none'}, "
            f"timeout={decode_timeout if decode_timeout is not None else 'default'}"
        )

    def process_batch(
        self,
        files: List[Tuple[str, bytes]],
        bank_hint: Optional[str] = None,
        progress_callback: Optional[Callable[[int, int, str], None]] = None
    ) -> BatchResult:
        """
        Process a batch of statement files.

        Args:
            files: List of (filename, content) tuples
            bank_hint: Bank label applied to every file (skips identification)
            progress_callback: Optional callback(current, total, message)

        Returns:
            BatchResult with all processing results
        """
        stats = BatchStats(
            total_files=len(files),
            start_time=datetime.now()
        )

        results = []
        errors = []
        error_types: Dict[str, int] = {}

        logger.info(f"Starting batch processing of {len(files)} statements")

        for idx, (filename, content) in enumerate(files):
            if progress_callback:
                progress_callback(idx + 1, len(files), f"Processing: {filename}")

            logger.debug(f"Processing file {idx + 1}/{len(files)}: {filename}")
            stats.processed += 1

            try:
                result = self._process_single_statement(filename, content, bank_hint)
            except Exception as e:
                error_type, message = self._classify_error(e)
                errors.append(ProcessingError(
                    file_name=filename,
                    error_type=error_type,
                    error_message=message
                ))
                stats.failed += 1
                error_types[error_type] = error_types.get(error_type, 0) + 1
                if error_type == "PROCESSING_ERROR":
                    logger.error(f"Processing error in {filename}: {traceback.format_exc()}")
                else:
                    logger.error(f"{error_type} in {filename}: {message}")
                continue

            results.append(result)
            stats.successful += 1
            stats.total_transactions += len(result.statement.transactions)
            stats.total_suggestions += len(result.suggestions)
            bank = result.statement.bank
            stats.statements_by_bank[bank] = stats.statements_by_bank.get(bank, 0) + 1

        stats.end_time = datetime.now()

        logger.info(
            f"Batch processing complete: {stats.successful}/{stats.total_files} successful, "
            f"{stats.total_suggestions} suggestions, time: {stats.processing_time:.1f}s"
        )

        return BatchResult(
            stats=stats,
            results=results,
            errors=errors,
            error_summary=error_types
        )

    @staticmethod
    def _classify_error(error: Exception) -> Tuple[str, str]:
        """Map an exception to an error type code and message."""
        if isinstance(error, StatementTimeoutError):
            return "TIMEOUT", str(error)
        if isinstance(error, StatementDecodeError):
            return "DECODE_ERROR", str(error)
        if isinstance(error, json.JSONDecodeError):
            return "JSON_PARSE_ERROR", f"Invalid JSON: {error}"
        if isinstance(error, InvalidStatementStructureError):
            return "INVALID_STATEMENT_STRUCTURE", str(error)
        return "PROCESSING_ERROR", f"{type(error).__name__}: {error}"

    def _process_single_statement(
        self,
        filename: str,
        content: bytes,
        bank_hint: Optional[str]
    ) -> StatementResult:
        """Process a single statement file."""
        if filename.lower().endswith(".json"):
            document = self._load_page_structure(filename, content)
        else:
            document = content

        statement = ingest_statement(document, bank_hint=bank_hint, timeout=self.decode_timeout)
        # Bulk import analysis keeps every suggestion
        suggestions = self.detector.detect(statement.transactions)

        return StatementResult(
            file_name=filename,
            statement=statement,
            suggestions=suggestions
        )

    def _load_page_structure(self, filename: str, content: bytes) -> Dict:
        """Parse a pre-decoded statement JSON file."""
        try:
            data = json.loads(content.decode("utf-8"))
        except UnicodeDecodeError:
            # Fallback for Windows-encoded exports
            data = json.loads(content.decode("cp1252", errors="replace"))

        if not isinstance(data, dict):
            raise InvalidStatementStructureError(
                f"Unexpected JSON root type in {filename}: {type(data).__name__}. "
                f"Expected an object with a 'Pages' list."
            )
        if not isinstance(data.get("Pages"), list):
            # Some exports nest the page structure under formImage
            nested = data.get("formImage")
            if isinstance(nested, dict) and isinstance(nested.get("Pages"), list):
                logger.info(f"{filename}: Found pages under 'formImage'")
                return nested
            raise InvalidStatementStructureError(
                f"No 'Pages' list in {filename}. Keys found: {sorted(data.keys())}"
            )
        return data

    def load_files(self, paths: List[str]) -> List[Tuple[str, bytes]]:
        """
        Load statement files from disk.
        Handles PDF and JSON files, ZIP archives and directories of them.

        Args:
            paths: File or directory paths

        Returns:
            List of (filename, content) tuples
        """
        all_files = []

        for path_str in paths:
            path = Path(path_str)
            if path.is_dir():
                candidates = sorted(p for p in path.iterdir() if p.is_file())
            else:
                candidates = [path]

            for candidate in candidates:
                name = candidate.name
                if name.lower().endswith(".zip"):
                    logger.info(f"Extracting ZIP archive: {name}")
                    zip_files = self._extract_zip(candidate.read_bytes())
                    all_files.extend(zip_files)
                    logger.info(f"Extracted {len(zip_files)} files from {name}")
                elif name.lower().endswith(SUPPORTED_EXTENSIONS):
                    all_files.append((name, candidate.read_bytes()))
                else:
                    logger.warning(f"Skipping unsupported file: {name}")

        logger.info(f"Total files loaded: {len(all_files)}")
        return all_files

    def _extract_zip(self, content: bytes) -> List[Tuple[str, bytes]]:
        """Extract statement files from a ZIP archive."""
        files = []

        with zipfile.ZipFile(io.BytesIO(content), "r") as zf:
            for name in zf.namelist():
                if name.endswith("/"):
                    continue
                if not name.lower().endswith(SUPPORTED_EXTENSIONS):
                    continue

                # Use just the filename without path
                files.append((os.path.basename(name), zf.read(name)))

        return files

    def suggestions_to_dataframe(self, results: List[StatementResult]):
        """
        Convert batch results to a pandas DataFrame, one row per suggestion.

        Args:
            results: List of StatementResult objects

        Returns:
            pandas DataFrame
        """
        import pandas as pd

        rows = []
        for result in results:
            for suggestion in result.suggestions:
                rows.append({
                    "File Name": result.file_name,
                    "Bank": result.statement.bank,
                    "Account": result.statement.account_number or "",
                    "Payee": suggestion.payee,
                    "Provider": suggestion.provider,
                    "Category": suggestion.category,
                    "Subcategory": suggestion.subcategory or "",
                    "Frequency": suggestion.frequency,
                    "Confidence": round(suggestion.confidence, 3),
                    "Occurrences": suggestion.occurrence_count,
                    "Typical Amount": round(suggestion.typical_amount, 2),
                    "First Seen": suggestion.first_seen.isoformat(),
                    "Last Seen": suggestion.last_seen.isoformat(),
                    "Domain": suggestion.domain.domain if suggestion.domain else "",
                    "Entry Title": suggestion.entry_title,
                    "Entry Type": suggestion.entry_type,
                    "Matched Pattern": suggestion.matched_pattern,
                })

        return pd.DataFrame(rows)

    def errors_to_dataframe(self, errors: List[ProcessingError]):
        """
        Convert processing errors to a pandas DataFrame.

        Args:
            errors: List of ProcessingError objects

        Returns:
            pandas DataFrame
        """
        import pandas as pd

        rows = []
        for error in errors:
            rows.append({
                "File Name": error.file_name,
                "Error Type": error.error_type,
                "Error Message": error.error_message,
                "Timestamp": error.timestamp,
            })

        return pd.DataFrame(rows)


def main(paths: List[str], out_csv: str, rules_path: Optional[str] = None):
    from statement_engine.patterns.rule_set_loader import default_rule_set, load_rule_set_json

    rule_set = load_rule_set_json(rules_path) if rules_path else default_rule_set()
    processor = StatementBatchProcessor(rule_set)

    files = processor.load_files(paths)
    batch = processor.process_batch(files)

    processor.suggestions_to_dataframe(batch.results).to_csv(out_csv, index=False)
    print(f"Wrote {batch.stats.total_suggestions} suggestions from "
          f"{batch.stats.successful}/{batch.stats.total_files} statements to {out_csv}")

    if batch.errors:
        print(processor.errors_to_dataframe(batch.errors).to_string(index=False))


if __name__ == "__main__":
    import sys

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s"
    )

    if len(sys.argv) < 3:
        raise SystemExit(
            "Usage:\n"
            "  python statement_batch_processor.py <statements...> <out.csv> [--rules rules.json]\n"
        )

    args = sys.argv[1:]
    rules = None
    if "--rules" in args:
        i = args.index("--rules")
        rules = args[i + 1]
        args = args[:i] + args[i + 2:]

    main(paths=args[:-1], out_csv=args[-1], rules_path=rules)

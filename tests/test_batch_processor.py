"""
Test suite for the statement batch processor.

Covers per-file error classification, ZIP and directory loading, result
merging and DataFrame export.
"""

import json
import os
import tempfile
import unittest
import zipfile
from datetime import datetime
from urllib.parse import quote

from statement_batch_processor import (
    BatchResult,
    BatchStats,
    ProcessingError,
    StatementBatchProcessor,
)
from statement_engine.exceptions import StatementTimeoutError
from statement_engine.patterns.rule_set_loader import default_rule_set


def statement_json(tokens, nested=False):
    document = {"Pages": [{"Texts": [{"R": [{"T": quote(t)}]} for t in tokens]}]}
    if nested:
        document = {"formImage": document}
    return json.dumps(document).encode("utf-8")


NATWEST_TOKENS = ["NATWEST BANK PLC"]
for _day in ("15/08/2023", "15/09/2023", "15/10/2023"):
    NATWEST_TOKENS += [_day, "BRITISH GAS DD", "-85.50", "1,234.50"]
NATWEST_TOKENS += ["16/10/2023", "TESCO STORES", "-25.67", "1,208.83"]


class TestStatementBatchProcessor(unittest.TestCase):
    """Test cases for batch processing."""

    def setUp(self):
        self.processor = StatementBatchProcessor(default_rule_set())

    def test_successful_json_statement(self):
        batch = self.processor.process_batch([("natwest.json", statement_json(NATWEST_TOKENS))])

        self.assertEqual(batch.stats.successful, 1)
        self.assertEqual(batch.stats.failed, 0)
        self.assertEqual(batch.stats.total_transactions, 4)
        self.assertEqual(batch.stats.total_suggestions, 1)
        self.assertEqual(batch.stats.statements_by_bank, {"NatWest": 1})
        self.assertEqual(batch.stats.success_rate, 100.0)

        result = batch.results[0]
        self.assertEqual(result.file_name, "natwest.json")
        self.assertEqual(result.suggestions[0].payee, "British Gas")

    def test_nested_page_structure(self):
        batch = self.processor.process_batch([("nested.json", statement_json(NATWEST_TOKENS, nested=True))])
        self.assertEqual(batch.stats.successful, 1)

    def test_bank_hint(self):
        tokens = ["15/10/23", "BRITISH GAS", "85.50", "1,234.50"]
        batch = self.processor.process_batch([("hsbc.json", statement_json(tokens))], bank_hint="HSBC")

        statement = batch.results[0].statement
        self.assertEqual(statement.bank, "HSBC")
        self.assertAlmostEqual(statement.transactions[0].amount, -85.50)

    def test_errors_are_classified_per_file(self):
        """One bad file never stops the batch."""
        files = [
            ("broken.json", b"{not json"),
            ("list.json", b"[1, 2, 3]"),
            ("nopages.json", b'{"Meta": {}}'),
            ("garbage.pdf", b"this is not a pdf document"),
            ("good.json", statement_json(NATWEST_TOKENS)),
        ]
        batch = self.processor.process_batch(files)

        self.assertEqual(batch.stats.total_files, 5)
        self.assertEqual(batch.stats.processed, 5)
        self.assertEqual(batch.stats.successful, 1)
        self.assertEqual(batch.stats.failed, 4)
        self.assertEqual(
            {e.file_name: e.error_type for e in batch.errors},
            {
                "broken.json": "JSON_PARSE_ERROR",
                "list.json": "INVALID_STATEMENT_STRUCTURE",
                "nopages.json": "INVALID_STATEMENT_STRUCTURE",
                "garbage.pdf": "DECODE_ERROR",
            },
        )
        self.assertEqual(batch.error_summary["INVALID_STATEMENT_STRUCTURE"], 2)

    def test_classify_timeout(self):
        error_type, message = StatementBatchProcessor._classify_error(StatementTimeoutError(5))
        self.assertEqual(error_type, "TIMEOUT")
        self.assertIn("5s", message)

        error_type, _ = StatementBatchProcessor._classify_error(KeyError("x"))
        self.assertEqual(error_type, "PROCESSING_ERROR")

    def test_progress_callback(self):
        calls = []
        files = [("a.json", statement_json(NATWEST_TOKENS)), ("b.json", b"{")]
        self.processor.process_batch(files, progress_callback=lambda i, n, msg: calls.append((i, n)))
        self.assertEqual(calls, [(1, 2), (2, 2)])

    def test_bulk_detection_is_not_truncated(self):
        tokens = []
        for day in ("15/08/2023", "15/09/2023", "15/10/2023"):
            for description in (
                "BRITISH GAS DD", "THAMES WATER DD", "COUNCIL TAX LBH", "NETFLIX.COM",
                "SPOTIFY UK", "SKY DIGITAL", "VIRGIN MEDIA",
            ):
                tokens += [day, description, "-20.00"]
        batch = self.processor.process_batch([("many.json", statement_json(tokens))])

        self.assertEqual(len(batch.results[0].suggestions), 7)


class TestLoadFiles(unittest.TestCase):
    """Test cases for loading statements from disk."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        self.processor = StatementBatchProcessor(default_rule_set())

    def path(self, name):
        return os.path.join(self.tmpdir.name, name)

    def test_directory_and_zip(self):
        with open(self.path("one.json"), "wb") as f:
            f.write(statement_json(NATWEST_TOKENS))
        with open(self.path("notes.txt"), "w") as f:
            f.write("ignored")
        with zipfile.ZipFile(self.path("archive.zip"), "w") as zf:
            zf.writestr("nested/two.json", statement_json(NATWEST_TOKENS))
            zf.writestr("nested/readme.md", "ignored")
            zf.writestr("three.pdf", b"%PDF-1.4")

        files = self.processor.load_files([self.tmpdir.name])
        names = sorted(name for name, _ in files)

        self.assertEqual(names, ["one.json", "three.pdf", "two.json"])

    def test_single_file(self):
        with open(self.path("one.json"), "wb") as f:
            f.write(b"{}")
        files = self.processor.load_files([self.path("one.json")])
        self.assertEqual(files, [("one.json", b"{}")])


class TestBatchResults(unittest.TestCase):
    """Test cases for merging and exporting results."""

    def setUp(self):
        self.processor = StatementBatchProcessor(default_rule_set())

    def test_merge_results(self):
        first = self.processor.process_batch([("a.json", statement_json(NATWEST_TOKENS))])
        second = self.processor.process_batch([("b.json", b"{"), ("c.json", statement_json(NATWEST_TOKENS))])
        merged = BatchResult.merge_results(first, second)

        self.assertEqual(merged.stats.total_files, 3)
        self.assertEqual(merged.stats.successful, 2)
        self.assertEqual(merged.stats.failed, 1)
        self.assertEqual(merged.stats.total_suggestions, 2)
        self.assertEqual(merged.stats.statements_by_bank, {"NatWest": 2})
        self.assertEqual(merged.error_summary, {"JSON_PARSE_ERROR": 1})
        self.assertEqual([r.file_name for r in merged.results], ["a.json", "c.json"])
        self.assertEqual(merged.stats.start_time, first.stats.start_time)
        self.assertEqual(merged.stats.end_time, second.stats.end_time)

    def test_empty_stats(self):
        stats = BatchStats()
        self.assertEqual(stats.success_rate, 0.0)
        self.assertEqual(stats.average_suggestions, 0.0)
        self.assertEqual(stats.processing_time, 0.0)

        stats = BatchStats(start_time=datetime(2024, 1, 1, 12, 0, 0), end_time=datetime(2024, 1, 1, 12, 0, 30))
        self.assertEqual(stats.processing_time, 30.0)

    def test_suggestions_to_dataframe(self):
        batch = self.processor.process_batch([("natwest.json", statement_json(NATWEST_TOKENS))])
        df = self.processor.suggestions_to_dataframe(batch.results)

        self.assertEqual(len(df), 1)
        row = df.iloc[0]
        self.assertEqual(row["File Name"], "natwest.json")
        self.assertEqual(row["Bank"], "NatWest")
        self.assertEqual(row["Payee"], "British Gas")
        self.assertEqual(row["Frequency"], "monthly")
        self.assertEqual(row["Entry Title"], "British Gas - Gas")
        self.assertEqual(row["Entry Type"], "utility")
        self.assertEqual(row["First Seen"], "2023-08-15")

    def test_errors_to_dataframe(self):
        errors = [ProcessingError(file_name="x.json", error_type="JSON_PARSE_ERROR", error_message="bad")]
        df = self.processor.errors_to_dataframe(errors)

        self.assertEqual(list(df.columns), ["File Name", "Error Type", "Error Message", "Timestamp"])
        self.assertEqual(df.iloc[0]["Error Type"], "JSON_PARSE_ERROR")


if __name__ == "__main__":
    unittest.main()

"""
Test suite for statement ingestion.

Covers token decoding, bank identification, bank-specific parsing profiles,
metadata extraction and row validity filtering.
"""

import unittest
from datetime import date
from urllib.parse import quote

from statement_engine.ingestion.bank_identifier import identify_bank
from statement_engine.ingestion.bank_profiles import profile_for_bank
from statement_engine.ingestion.document_loader import ingest_statement
from statement_engine.ingestion.statement_parser import StatementParser, parse_statement
from statement_engine.ingestion.token_decoder import decode_pages, decode_token


def make_document(*pages):
    """Build a pre-decoded page structure from plain token lists."""
    return {
        "Pages": [
            {
                "Texts": [
                    {"x": 1.0, "y": float(i), "R": [{"T": quote(token)}]}
                    for i, token in enumerate(tokens)
                ]
            }
            for tokens in pages
        ]
    }


NATWEST_TOKENS = [
    "NATWEST BANK PLC", "STATEMENT OF ACCOUNT",
    "15/10/2023", "BRITISH GAS DD", "-85.50", "1,234.50",
    "16/10/2023", "TESCO STORES", "-25.67", "1,208.83",
]


class TestTokenDecoder(unittest.TestCase):
    """Test cases for percent-decoding page content."""

    def test_decodes_percent_encoded_runs(self):
        """Encoded ampersands and spaces are decoded."""
        content = {"Pages": [{"Texts": [{"R": [{"T": "TESCO%20%26%20CO"}]}]}]}
        self.assertEqual(decode_pages(content), [["TESCO & CO"]])

    def test_drops_empty_tokens(self):
        content = make_document(["A", "", "   ", "B"])
        self.assertEqual(decode_pages(content), [["A", "B"]])

    def test_malformed_encoding_falls_back_to_raw(self):
        """Invalid UTF-8 escapes keep the raw token text."""
        self.assertEqual(decode_token("%E0%A4%A"), "%E0%A4%A")

    def test_empty_and_missing_pages(self):
        self.assertEqual(decode_pages({"Pages": []}), [])
        self.assertEqual(decode_pages({}), [])
        self.assertEqual(decode_pages(None), [])

    def test_ignores_malformed_runs(self):
        content = {"Pages": [{"Texts": [{"R": [{"T": None}, {"X": "y"}, {"T": "OK"}]}, "junk"]}, "junk"]}
        self.assertEqual(decode_pages(content), [["OK"], []])


class TestBankIdentifier(unittest.TestCase):
    """Test cases for bank identification."""

    def test_identifies_natwest(self):
        self.assertEqual(identify_bank([NATWEST_TOKENS]), "NatWest")

    def test_case_insensitive_markers(self):
        self.assertEqual(identify_bank([["Barclays Bank UK PLC"]]), "Barclays")
        self.assertEqual(identify_bank([["national westminster bank"]]), "NatWest")

    def test_additional_uk_banks(self):
        self.assertEqual(identify_bank([["Lloyds Bank plc"]]), "Lloyds")
        self.assertEqual(identify_bank([["first direct"]]), "First Direct")

    def test_first_token_wins(self):
        """Scan order is token order across pages."""
        pages = [["Statement"], ["HSBC UK"], ["BARCLAYS"]]
        self.assertEqual(identify_bank(pages), "HSBC")

    def test_unknown_when_no_match(self):
        self.assertEqual(identify_bank([]), "Unknown")
        self.assertEqual(identify_bank([["SOME BANK"]]), "Unknown")

    def test_only_scans_leading_tokens(self):
        tokens = ["filler"] * 60 + ["HSBC"]
        self.assertEqual(identify_bank([tokens]), "Unknown")
        self.assertEqual(identify_bank([tokens], scan_limit=100), "HSBC")


class TestStatementParser(unittest.TestCase):
    """Test cases for bank-aware transaction parsing."""

    def test_natwest_statement(self):
        """NatWest rows carry a signed amount and a running balance."""
        statement = ingest_statement(make_document(NATWEST_TOKENS))

        self.assertEqual(statement.bank, "NatWest")
        self.assertEqual(len(statement.transactions), 2)

        first, second = statement.transactions
        self.assertEqual(first.date, date(2023, 10, 15))
        self.assertEqual(first.description, "BRITISH GAS DD")
        self.assertAlmostEqual(first.amount, -85.50)
        self.assertAlmostEqual(first.balance, 1234.50)
        self.assertIn("BRITISH GAS", first.original_text)
        self.assertEqual(first.source_bank, "NatWest")

        self.assertEqual(second.date, date(2023, 10, 16))
        self.assertAlmostEqual(second.amount, -25.67)
        self.assertAlmostEqual(second.balance, 1208.83)

    def test_barclays_overdrawn_marker(self):
        """A separate O/D marker after the amount forces a debit."""
        tokens = ["BARCLAYS BANK UK PLC", "15 Oct 2023", "DD BRITISH GAS", "85.50", "O/D", "1,234.50"]
        statement = parse_statement([tokens])

        self.assertEqual(statement.bank, "Barclays")
        self.assertEqual(len(statement.transactions), 1)
        txn = statement.transactions[0]
        self.assertAlmostEqual(txn.amount, -85.50)
        self.assertEqual(txn.description, "DD BRITISH GAS")
        self.assertAlmostEqual(txn.balance, 1234.50)

    def test_hsbc_two_digit_year_and_dr_suffix(self):
        tokens = ["HSBC UK", "15/10/23", "BRITISH GAS DIRECT DEBIT", "85.50 DR", "1,234.50"]
        statement = parse_statement([tokens])

        self.assertEqual(len(statement.transactions), 1)
        txn = statement.transactions[0]
        self.assertEqual(txn.date, date(2023, 10, 15))
        self.assertAlmostEqual(txn.amount, -85.50)

    def test_hsbc_credit_marker_and_unmarked_debit(self):
        tokens = [
            "HSBC UK",
            "20 Oct 23", "SALARY ACME LTD", "2,000.00 CR", "3,234.50",
            "21 Oct 23", "NETFLIX.COM", "10.99", "3,223.51",
        ]
        statement = parse_statement([tokens])

        self.assertEqual(len(statement.transactions), 2)
        self.assertAlmostEqual(statement.transactions[0].amount, 2000.00)
        self.assertAlmostEqual(statement.transactions[1].amount, -10.99)
        self.assertAlmostEqual(statement.transactions[1].balance, 3223.51)

    def test_generic_keeps_literal_sign(self):
        """Unsigned credits stay positive on unknown banks."""
        tokens = ["15/10/2023", "SALARY CREDIT", "2,500.00", "16/10/2023", "REFUND", "45.50"]
        statement = parse_statement([tokens])

        self.assertEqual(statement.bank, "Unknown")
        amounts = [txn.amount for txn in statement.transactions]
        self.assertEqual(amounts, [2500.00, 45.50])
        self.assertEqual(statement.transactions[0].source_bank, "Generic")

    def test_generic_separate_sign_markers(self):
        """A DR or CR token after the amount applies on banks without a balance column."""
        tokens = [
            "15/10/2023", "BRITISH GAS", "85.50", "DR",
            "16/10/2023", "ACCOUNT INTEREST", "1.25", "CR",
            "17/10/2023", "OVERDRAFT FEE", "6.00", "O/D",
        ]
        statement = parse_statement([tokens])

        self.assertEqual(statement.bank, "Unknown")
        amounts = [txn.amount for txn in statement.transactions]
        self.assertEqual(amounts, [-85.50, 1.25, -6.00])
        self.assertEqual(statement.transactions[0].original_text, "15/10/2023 BRITISH GAS 85.50 DR")
        self.assertIsNone(statement.transactions[0].balance)

    def test_generic_ignores_trailing_amounts(self):
        tokens = ["15/10/2023", "BRITISH GAS", "-85.50", "1,200.00", "16/10/2023", "TESCO", "-12.00"]
        statement = parse_statement([tokens])

        amounts = [txn.amount for txn in statement.transactions]
        self.assertEqual(amounts, [-85.50, -12.00])
        self.assertIsNone(statement.transactions[0].balance)

    def test_generic_date_formats(self):
        tokens = ["01 OCT 2023", "TRANSACTION 1", "-10.00", "2023-10-02", "TRANSACTION 2", "-20.00"]
        statement = parse_statement([tokens])

        dates = [txn.date for txn in statement.transactions]
        self.assertEqual(dates, [date(2023, 10, 1), date(2023, 10, 2)])

    def test_invalid_rows_are_dropped(self):
        """Rows without a description or amount are discarded silently."""
        document = make_document([
            "15/10/2023", "VALID TRANSACTION", "-50.00",
            "INVALID DATE", "NO AMOUNT",
            "16/10/2023", "", "-25.00",
        ])
        statement = ingest_statement(document)

        self.assertEqual(len(statement.transactions), 1)
        self.assertEqual(statement.transactions[0].description, "VALID TRANSACTION")

    def test_no_dates_means_no_transactions(self):
        statement = parse_statement([["Welcome", "to", "your", "statement", "12.00"]])
        self.assertEqual(statement.transactions, ())

    def test_empty_document(self):
        statement = ingest_statement({"Pages": []})
        self.assertEqual(statement.transactions, ())
        self.assertEqual(statement.bank, "Unknown")

    def test_multi_token_description_spans_pages(self):
        statement = parse_statement([["15/10/2023", "CARD PAYMENT TO"], ["AMAZON", "-12.00"]])
        self.assertEqual(statement.transactions[0].description, "CARD PAYMENT TO AMAZON")

    def test_bank_hint_overrides_identification(self):
        tokens = ["BARCLAYS", "15/10/23", "BRITISH GAS", "85.50", "1,234.50"]
        statement = parse_statement([tokens], bank_hint="HSBC")

        self.assertEqual(statement.bank, "HSBC")
        self.assertAlmostEqual(statement.transactions[0].amount, -85.50)

    def test_parsing_is_idempotent(self):
        document = make_document(NATWEST_TOKENS)
        self.assertEqual(ingest_statement(document), ingest_statement(document))


class TestMetadataExtraction(unittest.TestCase):
    """Test cases for statement metadata."""

    def setUp(self):
        self.parser = StatementParser("Generic")

    def test_account_number_is_masked(self):
        metadata = self.parser.extract_metadata(["Account Number: 12345678"])
        self.assertEqual(metadata.account_number_masked, "****5678")

    def test_sort_code(self):
        metadata = self.parser.extract_metadata(["Sort Code: 12-34-56"])
        self.assertEqual(metadata.sort_code, "12-34-56")

        metadata = self.parser.extract_metadata(["Sort", "Code", "12 34 56"])
        self.assertEqual(metadata.sort_code, "12-34-56")

    def test_statement_period(self):
        metadata = self.parser.extract_metadata(["Statement Period: 01/09/2023 to 30/09/2023"])
        self.assertEqual(metadata.statement_period.start, date(2023, 9, 1))
        self.assertEqual(metadata.statement_period.end, date(2023, 9, 30))

    def test_statement_period_long_month_names(self):
        metadata = self.parser.extract_metadata(["Statement Period", "1 September 2023 to 30 September 2023"])
        self.assertEqual(metadata.statement_period.start, date(2023, 9, 1))

    def test_missing_fields_are_none(self):
        metadata = self.parser.extract_metadata(["nothing", "here"])
        self.assertIsNone(metadata.account_number_masked)
        self.assertIsNone(metadata.sort_code)
        self.assertIsNone(metadata.statement_period)

    def test_metadata_on_parsed_statement(self):
        tokens = ["NATWEST", "Account Number: 87654321", "Sort Code: 60-00-01"] + NATWEST_TOKENS[2:]
        statement = parse_statement([tokens])

        self.assertEqual(statement.account_number, "****4321")
        self.assertEqual(statement.sort_code, "60-00-01")
        self.assertEqual(len(statement.transactions), 2)


class TestBankProfiles(unittest.TestCase):
    """Test cases for profile hooks."""

    def test_two_digit_year_pivot(self):
        profile = profile_for_bank("HSBC")
        self.assertEqual(profile.parse_date("01/01/49").year, 2049)
        self.assertEqual(profile.parse_date("01/01/50").year, 1950)

    def test_amount_shapes(self):
        profile = profile_for_bank("Generic")
        self.assertIsNotNone(profile.parse_amount("1,234.50"))
        self.assertIsNotNone(profile.parse_amount("£12.00"))
        self.assertIsNone(profile.parse_amount("1234"))
        self.assertIsNone(profile.parse_amount("REF 12.00"))

    def test_hsbc_rejects_implausible_amounts(self):
        self.assertIsNone(profile_for_bank("HSBC").parse_amount("75,000.00"))
        self.assertIsNotNone(profile_for_bank("NatWest").parse_amount("75,000.00"))

    def test_unknown_banks_use_generic(self):
        self.assertEqual(profile_for_bank("Santander").name, "Generic")
        self.assertEqual(profile_for_bank(None).name, "Generic")


if __name__ == "__main__":
    unittest.main()

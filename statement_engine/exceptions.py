"""
Exceptions raised by the statement engine.

Only total ingestion failures are errors. Rejected rows, missing rule sets
and low-confidence clusters are normal outcomes and never raise.
"""


class StatementIngestionError(Exception):
    """Base class for failures that abort a whole statement ingestion."""


class StatementDecodeError(StatementIngestionError):
    """The document could not be turned into pages and tokens at all."""


class StatementTimeoutError(StatementIngestionError):
    """Decoding the document took longer than the configured bound."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Statement decoding timed out after {timeout:g}s")


class RuleSetLoadError(ValueError):
    """A rule-set document is structurally invalid."""

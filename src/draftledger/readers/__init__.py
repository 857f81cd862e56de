"""Statement readers turning uploaded files into movements."""

from draftledger.readers.base import (
    StatementHeader,
    StatementParseResult,
    StatementReader,
    parse_statement,
)
from draftledger.readers.csv_reader import CsvStatementReader

__all__ = [
    "StatementHeader",
    "StatementParseResult",
    "StatementReader",
    "parse_statement",
    "CsvStatementReader",
]

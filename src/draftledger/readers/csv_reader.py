"""Generic CSV statement reader."""

import csv
import io
import logging
from typing import Optional

from draftledger.domain.entities import StatementMovement
from draftledger.readers.base import StatementHeader, StatementParseResult, StatementReader
from draftledger.utils.amount_parser import parse_amount
from draftledger.utils.date_parser import parse_date

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {"Booking Date", "Amount"}
TRUE_VALUES = {"1", "true", "yes", "y", "x"}


class CsvStatementReader(StatementReader):
    """Reads statements exported as CSV with a header row.

    Expected columns: Booking Date, Amount and optionally Valuta Date,
    Currency, Subject, Counterparty, Posting Description, Quantity, Fee, Tax
    and Preview. The account is not part of the rows, so it is passed in.
    """

    def __init__(
        self,
        account_iban: Optional[str] = None,
        description: Optional[str] = None,
        decimal_comma: bool = False,
        dayfirst: bool = False,
    ):
        self.account_iban = account_iban
        self.description = description
        self.decimal_comma = decimal_comma
        self.dayfirst = dayfirst

    def parse(self, file_name: str, data: bytes) -> Optional[StatementParseResult]:
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError:
            logger.debug("%s is not UTF-8 text", file_name)
            return None
        if not text.strip():
            return None

        sample = text[:1024]
        try:
            delimiter = csv.Sniffer().sniff(sample, delimiters=",;\t").delimiter
        except csv.Error:
            delimiter = ","

        reader = csv.DictReader(io.StringIO(text), delimiter=delimiter)
        columns = reader.fieldnames
        if columns is None or not REQUIRED_COLUMNS.issubset(c.strip() for c in columns):
            return None

        movements = []
        for row_num, row in enumerate(reader, start=2):  # header is row 1
            values = {k.strip(): (v or "").strip() for k, v in row.items() if k is not None}
            try:
                movements.append(self._to_movement(values))
            except ValueError as e:
                logger.warning("%s row %d skipped: %s", file_name, row_num, e)

        header = StatementHeader(account_iban=self.account_iban, description=self.description)
        return StatementParseResult(header=header, movements=tuple(movements))

    def _amount(self, value: str):
        return parse_amount(value, decimal_comma=self.decimal_comma) if value else None

    def _to_movement(self, values: dict[str, str]) -> StatementMovement:
        if not values.get("Booking Date"):
            raise ValueError("Missing booking date")
        if not values.get("Amount"):
            raise ValueError("Missing amount")
        valuta = values.get("Valuta Date")
        return StatementMovement(
            booking_date=parse_date(values["Booking Date"], dayfirst=self.dayfirst),
            valuta_date=parse_date(valuta, dayfirst=self.dayfirst) if valuta else None,
            amount=parse_amount(values["Amount"], decimal_comma=self.decimal_comma),
            currency_code=(values.get("Currency") or "EUR").upper(),
            subject=values.get("Subject", ""),
            counterparty=values.get("Counterparty") or None,
            posting_description=values.get("Posting Description") or None,
            quantity=self._amount(values.get("Quantity", "")),
            fee_amount=self._amount(values.get("Fee", "")),
            tax_amount=self._amount(values.get("Tax", "")),
            is_preview=values.get("Preview", "").lower() in TRUE_VALUES,
        )

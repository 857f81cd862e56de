"""Tests for the CSV statement reader."""

from datetime import date
from decimal import Decimal

import pytest

from draftledger.domain.errors import ValidationError
from draftledger.readers import CsvStatementReader, StatementReader, parse_statement


def test_parse_full_row():
    data = (
        "Booking Date,Valuta Date,Amount,Currency,Subject,Counterparty,"
        "Posting Description,Quantity,Fee,Tax,Preview\n"
        "2024-03-01,2024-03-02,-1000.00,eur,Kauf MSCI World,,Wertpapierkauf,10,2.50,5.00,\n"
        "2024-03-05,,-45.90,EUR,Strom,Stadtwerke,,,,,x\n"
    ).encode()

    result = CsvStatementReader(account_iban="DE89370400440532013000", description="Depot").parse(
        "depot.csv", data
    )

    assert result.header.account_reference == "DE89370400440532013000"
    assert result.header.description == "Depot"
    trade, power = result.movements
    assert trade.booking_date == date(2024, 3, 1)
    assert trade.valuta_date == date(2024, 3, 2)
    assert trade.amount == Decimal("-1000.00")
    assert trade.currency_code == "EUR"
    assert trade.counterparty is None
    assert trade.posting_description == "Wertpapierkauf"
    assert (trade.quantity, trade.fee_amount, trade.tax_amount) == (
        Decimal("10"),
        Decimal("2.50"),
        Decimal("5.00"),
    )
    assert trade.is_preview is False
    assert power.counterparty == "Stadtwerke"
    assert power.valuta_date is None
    assert power.quantity is None
    assert power.is_preview is True


def test_parse_german_export():
    """Test semicolon separated rows with day-first dates and decimal commas."""
    data = (
        "\ufeffBooking Date;Amount;Subject;Counterparty\n"
        "15.01.2024;-1.234,56;Miete Januar;Hausverwaltung\n"
        "31.01.2024;2.500,00;Gehalt;Arbeitgeber\n"
    ).encode("utf-8")

    reader = CsvStatementReader(decimal_comma=True, dayfirst=True)
    result = reader.parse("umsaetze.csv", data)

    assert [(m.booking_date, m.amount) for m in result.movements] == [
        (date(2024, 1, 15), Decimal("-1234.56")),
        (date(2024, 1, 31), Decimal("2500.00")),
    ]


def test_bad_rows_are_skipped():
    data = b"Booking Date,Amount,Subject\n2024-01-01,-1.00,ok\n,2.00,no date\n2024-01-02,abc,bad\n"

    result = CsvStatementReader().parse("x.csv", data)

    assert [m.subject for m in result.movements] == ["ok"]


@pytest.mark.parametrize(
    "data",
    [
        b"",
        b"\xff\xfe\x00binary",
        b"Date,Value\n2024-01-01,1.00\n",
    ],
)
def test_unknown_files_are_not_parsed(data):
    assert CsvStatementReader().parse("x.csv", data) is None


class EmptyReader(StatementReader):
    def parse(self, file_name, data):
        return None


def test_parse_statement_uses_first_matching_reader():
    data = b"Booking Date,Amount\n2024-01-01,1.00\n"

    result = parse_statement([EmptyReader(), CsvStatementReader()], "x.csv", data)

    assert len(result.movements) == 1


def test_parse_statement_without_matching_reader():
    with pytest.raises(ValidationError):
        parse_statement([EmptyReader()], "x.csv", b"Booking Date,Amount\n")
    with pytest.raises(ValidationError):
        parse_statement([CsvStatementReader()], "x.csv", b"Booking Date,Amount\n")

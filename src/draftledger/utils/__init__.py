"""Utility functions for draftledger."""

from draftledger.utils.date_parser import parse_date
from draftledger.utils.amount_parser import parse_amount

__all__ = ["parse_date", "parse_amount"]

"""Utility functions for fintrack."""

from fintrack.utils.date_parser import parse_datetime, parse_import_datetime
from fintrack.utils.amount_parser import parse_amount, parse_import_amount
from fintrack.utils.account_resolver import match_account, resolve_account
from fintrack.utils.csv_reader import read_csv_file, read_csv_rows

__all__ = [
    "parse_datetime",
    "parse_import_datetime",
    "parse_amount",
    "parse_import_amount",
    "match_account",
    "resolve_account",
    "read_csv_file",
    "read_csv_rows",
]

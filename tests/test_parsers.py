"""Tests for amount, date and CSV parsing utilities."""

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from fintrack.domain.errors import ValidationError
from fintrack.utils.amount_parser import parse_amount, parse_import_amount
from fintrack.utils.csv_reader import read_csv_file, read_csv_rows
from fintrack.utils.date_parser import parse_datetime, parse_import_datetime


class TestParseAmount:
    """Tests for parse_amount."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("123.45", Decimal("123.45")),
            ("$1,234.56", Decimal("1234.56")),
            ("-50", Decimal("-50")),
            ("(20.00)", Decimal("-20.00")),
            (" 7 ", Decimal("7")),
        ],
    )
    def test_valid(self, raw, expected):
        assert parse_amount(raw) == expected

    @pytest.mark.parametrize("raw", ["", "   ", "abc", "1.2.3"])
    def test_invalid(self, raw):
        with pytest.raises(ValueError):
            parse_amount(raw)


class TestParseImportAmount:
    """Tests for parse_import_amount."""

    def test_strips_everything_but_numbers(self):
        assert parse_import_amount("SLL 1,250.00 CR") == Decimal("1250.00")

    def test_keeps_sign(self):
        assert parse_import_amount("-40") == Decimal("-40")

    @pytest.mark.parametrize("raw", ["", "n/a", None, "+-"])
    def test_invalid(self, raw):
        with pytest.raises(ValueError):
            parse_import_amount(raw)


class TestParseDatetime:
    """Tests for date parsing."""

    def test_iso_date(self):
        assert parse_datetime("2024-01-15") == datetime(2024, 1, 15)

    def test_date_and_time(self):
        assert parse_datetime("2024-01-15 14:30") == datetime(2024, 1, 15, 14, 30)

    def test_relative(self):
        today = date.today()
        assert parse_datetime("today") == datetime.combine(today, datetime.min.time())
        assert parse_datetime("Yesterday").date() == today - timedelta(days=1)

    @pytest.mark.parametrize("raw", ["", "banana", "2024-13-45"])
    def test_invalid(self, raw):
        with pytest.raises(ValueError):
            parse_datetime(raw)

    def test_import_rejects_relative_words(self):
        with pytest.raises(ValueError):
            parse_import_datetime("today")

    def test_import_long_form(self):
        assert parse_import_datetime("March 1, 2024") == datetime(2024, 3, 1)


class TestReadCsv:
    """Tests for the raw-row source."""

    def test_comma_separated(self):
        headers, rows = read_csv_rows("Date,Amount,Description\n2024-01-01,5,Tea\n")

        assert headers == ["Date", "Amount", "Description"]
        assert rows == [{"Date": "2024-01-01", "Amount": "5", "Description": "Tea"}]

    def test_semicolon_separated_with_bom(self):
        headers, rows = read_csv_rows("\ufeffDate;Amount;Description\n2024-01-01;5,50;Tea\n")

        assert headers == ["Date", "Amount", "Description"]
        assert rows[0]["Amount"] == "5,50"

    def test_short_rows_fill_blanks(self):
        _, rows = read_csv_rows("Date,Amount,Description\n2024-01-01,5\n")

        assert rows[0]["Description"] == ""

    def test_no_header(self):
        with pytest.raises(ValidationError):
            read_csv_rows("")

    def test_file(self, tmp_path):
        path = tmp_path / "export.csv"
        path.write_text("Date,Amount,Description\n2024-01-01,5,Tea\n", encoding="utf-8")

        headers, rows, size = read_csv_file(str(path))

        assert headers == ["Date", "Amount", "Description"]
        assert len(rows) == 1
        assert size == path.stat().st_size

    def test_file_extension(self, tmp_path):
        path = tmp_path / "export.txt"
        path.write_text("Date,Amount,Description\n", encoding="utf-8")

        with pytest.raises(ValidationError, match="Only CSV"):
            read_csv_file(str(path))

    def test_file_size_limit(self, tmp_path):
        path = tmp_path / "export.csv"
        path.write_text("Date,Amount,Description\n" + "2024-01-01,5,Tea\n" * 10, encoding="utf-8")

        with pytest.raises(ValidationError, match="limit"):
            read_csv_file(str(path), max_bytes=20)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_csv_file(str(tmp_path / "nope.csv"))

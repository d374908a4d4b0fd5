"""Date parsing utilities."""

from datetime import date, datetime, time, timedelta
from dateutil import parser as date_parser


def parse_datetime(date_str: str) -> datetime:
    """Parse a date or date/time string into a datetime.

    Supports absolute values understood by dateutil ("2024-01-15",
    "January 15, 2024", "15/01/2024 14:30") and the relative words
    "today", "yesterday" and "tomorrow", which resolve to midnight.

    Args:
        date_str: Date string in various formats

    Returns:
        Naive datetime

    Raises:
        ValueError: If date string cannot be parsed
    """
    if date_str is None or not date_str.strip():
        raise ValueError("Empty date string")

    normalized = date_str.strip().lower()
    today = date.today()
    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if normalized in relative_dates:
        return datetime.combine(relative_dates[normalized], time())

    try:
        return date_parser.parse(date_str.strip())
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str.strip()}': {e}") from e


def parse_import_datetime(raw: str) -> datetime:
    """Parse a date cell from an imported row.

    Relative words such as "today" are not accepted.
    """
    if raw is None or not raw.strip():
        raise ValueError("Empty date string")
    try:
        return date_parser.parse(raw.strip())
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{raw.strip()}': {e}") from e

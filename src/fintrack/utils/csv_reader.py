"""CSV reading utilities: the raw-row source for imports."""

import csv
import io
from pathlib import Path
from typing import Optional

from fintrack.domain.errors import ValidationError

SNIFF_BYTES = 1024


def read_csv_rows(text: str) -> tuple[list[str], list[dict[str, str]]]:
    """Tokenize CSV text into header names and string-keyed rows.

    The delimiter is sniffed from the first kilobyte, falling back to a
    comma. Missing cells become empty strings; extra cells are dropped.

    Returns:
        (headers, rows) with rows in file order

    Raises:
        ValidationError: If the text has no header row
    """
    text = text.lstrip("\ufeff")
    sample = text[:SNIFF_BYTES]
    try:
        delimiter = csv.Sniffer().sniff(sample, delimiters=",;\t|").delimiter
    except csv.Error:
        delimiter = ","

    reader = csv.DictReader(io.StringIO(text), delimiter=delimiter)
    headers = [h.strip() for h in (reader.fieldnames or []) if h is not None]
    if not headers:
        raise ValidationError("CSV file has no columns")

    rows = []
    for record in reader:
        rows.append(
            {
                (key or "").strip(): (value if isinstance(value, str) else "")
                for key, value in record.items()
                if key is not None
            }
        )
    return headers, rows


def read_csv_file(
    csv_file_path: str, max_bytes: Optional[int] = None
) -> tuple[list[str], list[dict[str, str]], int]:
    """Read a CSV file from disk.

    Returns:
        (headers, rows, file_size)

    Raises:
        FileNotFoundError: If the file does not exist
        ValidationError: If the file is not a CSV file or is too large
    """
    csv_path = Path(csv_file_path)
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_file_path}")
    if csv_path.suffix.lower() != ".csv":
        raise ValidationError("Only CSV files are allowed")

    file_size = csv_path.stat().st_size
    if max_bytes is not None and file_size > max_bytes:
        raise ValidationError(
            f"CSV file is {file_size} bytes; the limit is {max_bytes} bytes"
        )

    text = csv_path.read_text(encoding="utf-8-sig")
    headers, rows = read_csv_rows(text)
    return headers, rows, file_size

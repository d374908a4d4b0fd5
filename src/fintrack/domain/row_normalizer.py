"""Row normalization for CSV imports.

Turns one raw CSV row plus a column mapping into a candidate transaction
or a list of validation errors. Nothing here touches storage.
"""

import hashlib
from dataclasses import dataclass, field, fields as dataclass_fields
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from fintrack.domain.entities import TransactionType
from fintrack.domain.errors import ValidationError
from fintrack.utils.amount_parser import parse_import_amount
from fintrack.utils.date_parser import parse_import_datetime

REQUIRED_FIELDS = ("date", "amount", "description")
OPTIONAL_FIELDS = ("type", "category", "account", "reference")
LOGICAL_FIELDS = REQUIRED_FIELDS + OPTIONAL_FIELDS

TYPE_SYNONYMS = {
    "income": TransactionType.INCOME,
    "credit": TransactionType.INCOME,
    "deposit": TransactionType.INCOME,
    "expense": TransactionType.EXPENSE,
    "debit": TransactionType.EXPENSE,
    "withdrawal": TransactionType.EXPENSE,
}


@dataclass(frozen=True)
class ColumnMapping:
    """Binds logical import fields to source column names."""

    date: str
    amount: str
    description: str
    type: Optional[str] = None
    category: Optional[str] = None
    account: Optional[str] = None
    reference: Optional[str] = None

    @classmethod
    def from_dict(cls, mapping: dict[str, Any]) -> "ColumnMapping":
        """Build a mapping from a plain dict, validating its shape.

        Raises:
            ValidationError: If a mandatory field is missing or a key is unknown
        """
        if not isinstance(mapping, dict):
            raise ValidationError("Column mapping must be an object")

        unknown = set(mapping) - set(LOGICAL_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown mapping fields: {', '.join(sorted(unknown))}")

        cleaned: dict[str, Optional[str]] = {}
        for name in LOGICAL_FIELDS:
            column = mapping.get(name)
            if column is not None and not isinstance(column, str):
                raise ValidationError(f"Mapping for '{name}' must be a column name")
            column = column.strip() if column else None
            cleaned[name] = column or None

        missing = [name for name in REQUIRED_FIELDS if cleaned[name] is None]
        if missing:
            raise ValidationError(f"Column mapping is missing required fields: {', '.join(missing)}")
        return cls(**cleaned)

    def to_dict(self) -> dict[str, str]:
        """Mapped fields only, suitable for JSON storage."""
        return {
            f.name: getattr(self, f.name)
            for f in dataclass_fields(self)
            if getattr(self, f.name) is not None
        }

    def missing_columns(self, headers: list[str]) -> list[str]:
        """Mapped source columns that are not among the given headers."""
        available = set(headers)
        return sorted({column for column in self.to_dict().values() if column not in available})


@dataclass(frozen=True)
class CandidateTransaction:
    """Validated, typed values ready for the transaction service."""

    occurred_at: datetime
    amount: Decimal
    type: str
    description: str
    account: Optional[str] = None
    category: Optional[str] = None
    reference: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        """JSON-safe representation recorded on the import row."""
        return {
            "tx_date": self.occurred_at.isoformat(),
            "amount": str(self.amount),
            "type": self.type,
            "description": self.description,
            "account": self.account,
            "category": self.category,
            "reference": self.reference,
        }


@dataclass(frozen=True)
class NormalizedRow:
    """Result of normalizing one raw row."""

    fields: dict[str, str]
    idempotency_key: str
    candidate: Optional[CandidateTransaction] = None
    errors: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return self.candidate is not None


def extract_fields(row: dict[str, Any], mapping: ColumnMapping) -> dict[str, str]:
    """Resolve every logical field to its raw string value.

    Unmapped fields and missing or null cells become empty strings.
    """
    resolved = {}
    for name in LOGICAL_FIELDS:
        column = getattr(mapping, name)
        value = row.get(column) if column is not None else None
        resolved[name] = "" if value is None else str(value)
    return resolved


def derive_idempotency_key(fields: dict[str, str]) -> str:
    """Content fingerprint of a row's raw date, amount, description and reference.

    Two rows share a key exactly when those four raw strings are identical.
    """
    material = "|".join(
        (fields["date"], fields["amount"], fields["description"], fields.get("reference") or "")
    )
    return hashlib.md5(material.encode("utf-8"), usedforsecurity=False).hexdigest()


def normalize_type(raw: str) -> str:
    """Map a type cell to income/expense; blank means expense.

    Unrecognized values are returned lower-cased for the transaction
    service to reject.
    """
    value = raw.strip().casefold()
    if not value:
        return TransactionType.EXPENSE.value
    mapped = TYPE_SYNONYMS.get(value)
    return mapped.value if mapped is not None else value


def normalize_row(row: dict[str, Any], mapping: ColumnMapping) -> NormalizedRow:
    """Validate one raw row against a mapping.

    A row is valid when its amount parses to a finite number, its
    description is non-empty and its date parses. The amount keeps its sign;
    a non-positive amount is rejected when the transaction is created.
    """
    raw = extract_fields(row, mapping)
    key = derive_idempotency_key(raw)
    errors = []

    amount = None
    try:
        amount = parse_import_amount(raw["amount"])
    except ValueError as e:
        errors.append(f"Invalid amount: {e}")

    occurred_at = None
    try:
        occurred_at = parse_import_datetime(raw["date"])
    except ValueError as e:
        errors.append(f"Invalid date: {e}")

    description = raw["description"].strip()
    if not description:
        errors.append("Missing description")

    if errors:
        return NormalizedRow(fields=raw, idempotency_key=key, errors=errors)

    candidate = CandidateTransaction(
        occurred_at=occurred_at,
        amount=amount,
        type=normalize_type(raw["type"]),
        description=description,
        account=raw["account"].strip() or None,
        category=raw["category"].strip() or None,
        reference=raw["reference"].strip() or None,
    )
    return NormalizedRow(fields=raw, idempotency_key=key, candidate=candidate)

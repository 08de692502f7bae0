"""Field validation for parsed upload rows.

Validation runs an ordered sequence of checks over the raw fields and
stops at the first failure, so each rejected row maps to one category.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Callable, Sequence

from core.constants import MAX_AGE, MIN_AGE, MIN_FIELD_COUNT
from core.types import IntakeRecord, ValidationFailure, ValidationOutcome, ValidRecord

_EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
_LEADING_INTEGER_PATTERN = re.compile(r"[+-]?\d+")

FieldCheck = Callable[[Sequence[str]], ValidationFailure | None]


def validate_fields(
    fields: Sequence[str],
    file_id: str,
    processed_at: datetime | None = None,
) -> ValidationOutcome:
    """Validate raw fields and build a record.

    Args:
        fields: Parsed fields in ``name, email, age, department`` order.
            Extra trailing fields are ignored.
        file_id: Identifier of the upload the row belongs to.
        processed_at: Optional timestamp override, defaults to now (UTC).

    Returns:
        ``ValidRecord`` on success, else the first ``ValidationFailure``.
    """
    for check in _CHECKS:
        failure = check(fields)
        if failure is not None:
            return failure
    return ValidRecord(record=_build_record(fields, file_id, processed_at))


def _check_field_count(fields: Sequence[str]) -> ValidationFailure | None:
    if len(fields) < MIN_FIELD_COUNT:
        return ValidationFailure(
            category="malformed_line",
            message="Insufficient fields (need at least name and email)",
        )
    return None


def _check_name(fields: Sequence[str]) -> ValidationFailure | None:
    if not fields[0].strip():
        return ValidationFailure(category="missing_fields", message="Name is required")
    return None


def _check_email_present(fields: Sequence[str]) -> ValidationFailure | None:
    if not fields[1].strip():
        return ValidationFailure(category="missing_fields", message="Email is required")
    return None


def _check_email_format(fields: Sequence[str]) -> ValidationFailure | None:
    email = fields[1]
    if _EMAIL_PATTERN.fullmatch(email.strip()) is None:
        return ValidationFailure(category="invalid_email", message=f"Invalid email format: {email}")
    return None


def _check_age(fields: Sequence[str]) -> ValidationFailure | None:
    raw_age = _optional_field(fields, 2)
    if raw_age is None:
        return None
    age = _parse_age(raw_age)
    if age is None:
        return ValidationFailure(
            category="invalid_age",
            message=f'Invalid age format: "{fields[2]}" is not a number',
        )
    if age < MIN_AGE or age > MAX_AGE:
        return ValidationFailure(
            category="invalid_age",
            message=f"Invalid age value: {age} (must be {MIN_AGE}-{MAX_AGE})",
        )
    return None


_CHECKS: tuple[FieldCheck, ...] = (
    _check_field_count,
    _check_name,
    _check_email_present,
    _check_email_format,
    _check_age,
)


def _build_record(
    fields: Sequence[str],
    file_id: str,
    processed_at: datetime | None,
) -> IntakeRecord:
    """Build a persisted record from fields that passed every check."""
    raw_age = _optional_field(fields, 2)
    return IntakeRecord(
        name=fields[0].strip(),
        email=fields[1].strip().lower(),
        age=_parse_age(raw_age) if raw_age is not None else None,
        department=_optional_field(fields, 3),
        uploaded_file_id=file_id,
        processed_at=processed_at or datetime.now(timezone.utc),
    )


def _optional_field(fields: Sequence[str], index: int) -> str | None:
    """Return the trimmed field at index, or None when absent or blank."""
    if index >= len(fields):
        return None
    value = fields[index].strip()
    return value or None


def _parse_age(raw_age: str) -> int | None:
    """Parse the leading integer of a trimmed age, so ``"25 years"`` is 25."""
    match = _LEADING_INTEGER_PATTERN.match(raw_age)
    if match is None:
        return None
    return int(match.group())

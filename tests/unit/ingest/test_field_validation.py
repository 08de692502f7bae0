"""Unit tests for row field validation."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from core.types import ValidationFailure, ValidRecord
from ingest.field_validation import validate_fields

_PROCESSED_AT = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def _validate(*fields: str) -> ValidRecord | ValidationFailure:
    return validate_fields(list(fields), "file-1", processed_at=_PROCESSED_AT)


@pytest.mark.parametrize("raw_age", ["0", "150", " 42 "])
def test_validate_accepts_ages_within_bounds(raw_age: str) -> None:
    """Ages in the inclusive [0, 150] range should validate."""
    outcome = _validate("Ann", "ann@example.com", raw_age)

    assert isinstance(outcome, ValidRecord) and outcome.record.age == int(raw_age)


@pytest.mark.parametrize("raw_age", ["151", "-1", "abc", "x12", "-", "200 years"])
def test_validate_rejects_invalid_ages(raw_age: str) -> None:
    """Out-of-range ages or ages without a leading integer should fail as invalid_age."""
    outcome = _validate("Ann", "ann@example.com", raw_age)

    assert isinstance(outcome, ValidationFailure) and outcome.category == "invalid_age"


@pytest.mark.parametrize(
    ("raw_age", "expected_age"),
    [("12abc", 12), ("3.5", 3), ("25 years", 25), (" +40 ", 40)],
)
def test_validate_uses_leading_integer_of_age(raw_age: str, expected_age: int) -> None:
    """Ages should be read from their leading integer and ignore trailing text."""
    outcome = _validate("Ann", "ann@example.com", raw_age)

    assert isinstance(outcome, ValidRecord) and outcome.record.age == expected_age


@pytest.mark.parametrize("raw_age", ["", "   "])
def test_validate_treats_blank_age_as_absent(raw_age: str) -> None:
    """A present but blank age should validate with a null age."""
    outcome = _validate("Ann", "ann@example.com", raw_age)

    assert isinstance(outcome, ValidRecord) and outcome.record.age is None


@pytest.mark.parametrize("email", ["a@b", "@b.c", "a b@c.d", "no-at-sign"])
def test_validate_rejects_malformed_emails(email: str) -> None:
    """Emails without local part, domain dot, or with spaces should fail."""
    outcome = _validate("Ann", email)

    assert isinstance(outcome, ValidationFailure) and outcome.category == "invalid_email"


def test_validate_accepts_minimal_email() -> None:
    """The shortest local@domain.tld shape should validate."""
    assert isinstance(_validate("Ann", "a@b.c"), ValidRecord)


def test_validate_rejects_single_field_as_malformed() -> None:
    """Rows with fewer than two fields should be malformed."""
    outcome = _validate("only-one-field")

    assert isinstance(outcome, ValidationFailure) and outcome.category == "malformed_line"


@pytest.mark.parametrize(
    ("fields", "message"),
    [
        (("", "ann@example.com"), "Name is required"),
        (("   ", "ann@example.com"), "Name is required"),
        (("Ann", ""), "Email is required"),
    ],
)
def test_validate_reports_missing_required_fields(fields: tuple[str, ...], message: str) -> None:
    """Blank name or email should fail as missing_fields."""
    outcome = _validate(*fields)

    assert outcome == ValidationFailure(category="missing_fields", message=message)


def test_validate_first_failing_check_wins() -> None:
    """A row with several problems should report only the earliest check."""
    outcome = _validate("", "not-an-email", "999")

    assert isinstance(outcome, ValidationFailure) and outcome.category == "missing_fields"


def test_validate_builds_normalized_record() -> None:
    """Valid rows should be trimmed, lower-cased, and stamped."""
    outcome = _validate("  Ann Lee ", " Ann.Lee@Example.COM ", "30", " Sales ", "extra")

    assert isinstance(outcome, ValidRecord)
    record = outcome.record
    assert (
        record.name == "Ann Lee"
        and record.email == "ann.lee@example.com"
        and record.department == "Sales"
        and record.uploaded_file_id == "file-1"
        and record.processed_at == _PROCESSED_AT
    )


def test_validate_keeps_unicode_email_parts() -> None:
    """Email validation should stay permissive of non-ASCII characters."""
    outcome = _validate("Sofía", "sofía@correo.es")

    assert isinstance(outcome, ValidRecord) and outcome.record.department is None


@pytest.mark.parametrize("department", ["", "   "])
def test_validate_treats_blank_department_as_absent(department: str) -> None:
    """Empty or whitespace-only departments should be stored as null."""
    outcome = _validate("Ann", "ann@example.com", "30", department)

    assert isinstance(outcome, ValidRecord) and outcome.record.department is None

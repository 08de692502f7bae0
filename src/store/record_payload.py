"""Shared JSON serialization for persisted intake records.

This module centralizes record payload conversion.
It is reused by the JSONL and Lance record store backends.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from core.types import IntakeRecord


def record_to_payload(record: IntakeRecord) -> dict[str, object]:
    """Serialize a record into a JSON-safe payload.

    Args:
        record: Validated record.

    Returns:
        Dictionary payload for JSON encoding.
    """
    return {
        "name": record.name,
        "email": record.email,
        "age": record.age,
        "department": record.department,
        "uploaded_file_id": record.uploaded_file_id,
        "processed_at": record.processed_at.isoformat(),
    }


def record_from_payload(payload: dict[str, Any]) -> IntakeRecord:
    """Deserialize a JSON payload into a record.

    Args:
        payload: Serialized record payload.

    Returns:
        Parsed record.
    """
    raw_age = payload.get("age")
    raw_department = payload.get("department")
    raw_processed_at = payload["processed_at"]
    processed_at = (
        raw_processed_at
        if isinstance(raw_processed_at, datetime)
        else datetime.fromisoformat(str(raw_processed_at))
    )
    return IntakeRecord(
        name=str(payload["name"]),
        email=str(payload["email"]),
        age=int(raw_age) if raw_age is not None else None,
        department=str(raw_department) if raw_department is not None else None,
        uploaded_file_id=str(payload["uploaded_file_id"]),
        processed_at=processed_at,
    )


def parse_payload_line(line: str, line_number: int) -> dict[str, Any]:
    """Parse and validate one JSONL payload row.

    Args:
        line: Raw JSONL line.
        line_number: One-based line number.

    Returns:
        Parsed payload dictionary.

    Raises:
        ValueError: If JSON row is invalid.
    """
    try:
        payload = json.loads(line)
    except json.JSONDecodeError as error:
        raise ValueError(f"Invalid JSON at line {line_number}: {error.msg}") from error
    if not isinstance(payload, dict):
        raise ValueError(f"Invalid payload at line {line_number}: expected JSON object")
    return payload

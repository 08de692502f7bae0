"""Record persistence backends.

This module appends validated records to JSONL files per upload, or to an
Apache Lance dataset when the lance backend is configured.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Sequence

from core.config import IntakeConfig
from core.constants import LANCE_DIR_NAME, RECORDS_DIR_NAME, RECORDS_FILE_SUFFIX
from core.errors import IntakeStoreError
from core.types import IntakeRecord
from store.record_payload import parse_payload_line, record_from_payload, record_to_payload


class JsonlRecordStore:
    """Append-only JSONL record store, one file per upload."""

    def __init__(self, data_root: Path) -> None:
        self._records_root = data_root.expanduser().resolve() / RECORDS_DIR_NAME
        self._records_root.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def insert_many(self, records: Sequence[IntakeRecord]) -> int:
        """Append records in one write per upload file.

        Returns:
            Number of records written.

        Raises:
            IntakeStoreError: If the write fails.
        """
        grouped: dict[str, list[str]] = {}
        for record in records:
            line = json.dumps(record_to_payload(record), sort_keys=True)
            grouped.setdefault(record.uploaded_file_id, []).append(line)
        with self._lock:
            for file_id, lines in grouped.items():
                records_path = self._records_path(file_id)
                try:
                    with records_path.open("a", encoding="utf-8") as handle:
                        handle.write("\n".join(lines) + "\n")
                except OSError as error:
                    raise IntakeStoreError(
                        f"Failed to persist {len(lines)} records at {records_path}: {error}. "
                        "Check write permissions and available disk space."
                    ) from error
        return len(records)

    def read_records(self, file_id: str) -> list[IntakeRecord]:
        """Load persisted records of one upload in insertion order.

        Raises:
            IntakeStoreError: If a stored row is invalid.
        """
        records_path = self._records_path(file_id)
        if not records_path.exists():
            return []
        parsed_records: list[IntakeRecord] = []
        for line_number, line in enumerate(
            records_path.read_text(encoding="utf-8").splitlines(), 1
        ):
            if not line.strip():
                continue
            try:
                payload = parse_payload_line(line, line_number)
            except ValueError as error:
                raise IntakeStoreError(f"Failed to load records at {records_path}: {error}.") from error
            parsed_records.append(record_from_payload(payload))
        return parsed_records

    def _records_path(self, file_id: str) -> Path:
        if not file_id or "/" in file_id or file_id in {".", ".."}:
            raise IntakeStoreError(f"Invalid upload file id {file_id!r}.")
        return self._records_root / f"{file_id}{RECORDS_FILE_SUFFIX}"


class LanceRecordStore:
    """Apache Lance record store holding every upload in one dataset."""

    def __init__(self, data_root: Path) -> None:
        records_root = data_root.expanduser().resolve() / RECORDS_DIR_NAME
        records_root.mkdir(parents=True, exist_ok=True)
        self._dataset_path = records_root / LANCE_DIR_NAME
        self._lock = threading.Lock()

    def insert_many(self, records: Sequence[IntakeRecord]) -> int:
        """Append records to the Lance dataset as one fragment.

        Returns:
            Number of records written.

        Raises:
            IntakeStoreError: If the Lance write fails.
        """
        import lance
        import pyarrow as pa

        rows = [record_to_row(record) for record in records]
        table = pa.Table.from_pylist(rows, schema=_record_schema())
        with self._lock:
            mode = "append" if self._dataset_path.exists() else "create"
            try:
                lance.write_dataset(table, str(self._dataset_path), mode=mode)
            except Exception as error:
                raise IntakeStoreError(
                    f"Failed to write Lance dataset at {self._dataset_path}: {error}. "
                    "Validate lance/pyarrow compatibility and retry the job."
                ) from error
        return len(rows)

    def read_records(self, file_id: str) -> list[IntakeRecord]:
        """Load persisted records of one upload in insertion order."""
        import lance

        if not self._dataset_path.exists():
            return []
        rows = lance.dataset(str(self._dataset_path)).to_table().to_pylist()
        return [record_from_payload(row) for row in rows if row["uploaded_file_id"] == file_id]


def record_to_row(record: IntakeRecord) -> dict[str, Any]:
    """Convert a record into a columnar row keeping native timestamps."""
    row: dict[str, Any] = record_to_payload(record)
    row["processed_at"] = record.processed_at
    return row


def _record_schema() -> Any:
    """Build the fixed Arrow schema so null-only batches keep column types."""
    import pyarrow as pa

    return pa.schema(
        [
            pa.field("name", pa.string(), nullable=False),
            pa.field("email", pa.string(), nullable=False),
            pa.field("age", pa.int64()),
            pa.field("department", pa.string()),
            pa.field("uploaded_file_id", pa.string(), nullable=False),
            pa.field("processed_at", pa.timestamp("us", tz="UTC"), nullable=False),
        ]
    )


def create_record_store(config: IntakeConfig) -> JsonlRecordStore | LanceRecordStore:
    """Build the configured record store backend."""
    if config.record_backend == "lance":
        return LanceRecordStore(config.data_root)
    return JsonlRecordStore(config.data_root)

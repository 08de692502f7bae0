"""In-memory collaborator fakes shared by ingest and dispatch tests."""

from __future__ import annotations

import io
from typing import Sequence

from core.errors import IntakeSourceNotFoundError, IntakeStoreError
from core.types import IntakeRecord


class InMemoryRecordSink:
    """Record sink keeping every bulk insert as one batch."""

    def __init__(self) -> None:
        self.batches: list[list[IntakeRecord]] = []

    def insert_many(self, records: Sequence[IntakeRecord]) -> int:
        self.batches.append(list(records))
        return len(records)

    @property
    def records(self) -> list[IntakeRecord]:
        return [record for batch in self.batches for record in batch]


class FailingRecordSink(InMemoryRecordSink):
    """Record sink that fails once a number of batches succeeded."""

    def __init__(self, successful_batches: int) -> None:
        super().__init__()
        self._successful_batches = successful_batches

    def insert_many(self, records: Sequence[IntakeRecord]) -> int:
        if len(self.batches) >= self._successful_batches:
            raise IntakeStoreError("bulk insert rejected")
        return super().insert_many(records)


class DictObjectSource:
    """Object source serving byte payloads from a dictionary."""

    def __init__(self, objects: dict[str, bytes]) -> None:
        self._objects = objects
        self.requested: list[str] = []

    def get(self, name: str) -> io.BytesIO:
        self.requested.append(name)
        if name not in self._objects:
            raise IntakeSourceNotFoundError(f"Source object '{name}' not found.")
        return io.BytesIO(self._objects[name])


def csv_bytes(*lines: str) -> bytes:
    """Join lines into a newline-terminated UTF-8 payload."""
    return ("\n".join(lines) + "\n").encode("utf-8")

"""Bounded record batching for bulk inserts.

This module buffers validated records and hands them to the record
store in fixed-size bulk inserts.
"""

from __future__ import annotations

from typing import Callable, Protocol, Sequence

from core.constants import DEFAULT_BATCH_SIZE
from core.logging_config import get_logger
from core.types import IntakeRecord

_LOGGER = get_logger(__name__)


class RecordSink(Protocol):
    """Bulk persistence operation required from the record store."""

    def insert_many(self, records: Sequence[IntakeRecord]) -> int:
        """Persist all records or raise, returning the number inserted."""


class BatchWriter:
    """Accumulate records and flush them in bulk.

    A failing ``insert_many`` propagates to the caller unchanged. Records
    from batches flushed before the failure stay persisted.
    """

    def __init__(
        self,
        sink: RecordSink,
        batch_size: int = DEFAULT_BATCH_SIZE,
        on_flush: Callable[[int], None] | None = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        self._sink = sink
        self._batch_size = batch_size
        self._on_flush = on_flush
        self._buffer: list[IntakeRecord] = []
        self._inserted_count = 0

    @property
    def inserted_count(self) -> int:
        """Number of records persisted by completed flushes."""
        return self._inserted_count

    @property
    def pending_count(self) -> int:
        """Number of buffered records not yet flushed."""
        return len(self._buffer)

    def add(self, record: IntakeRecord) -> None:
        """Buffer one record, flushing when the batch is full."""
        self._buffer.append(record)
        if len(self._buffer) >= self._batch_size:
            self.flush()

    def flush(self) -> int:
        """Persist buffered records in one bulk insert.

        Returns:
            Number of records flushed by this call.
        """
        if not self._buffer:
            return 0
        batch = list(self._buffer)
        inserted = self._sink.insert_many(batch)
        self._buffer.clear()
        self._inserted_count += inserted
        _LOGGER.info("batch_flushed", batch_size=inserted, inserted_total=self._inserted_count)
        if self._on_flush is not None:
            self._on_flush(self._inserted_count)
        return inserted

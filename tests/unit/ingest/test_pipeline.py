"""Unit tests for the streaming ingest pipeline."""

from __future__ import annotations

import io

import pytest

from core.errors import IntakeIngestError, IntakeStoreError
from ingest import pipeline
from ingest.pipeline import compute_success_rate, ingest_stream
from tests.fixture_paths import read_fixture_bytes
from tests.store_fakes import FailingRecordSink, InMemoryRecordSink, csv_bytes


def test_ingest_stream_summarizes_messy_upload() -> None:
    """Messy fixture should produce exact counts per category."""
    sink = InMemoryRecordSink()

    result = ingest_stream(io.BytesIO(read_fixture_bytes("messy_upload.csv")), "file-1", sink)

    assert (
        result.total_lines == 23
        and result.successful_inserts == 14
        and result.failed_lines == 9
        and result.success_rate == 61
        and dict(result.error_categories)
        == {
            "missing_fields": 2,
            "invalid_email": 3,
            "invalid_age": 3,
            "malformed_line": 1,
            "other": 0,
        }
    )


def test_ingest_stream_counts_balance() -> None:
    """Successful and failed lines should always add up to total lines."""
    result = ingest_stream(
        io.BytesIO(read_fixture_bytes("messy_upload.csv")), "file-1", InMemoryRecordSink()
    )

    assert result.successful_inserts + result.failed_lines == result.total_lines


def test_ingest_stream_never_counts_header() -> None:
    """The first line should be discarded even when it is a valid row."""
    payload = csv_bytes("Ann,ann@example.com,30,Sales", "Bob,bob@example.com,31,Ops")

    result = ingest_stream(io.BytesIO(payload), "file-1", InMemoryRecordSink())

    assert result.total_lines == 1 and result.successful_inserts == 1


def test_ingest_stream_skips_blank_and_comma_only_lines() -> None:
    """Blank lines and bare ',,,' rows should not count or fail."""
    payload = csv_bytes("name,email,age,department", "", "   ", ",,,", "\t")

    result = ingest_stream(io.BytesIO(payload), "file-1", InMemoryRecordSink())

    assert (
        result.total_lines == 0
        and result.failed_lines == 0
        and result.success_rate == 0
        and sum(result.error_categories.values()) == 0
    )


def test_ingest_stream_samples_first_errors_with_header_offset() -> None:
    """Error samples should carry the line number, message, and snippet."""
    payload = csv_bytes("name,email", "Ann,ann@example.com", "Bob,not-an-email")

    result = ingest_stream(io.BytesIO(payload), "file-1", InMemoryRecordSink())

    sample = result.errors[0]
    assert (
        sample.line == 3
        and sample.error == "Invalid email format: not-an-email"
        and sample.data == "Bob,not-an-email"
    )


def test_ingest_stream_caps_surfaced_errors_at_ten() -> None:
    """More than ten failures should still surface only ten samples."""
    bad_rows = [f"User{index},broken-email" for index in range(25)]
    payload = csv_bytes("name,email", *bad_rows)

    result = ingest_stream(io.BytesIO(payload), "file-1", InMemoryRecordSink())

    assert (
        result.failed_lines == 25
        and len(result.errors) == 10
        and [sample.line for sample in result.errors] == list(range(2, 12))
    )


def test_ingest_stream_truncates_error_snippets() -> None:
    """Sampled raw data should keep at most one hundred characters."""
    payload = csv_bytes("name,email", "x" * 300)

    result = ingest_stream(io.BytesIO(payload), "file-1", InMemoryRecordSink())

    assert len(result.errors[0].data) == 100


def test_ingest_stream_flushes_in_batches() -> None:
    """Records should reach the sink in configured batch sizes plus a tail."""
    rows = [f"User{index},user{index}@example.com,{20 + index % 50},Dept" for index in range(250)]
    sink = InMemoryRecordSink()

    result = ingest_stream(io.BytesIO(csv_bytes("name,email,age,department", *rows)), "f", sink)

    assert [len(batch) for batch in sink.batches] == [100, 100, 50] and result.success_rate == 100


def test_ingest_stream_propagates_bulk_insert_failure() -> None:
    """A failed bulk insert should abort the run after earlier batches persisted."""
    rows = [f"User{index},user{index}@example.com" for index in range(5)]
    sink = FailingRecordSink(successful_batches=1)

    with pytest.raises(IntakeStoreError):
        ingest_stream(io.BytesIO(csv_bytes("name,email", *rows)), "file-1", sink, batch_size=2)

    assert len(sink.records) == 2


def test_ingest_stream_propagates_stream_failures() -> None:
    """Stream read failures should escape the pipeline."""

    class _FailingStream:
        def read(self, size: int) -> bytes:
            raise OSError("socket closed")

    with pytest.raises(IntakeIngestError):
        ingest_stream(_FailingStream(), "file-1", InMemoryRecordSink())

    assert True


def test_ingest_stream_classifies_unexpected_errors_as_other(monkeypatch) -> None:
    """Unexpected validation exceptions should count under the other category."""

    def _exploding_validate(fields, file_id):
        raise RuntimeError("validator crashed")

    monkeypatch.setattr(pipeline, "validate_fields", _exploding_validate)

    result = ingest_stream(
        io.BytesIO(csv_bytes("name,email", "Ann,ann@example.com")), "f", InMemoryRecordSink()
    )

    assert result.error_categories["other"] == 1 and result.errors[0].error == "validator crashed"


@pytest.mark.parametrize(
    ("successful", "total", "expected"),
    [(0, 0, 0), (7, 10, 70), (1, 8, 13), (2, 3, 67), (10, 10, 100)],
)
def test_compute_success_rate_rounds_half_up(successful: int, total: int, expected: int) -> None:
    """Success rate should be a half-up rounded percentage, zero for empty runs."""
    assert compute_success_rate(successful, total) == expected


def test_ingest_result_summary_reads_naturally() -> None:
    """Result summary should describe successes out of total lines."""
    payload = csv_bytes("name,email", "Ann,ann@example.com", "Bob,bad")

    result = ingest_stream(io.BytesIO(payload), "file-1", InMemoryRecordSink())

    assert result.summary == "Processed 1/2 records successfully (50% success rate)"

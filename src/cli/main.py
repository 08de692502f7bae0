"""Intake CLI entry points.
This module exposes upload, processing, and job status commands.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from cli.status_command import add_status_command, print_job, run_status_command
from core.config import IntakeConfig
from jobs.intake_client import IntakeClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="intake", description="Intake delimited-file ingestion CLI")
    parser.add_argument("--data-root", help="Override INTAKE_DATA_ROOT for this command")
    parser.add_argument("--batch-size", type=int, help="Override INTAKE_BATCH_SIZE for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_upload_command(subparsers)
    _add_process_command(subparsers)
    _add_submit_command(subparsers)
    _add_drain_command(subparsers)
    add_status_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Intake CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.batch_size is not None and args.batch_size < 1:
        parser.error("--batch-size must be at least 1")
    client = _build_client(args.data_root, args.batch_size)
    if args.command == "upload":
        return _run_upload_command(client, args)
    if args.command == "process":
        return _run_process_command(client, args)
    if args.command == "submit":
        return _run_submit_command(client, args)
    if args.command == "drain":
        return _run_drain_command(client)
    if args.command == "status":
        return run_status_command(client, args)
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_client(data_root: str | None, batch_size: int | None) -> IntakeClient:
    """Build SDK client with optional overrides.

    Args:
        data_root: Optional override path.
        batch_size: Optional override batch size.

    Returns:
        Configured SDK client.
    """
    config = IntakeConfig.from_env()
    if data_root:
        config = replace(config, data_root=Path(data_root).expanduser().resolve())
    if batch_size is not None:
        config = replace(config, batch_size=batch_size)
    return IntakeClient(config)


def _run_upload_command(client: IntakeClient, args: argparse.Namespace) -> int:
    """Handle upload command."""
    uploaded = client.upload(args.path)
    print(f"file_id={uploaded.file_id}")
    print(f"source_name={uploaded.source_name}")
    print(f"size={uploaded.size}")
    return 0


def _run_process_command(client: IntakeClient, args: argparse.Namespace) -> int:
    """Handle process command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    job = client.submit(args.file_id, args.source_name, start_drain=args.wait)
    if not args.wait:
        print(f"job_id={job.job_id}")
        print(f"state={job.state}")
        return 0
    return _wait_and_print(client, job.job_id, args.timeout)


def _run_submit_command(client: IntakeClient, args: argparse.Namespace) -> int:
    """Handle submit command: upload, enqueue, and wait for the outcome."""
    uploaded = client.upload(args.path)
    job = client.submit(uploaded.file_id, uploaded.source_name)
    return _wait_and_print(client, job.job_id, args.timeout)


def _run_drain_command(client: IntakeClient) -> int:
    """Handle drain command."""
    print(f"jobs_processed={client.drain()}")
    return 0


def _wait_and_print(client: IntakeClient, job_id: str, timeout: float | None) -> int:
    """Wait for the drain to finish and print the job document."""
    if not client.wait_for_idle(timeout):
        print(f"job_id={job_id}")
        print("state=timeout")
        return 1
    job = client.job_status(job_id)
    if job is None:
        print(f"job_not_found={job_id}")
        return 1
    print_job(job)
    return 0 if job.state == "completed" else 1


def _add_upload_command(subparsers: Any) -> None:
    """Register upload subcommand."""
    parser = subparsers.add_parser("upload", help="Store a local file in the object store")
    parser.add_argument("path", help="Local delimited text file")


def _add_process_command(subparsers: Any) -> None:
    """Register process subcommand."""
    parser = subparsers.add_parser("process", help="Enqueue ingestion of a stored object")
    parser.add_argument("file_id", help="Upload identifier")
    parser.add_argument("source_name", help="Stored object name returned by upload")
    parser.add_argument(
        "--wait",
        action="store_true",
        help="Run the job now and wait; without it the job stays pending for drain",
    )
    parser.add_argument("--timeout", type=float, help="Maximum seconds to wait")


def _add_submit_command(subparsers: Any) -> None:
    """Register submit subcommand."""
    parser = subparsers.add_parser(
        "submit",
        help="Upload a local file, ingest it, and print the job outcome",
    )
    parser.add_argument("path", help="Local delimited text file")
    parser.add_argument("--timeout", type=float, help="Maximum seconds to wait")


def _add_drain_command(subparsers: Any) -> None:
    """Register drain subcommand."""
    subparsers.add_parser("drain", help="Run all pending jobs in the foreground")

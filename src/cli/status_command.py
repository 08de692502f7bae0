"""Job status command wiring for Intake CLI."""

from __future__ import annotations

import argparse
import json
from typing import Any

from core.job_types import Job, job_to_payload
from jobs.intake_client import IntakeClient


def add_status_command(subparsers: Any) -> None:
    """Register status subcommand."""
    parser = subparsers.add_parser("status", help="Show one job document")
    parser.add_argument("job_id", help="Job identifier")


def run_status_command(client: IntakeClient, args: argparse.Namespace) -> int:
    """Print the job document, or report an unknown id."""
    job = client.job_status(args.job_id)
    if job is None:
        print(f"job_not_found={args.job_id}")
        return 1
    print_job(job)
    return 0


def print_job(job: Job) -> None:
    """Print a job document as indented JSON."""
    print(json.dumps(job_to_payload(job), indent=2, sort_keys=True))

"""S3 URI parsing helpers.

This module centralizes S3 URI parsing for the object store location.
It keeps URI validation behavior consistent across config and store layers.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.errors import IntakeConfigError


@dataclass(frozen=True)
class S3Location:
    """Parsed S3 location model."""

    bucket: str
    prefix: str

    def object_key(self, name: str) -> str:
        """Build the full object key for a stored name."""
        if not self.prefix:
            return name
        return f"{self.prefix.rstrip('/')}/{name}"


def parse_s3_uri(uri: str) -> S3Location:
    """Parse and validate an S3 URI.

    Args:
        uri: URI in format ``s3://bucket`` or ``s3://bucket/prefix``.

    Returns:
        Parsed bucket and prefix pair; prefix may be empty.

    Raises:
        IntakeConfigError: If the bucket is missing.
    """
    stripped_uri = uri.removeprefix("s3://")
    bucket, _, prefix = stripped_uri.partition("/")
    if not bucket:
        raise IntakeConfigError(
            f"Invalid S3 URI '{uri}': expected s3://bucket or s3://bucket/prefix. "
            "Provide a bucket name."
        )
    return S3Location(bucket=bucket, prefix=prefix.strip("/"))

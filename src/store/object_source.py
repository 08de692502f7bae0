"""Object store access for uploaded files.

This module reads uploaded objects as binary streams from a local
directory or an S3 bucket, and stores local files as new objects.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Any, BinaryIO

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from core.config import IntakeConfig
from core.constants import OBJECTS_DIR_NAME
from core.errors import IntakeSourceNotFoundError, IntakeStoreError
from core.s3_uri import S3Location, parse_s3_uri

_MISSING_OBJECT_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


class LocalObjectSource:
    """Object store backed by a local directory."""

    def __init__(self, root: Path) -> None:
        self._root = root.expanduser().resolve()
        self._root.mkdir(parents=True, exist_ok=True)

    def get(self, name: str) -> BinaryIO:
        """Open a stored object for streaming reads.

        Raises:
            IntakeSourceNotFoundError: If no object has this name.
        """
        object_path = self._object_path(name)
        try:
            return object_path.open("rb")
        except FileNotFoundError as error:
            raise IntakeSourceNotFoundError(
                f"Source object '{name}' not found under {self._root}. "
                "Upload the file before processing it."
            ) from error
        except OSError as error:
            raise IntakeStoreError(f"Failed to open source object {object_path}: {error}.") from error

    def put(self, name: str, local_path: Path) -> int:
        """Copy a local file into the store and return its size in bytes."""
        object_path = self._object_path(name)
        try:
            shutil.copyfile(local_path, object_path)
        except OSError as error:
            raise IntakeStoreError(
                f"Failed to store {local_path} as object '{name}': {error}."
            ) from error
        return object_path.stat().st_size

    def _object_path(self, name: str) -> Path:
        if not name or "/" in name or "\\" in name or name in {".", ".."}:
            raise IntakeStoreError(f"Invalid object name {name!r}.")
        return self._root / name


class S3ObjectSource:
    """Object store backed by an S3 bucket and key prefix."""

    def __init__(self, location: S3Location, s3_client: Any) -> None:
        self._location = location
        self._client = s3_client

    def get(self, name: str) -> Any:
        """Open a stored object body for streaming reads.

        Returns:
            botocore ``StreamingBody`` exposing ``read(size)``.

        Raises:
            IntakeSourceNotFoundError: If the key does not exist.
            IntakeStoreError: For other S3 failures.
        """
        key = self._location.object_key(name)
        try:
            response = self._client.get_object(Bucket=self._location.bucket, Key=key)
        except ClientError as error:
            error_code = str(error.response.get("Error", {}).get("Code", ""))
            if error_code in _MISSING_OBJECT_CODES:
                raise IntakeSourceNotFoundError(
                    f"Source object s3://{self._location.bucket}/{key} not found. "
                    "Upload the file before processing it."
                ) from error
            raise IntakeStoreError(
                f"Failed to fetch s3://{self._location.bucket}/{key}: {error}. "
                "Check AWS credentials and bucket permissions."
            ) from error
        except BotoCoreError as error:
            raise IntakeStoreError(
                f"Failed to fetch s3://{self._location.bucket}/{key}: {error}."
            ) from error
        return response["Body"]

    def put(self, name: str, local_path: Path) -> int:
        """Upload a local file with managed multipart transfer."""
        key = self._location.object_key(name)
        try:
            self._client.upload_file(str(local_path), self._location.bucket, key)
        except (BotoCoreError, ClientError) as error:
            raise IntakeStoreError(
                f"Failed to upload {local_path} to s3://{self._location.bucket}/{key}: {error}. "
                "Check AWS credentials and retry the upload."
            ) from error
        return local_path.stat().st_size


def create_object_source(config: IntakeConfig) -> LocalObjectSource | S3ObjectSource:
    """Build the configured object store.

    Args:
        config: Runtime config with optional object store URI and session settings.

    Returns:
        S3 source when ``object_store_uri`` is set, else a local directory source.
    """
    if not config.object_store_uri:
        return LocalObjectSource(config.data_root / OBJECTS_DIR_NAME)
    location = parse_s3_uri(config.object_store_uri)
    return S3ObjectSource(location, create_s3_client(config))


def create_s3_client(config: IntakeConfig) -> Any:
    """Create a boto3 S3 client.

    Args:
        config: Runtime config containing optional profile/region.

    Returns:
        Boto3 S3 client.
    """
    session_kwargs = _build_boto3_session_kwargs(config)
    session = boto3.session.Session(**session_kwargs)
    return session.client("s3")


def _build_boto3_session_kwargs(config: IntakeConfig) -> dict[str, str]:
    """Build boto3 Session kwargs from config."""
    kwargs: dict[str, str] = {}
    if config.s3_profile:
        kwargs["profile_name"] = config.s3_profile
    if config.s3_region:
        kwargs["region_name"] = config.s3_region
    return kwargs

"""Flat-file client for historical bulk data in S3-compatible storage.

Files are keyed ``{asset_class}/{data_type}/{year}/{month}/{day}/{name}.{format}.gz``,
for example ``stocks/trades/2024/01/15/trades.csv.gz``.
"""

from __future__ import annotations

import gzip
import logging
import zlib
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Iterator, List, Optional, Union

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .errors import DecompressionError, FlatFilesError
from .infra.config import FlatFilesConfig

DEFAULT_CHUNK_SIZE = 1_048_576

DateLike = Union[str, date]


@dataclass
class FileInfo:
    key: str
    size: int
    last_modified: Optional[datetime]
    etag: Optional[str]


def _coerce_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def build_prefix(
    asset_class: Optional[str] = None,
    data_type: Optional[str] = None,
    date: Optional[DateLike] = None,
    prefix: Optional[str] = None,
) -> str:
    """Build the listing prefix; an explicit ``prefix`` always wins."""

    if prefix:
        return prefix
    if asset_class and data_type and date:
        day = _coerce_date(date)
        return f"{asset_class}/{data_type}/{day.year:04d}/{day.month:02d}/{day.day:02d}/"
    if asset_class and data_type:
        return f"{asset_class}/{data_type}/"
    if asset_class:
        return f"{asset_class}/"
    return ""


def object_key(asset_class: str, data_type: str, date: DateLike, filename: str, fmt: str = "csv") -> str:
    """Full key of one daily file."""

    return f"{build_prefix(asset_class, data_type, date)}{filename}.{fmt}.gz"


class FlatFilesClient:
    """List, download and stream flat files from the bulk data bucket."""

    def __init__(
        self,
        config: Optional[FlatFilesConfig] = None,
        s3_client: Any = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config or FlatFilesConfig()
        self.bucket = self.config.bucket
        self.logger = logger or logging.getLogger(__name__)
        self._s3 = s3_client or boto3.client(
            "s3",
            aws_access_key_id=self.config.access_key_id,
            aws_secret_access_key=self.config.secret_access_key,
            region_name=self.config.region,
            endpoint_url=self.config.endpoint_url,
        )

    def list_files(
        self,
        asset_class: Optional[str] = None,
        data_type: Optional[str] = None,
        date: Optional[DateLike] = None,
        prefix: Optional[str] = None,
        max_keys: int = 1000,
    ) -> List[FileInfo]:
        """List objects under the prefix built from the given criteria."""

        key_prefix = build_prefix(asset_class, data_type, date, prefix)
        response = self._call(
            "list_objects_v2",
            key_prefix,
            Bucket=self.bucket,
            Prefix=key_prefix,
            MaxKeys=max_keys,
        )
        return [
            FileInfo(
                key=item["Key"],
                size=int(item.get("Size", 0)),
                last_modified=item.get("LastModified"),
                etag=item.get("ETag"),
            )
            for item in response.get("Contents", [])
        ]

    def download_file(self, key: str) -> bytes:
        response = self._call("get_object", key, Bucket=self.bucket, Key=key)
        body = response["Body"]
        try:
            return body.read()
        finally:
            body.close()

    def download_and_decompress(self, key: str) -> bytes:
        """Download a gzipped file and return its decompressed content."""

        compressed = self.download_file(key)
        try:
            return gzip.decompress(compressed)
        except (OSError, EOFError, zlib.error) as exc:
            self.logger.warning("Could not decompress %s: %s", key, exc, extra={"event": "decompression_failed"})
            raise DecompressionError(f"Could not decompress {key}", cause=exc) from exc

    def get_presigned_url(self, key: str, expires_in: int = 3600) -> str:
        """Return a time limited GET URL for a file."""

        return self._call(
            "generate_presigned_url",
            key,
            ClientMethod="get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=expires_in,
        )

    def stream_file(self, key: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        """Yield the file in chunks of ``chunk_size`` bytes.

        Nothing is requested until the first chunk is consumed, and the
        iterator cannot be restarted.
        """

        response = self._call("get_object", key, Bucket=self.bucket, Key=key)
        body = response["Body"]
        try:
            for chunk in body.iter_chunks(chunk_size=chunk_size):
                if chunk:
                    yield chunk
        finally:
            body.close()

    def _call(self, operation: str, target: str, **params: Any) -> Any:
        try:
            return getattr(self._s3, operation)(**params)
        except (ClientError, BotoCoreError) as exc:
            self.logger.warning(
                "%s failed for %s: %s", operation, target, exc,
                extra={"event": "flat_files_error", "operation": operation},
            )
            raise FlatFilesError(f"{operation} failed for {target!r}: {exc}", cause=exc) from exc


__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "FileInfo",
    "FlatFilesClient",
    "build_prefix",
    "object_key",
]

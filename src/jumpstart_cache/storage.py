"""Object storage read interface and its S3 implementation.

The metadata cache only needs two operations from a store: ``head`` to read an
object's ETag and ``get`` to download it. Any object exposing these methods
satisfies :class:`ObjectStore`; tests use an in-memory fake.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import boto3
import structlog

if TYPE_CHECKING:
    from botocore.client import BaseClient

log = structlog.get_logger()


@dataclass(frozen=True)
class ObjectContent:
    body: bytes
    etag: str


@runtime_checkable
class ObjectStore(Protocol):
    def head(self, bucket: str, key: str) -> str:
        """Return the ETag of ``s3://bucket/key``."""
        ...

    def get(self, bucket: str, key: str) -> ObjectContent:
        """Download ``s3://bucket/key``."""
        ...


class S3ObjectStore:
    """boto3-backed :class:`ObjectStore`.

    ``botocore.exceptions.ClientError`` and connection errors propagate to the
    caller unchanged; retries are left to botocore's own retry configuration.
    """

    def __init__(self, region: str, client: BaseClient | None = None) -> None:
        self.region = region
        self._client = client if client is not None else boto3.client("s3", region_name=region)

    def head(self, bucket: str, key: str) -> str:
        response = self._client.head_object(Bucket=bucket, Key=key)
        return response["ETag"]

    def get(self, bucket: str, key: str) -> ObjectContent:
        response = self._client.get_object(Bucket=bucket, Key=key)
        body = response["Body"].read()
        log.debug("s3_object_downloaded", bucket=bucket, key=key, size=len(body))
        return ObjectContent(body=body, etag=response["ETag"])
